from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .time_utils import is_valid_hhmm


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999
MAX_QUANTITY = 1_000_000


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


STORE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "code", "address", "city", "phone", "email",
        "opening_time", "closing_time", "timezone", "is_active",
    },
    required_on_create={"name", "code"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"store_id", "name", "description"},
    required_on_create={"store_id", "name"},
)

# store_id is only writable on create; the service rejects moving products
PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "store_id", "category_id", "sku", "name", "description",
        "quantity", "purchase_price_cents", "sale_price_cents",
    },
    required_on_create={"store_id", "sku", "name", "sale_price_cents"},
)

USER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "name", "role", "is_active"},
    required_on_create={"username", "name", "role"},
)

TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={
        "type", "from_store_id", "to_store_id", "product_id", "quantity",
        "amount_cents", "photo_proof_url", "transfer_proof_url", "note",
    },
    required_on_create={"type"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Booleans must be real JSON booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(patch: dict, field: str) -> None:
    price = patch.get(field)
    if price is None:
        return
    if price < 0:
        raise ValidationError(f"{field} must be >= 0")
    if price > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_price(patch, "purchase_price_cents")
    _check_price(patch, "sale_price_cents")

    if "quantity" in patch:
        qty = patch["quantity"]
        if qty is None or qty < 0:
            raise ValidationError("quantity must be >= 0")
        if qty > MAX_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")


def enforce_rules_store(patch: dict) -> None:
    for field in ("opening_time", "closing_time"):
        if field in patch and not is_valid_hhmm(patch[field]):
            raise ValidationError(f"{field} must be HH:MM (24h)")

    if "timezone" in patch:
        try:
            ZoneInfo(patch["timezone"])
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError(f"Unknown timezone: {patch['timezone']}") from None

    email = patch.get("email")
    if email and "@" not in email:
        raise ValidationError("email must be a valid address")


def enforce_rules_transaction(patch: dict) -> None:
    _check_price(patch, "amount_cents")

    qty = patch.get("quantity")
    if qty is not None and qty <= 0:
        raise ValidationError("quantity must be > 0")
    if qty is not None and patch.get("product_id") is None:
        raise ValidationError("quantity requires product_id")
    if patch.get("product_id") is not None and qty is None:
        raise ValidationError("product_id requires quantity")


def json_object(payload) -> dict:
    """Request bodies must be JSON objects; a missing body counts as empty."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def optional_int(payload: dict, key: str) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer")
    return value


def optional_str(payload: dict, key: str, *, max_length: int = 1024) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value or None
