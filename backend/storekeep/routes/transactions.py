# backend/storekeep/routes/transactions.py
"""
Sales and inter-store transfer API routes.

SALE is recorded finished in one call. TRANSFER moves through
DRAFT -> AWAITING_APPROVAL -> APPROVED -> FINISHED via /proof, /approve
and /finish.
"""
from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..errors import ValidationError
from ..decorators import require_auth
from ..models import Transaction
from ..models.documents import TRANSACTION_TYPE_SALE, TRANSACTION_TYPE_TRANSFER
from ..services import transaction_service
from ..validation import (
    TRANSACTION_POLICY,
    enforce_rules_transaction,
    json_object,
    optional_str,
    validate_payload,
)


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.get("")
@require_auth
def list_transactions_route(principal):
    """
    List the tenant's transactions, newest first.

    Query params: type (SALE|TRANSFER), state, store_id, page, per_page
    """
    result = transaction_service.list_transactions(
        principal,
        type=request.args.get("type"),
        state=request.args.get("state"),
        store_id=request.args.get("store_id", type=int),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result), 200


@transactions_bp.post("")
@require_auth
def create_transaction_route(principal):
    """
    Create a SALE or TRANSFER.

    Request body:
    {
        "type": "SALE" | "TRANSFER",
        "from_store_id": int (selling store for SALE, optional; source store for TRANSFER),
        "to_store_id": int (TRANSFER only),
        "product_id": int, "quantity": int (optional, together),
        "amount_cents": int (optional),
        "photo_proof_url": str (optional),
        "transfer_proof_url": str (TRANSFER only, optional),
        "note": str (optional)
    }

    Returns:
        201: Transaction created
        400: Invalid request
        403: Forbidden (role or tenant)
        404: Store or product not found
    """
    payload = json_object(request.get_json(silent=True))
    patch = validate_payload(model=Transaction, payload=payload, policy=TRANSACTION_POLICY, partial=False)
    enforce_rules_transaction(patch)

    txn_type = patch.pop("type").upper()
    if txn_type == TRANSACTION_TYPE_SALE:
        for field in ("to_store_id", "transfer_proof_url"):
            if patch.get(field) is not None:
                raise ValidationError(f"{field} is not allowed on a SALE")
        txn = transaction_service.create_sale(
            principal,
            store_id=patch.get("from_store_id"),
            product_id=patch.get("product_id"),
            quantity=patch.get("quantity"),
            amount_cents=patch.get("amount_cents"),
            photo_proof_url=patch.get("photo_proof_url"),
            note=patch.get("note"),
        )
    elif txn_type == TRANSACTION_TYPE_TRANSFER:
        txn = transaction_service.create_transfer(
            principal,
            from_store_id=patch.get("from_store_id"),
            to_store_id=patch.get("to_store_id"),
            product_id=patch.get("product_id"),
            quantity=patch.get("quantity"),
            amount_cents=patch.get("amount_cents"),
            photo_proof_url=patch.get("photo_proof_url"),
            transfer_proof_url=patch.get("transfer_proof_url"),
            note=patch.get("note"),
        )
    else:
        raise ValidationError("type must be SALE or TRANSFER")

    db.session.commit()
    current_app.logger.info("Transaction %s (%s) created by user %s", txn.id, txn.type, principal.user_id)
    return jsonify(txn.to_dict()), 201


@transactions_bp.get("/<int:transaction_id>")
@require_auth
def get_transaction_route(transaction_id: int, principal):
    txn = transaction_service.get_transaction(principal, transaction_id)
    return jsonify(txn.to_dict()), 200


@transactions_bp.post("/<int:transaction_id>/proof")
@require_auth
def submit_proof_route(transaction_id: int, principal):
    """
    Attach proof to an open transfer.

    Request body: {"photo_proof_url"?: str, "transfer_proof_url"?: str}
    """
    data = json_object(request.get_json(silent=True))
    txn = transaction_service.submit_transfer_proof(
        principal,
        transaction_id,
        photo_proof_url=optional_str(data, "photo_proof_url"),
        transfer_proof_url=optional_str(data, "transfer_proof_url"),
    )
    db.session.commit()
    return jsonify(txn.to_dict()), 200


@transactions_bp.post("/<int:transaction_id>/approve")
@require_auth
def approve_transfer_route(transaction_id: int, principal):
    """
    Approve a transfer (ADMIN or above).

    Request body (optional): {"transfer_proof_url"?: str}

    Returns:
        200: Transfer approved
        400: Not a transfer, or proof missing
        403: Forbidden
        404: Transfer not found
        409: Already approved or finished
    """
    data = json_object(request.get_json(silent=True))
    txn = transaction_service.approve_transfer(
        principal,
        transaction_id,
        transfer_proof_url=optional_str(data, "transfer_proof_url"),
    )
    db.session.commit()
    current_app.logger.info("Transfer %s approved by user %s", txn.id, principal.user_id)
    return jsonify(txn.to_dict()), 200


@transactions_bp.post("/<int:transaction_id>/finish")
@require_auth
def finish_transaction_route(transaction_id: int, principal):
    """
    Finish an approved transfer and move its stock.

    Returns:
        200: Transfer finished
        403: Forbidden
        404: Transfer not found
        409: Not approved, or already finished
    """
    txn = transaction_service.finish_transaction(principal, transaction_id)
    db.session.commit()
    current_app.logger.info("Transfer %s finished by user %s", txn.id, principal.user_id)
    return jsonify(txn.to_dict()), 200
