# Overview: Flask API routes for user management; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..extensions import db
from ..errors import ValidationError
from ..decorators import require_auth
from ..models import User
from ..services import user_service
from ..validation import USER_POLICY, json_object, validate_payload


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _split_password(payload: dict) -> tuple[dict, str | None]:
    payload = dict(payload)
    password = payload.pop("password", None)
    if password is not None and not isinstance(password, str):
        raise ValidationError("password must be a string")
    return payload, password


@users_bp.get("")
@require_auth
def list_users_route(principal):
    """
    List users in the caller's tenant.

    Query params: role, include_inactive (default true), page, per_page
    """
    result = user_service.list_users(
        principal,
        role=request.args.get("role"),
        include_inactive=request.args.get("include_inactive", "true").lower() != "false",
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result), 200


@users_bp.post("")
@require_auth
def create_user_route(principal):
    """
    Create a staff account (ADMIN or above; role strictly below the caller's).

    Request body: {"username", "name", "role", "password", "is_active"?}
    """
    payload, password = _split_password(json_object(request.get_json(silent=True)))
    if not password:
        raise ValidationError("password is required")

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    user = user_service.create_user(principal, patch=patch, password=password)
    db.session.commit()
    return jsonify(user.to_dict()), 201


@users_bp.get("/<int:user_id>")
@require_auth
def get_user_route(user_id: int, principal):
    user = user_service.get_user(principal, user_id)
    return jsonify(user.to_dict()), 200


@users_bp.patch("/<int:user_id>")
@require_auth
def update_user_route(user_id: int, principal):
    payload, password = _split_password(json_object(request.get_json(silent=True)))
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    user = user_service.update_user(principal, user_id, patch=patch, password=password)
    db.session.commit()
    return jsonify(user.to_dict()), 200


@users_bp.delete("/<int:user_id>")
@require_auth
def delete_user_route(user_id: int, principal):
    user_service.delete_user(principal, user_id)
    db.session.commit()
    return jsonify({"message": "User deleted", "id": user_id}), 200
