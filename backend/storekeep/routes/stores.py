# Overview: Flask API routes for stores; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..extensions import db
from ..decorators import require_auth
from ..models import Store
from ..services import store_service
from ..validation import STORE_POLICY, enforce_rules_store, json_object, validate_payload


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_auth
def list_stores_route(principal):
    """
    List the caller's tenant's stores.

    Query params: include_inactive (default false), page, per_page
    """
    result = store_service.list_stores(
        principal,
        include_inactive=request.args.get("include_inactive", "false").lower() == "true",
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result), 200


@stores_bp.post("")
@require_auth
def create_store_route(principal):
    """Create a store under the caller's tenant (ADMIN or above)."""
    payload = json_object(request.get_json(silent=True))
    patch = validate_payload(model=Store, payload=payload, policy=STORE_POLICY, partial=False)
    enforce_rules_store(patch)

    store = store_service.create_store(principal, patch=patch)
    db.session.commit()
    return jsonify(store.to_dict()), 201


@stores_bp.get("/<int:store_id>")
@require_auth
def get_store_route(store_id: int, principal):
    store = store_service.get_store(principal, store_id)
    return jsonify(store.to_dict()), 200


@stores_bp.patch("/<int:store_id>")
@require_auth
def update_store_route(store_id: int, principal):
    payload = json_object(request.get_json(silent=True))
    patch = validate_payload(model=Store, payload=payload, policy=STORE_POLICY, partial=True)
    enforce_rules_store(patch)

    store = store_service.update_store(principal, store_id, patch=patch)
    db.session.commit()
    return jsonify(store.to_dict()), 200


@stores_bp.delete("/<int:store_id>")
@require_auth
def delete_store_route(store_id: int, principal):
    store_service.delete_store(principal, store_id)
    db.session.commit()
    return jsonify({"message": "Store deleted", "id": store_id}), 200
