# Overview: Flask API routes for categories; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..extensions import db
from ..errors import ValidationError
from ..decorators import require_auth
from ..models import Category
from ..services import category_service
from ..validation import CATEGORY_POLICY, json_object, validate_payload


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route(principal):
    """Query params: store_id (required), page, per_page"""
    store_id = request.args.get("store_id", type=int)
    if store_id is None:
        raise ValidationError("store_id query parameter is required")

    result = category_service.list_categories(
        principal,
        store_id=store_id,
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result), 200


@categories_bp.post("")
@require_auth
def create_category_route(principal):
    payload = json_object(request.get_json(silent=True))
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)

    category = category_service.create_category(principal, patch=patch)
    db.session.commit()
    return jsonify(category.to_dict()), 201


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category_route(category_id: int, principal):
    category = category_service.get_category(principal, category_id)
    return jsonify(category.to_dict()), 200


@categories_bp.patch("/<int:category_id>")
@require_auth
def update_category_route(category_id: int, principal):
    payload = json_object(request.get_json(silent=True))
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)

    category = category_service.update_category(principal, category_id, patch=patch)
    db.session.commit()
    return jsonify(category.to_dict()), 200


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category_route(category_id: int, principal):
    category_service.delete_category(principal, category_id)
    db.session.commit()
    return jsonify({"message": "Category deleted", "id": category_id}), 200
