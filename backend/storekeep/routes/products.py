# Overview: Flask API routes for products; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..extensions import db
from ..errors import ValidationError
from ..decorators import require_auth
from ..models import Product
from ..services import products_service
from ..validation import PRODUCT_POLICY, enforce_rules_product, json_object, validate_payload


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route(principal):
    """
    List a store's products.

    Query params:
    - store_id: int (required)
    - category_id: int (optional)
    - search: str (optional) - matches name or SKU
    - page / per_page: pagination (default 20, max 100)
    """
    store_id = request.args.get("store_id", type=int)
    if store_id is None:
        raise ValidationError("store_id query parameter is required")

    result = products_service.list_products(
        principal,
        store_id=store_id,
        category_id=request.args.get("category_id", type=int),
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result), 200


@products_bp.post("")
@require_auth
def create_product_route(principal):
    """Create a product in a store (STAFF or above)."""
    payload = json_object(request.get_json(silent=True))
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    product = products_service.create_product(principal, patch=patch)
    db.session.commit()
    return jsonify(product.to_dict()), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int, principal):
    product = products_service.get_product(principal, product_id)
    return jsonify(product.to_dict()), 200


@products_bp.patch("/<int:product_id>")
@require_auth
def update_product_route(product_id: int, principal):
    payload = json_object(request.get_json(silent=True))
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    product = products_service.update_product(principal, product_id, patch=patch)
    db.session.commit()
    return jsonify(product.to_dict()), 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int, principal):
    products_service.delete_product(principal, product_id)
    db.session.commit()
    return jsonify({"message": "Product deleted", "id": product_id}), 200
