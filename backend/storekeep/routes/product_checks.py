# Overview: Flask API routes for product checks (stock audits); parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..extensions import db
from ..errors import ValidationError
from ..decorators import require_auth
from ..services import product_check_service
from ..validation import json_object, optional_int, optional_str


product_checks_bp = Blueprint("product_checks", __name__, url_prefix="/api/product-checks")


@product_checks_bp.get("")
@require_auth
def list_checks_route(principal):
    """Query params: product_id, store_id, status, page, per_page"""
    result = product_check_service.list_checks(
        principal,
        product_id=request.args.get("product_id", type=int),
        store_id=request.args.get("store_id", type=int),
        status=request.args.get("status"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result), 200


@product_checks_bp.post("")
@require_auth
def create_check_route(principal):
    """
    Open a stock check for a product (STAFF or above).

    Request body: {"product_id": int, "note"?: str}
    """
    data = json_object(request.get_json(silent=True))
    product_id = optional_int(data, "product_id")
    if product_id is None:
        raise ValidationError("product_id is required")

    check = product_check_service.create_check(
        principal,
        product_id=product_id,
        note=optional_str(data, "note", max_length=4000),
    )
    db.session.commit()
    return jsonify(check.to_dict()), 201


@product_checks_bp.get("/statistics")
@require_auth
def check_statistics_route(principal):
    result = product_check_service.check_statistics(
        principal,
        store_id=request.args.get("store_id", type=int),
    )
    return jsonify(result), 200


@product_checks_bp.get("/discrepancies")
@require_auth
def discrepancies_route(principal):
    result = product_check_service.list_discrepancies(
        principal,
        store_id=request.args.get("store_id", type=int),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result), 200


@product_checks_bp.get("/<int:check_id>")
@require_auth
def get_check_route(check_id: int, principal):
    check = product_check_service.get_check(principal, check_id)
    return jsonify(check.to_dict()), 200


@product_checks_bp.post("/<int:check_id>/resolve")
@require_auth
def resolve_check_route(check_id: int, principal):
    """
    Resolve a PENDING check.

    Request body: {"status": "OK"|"MISSING"|"BROKEN", "actual_quantity"?: int, "note"?: str}

    Returns:
        200: Check resolved
        400: Invalid status
        409: Check already resolved
    """
    data = json_object(request.get_json(silent=True))
    status = data.get("status")
    if not isinstance(status, str):
        raise ValidationError("status is required")

    check = product_check_service.resolve_check(
        principal,
        check_id,
        status=status.strip().upper(),
        actual_quantity=optional_int(data, "actual_quantity"),
        note=optional_str(data, "note", max_length=4000),
    )
    db.session.commit()
    return jsonify(check.to_dict()), 200
