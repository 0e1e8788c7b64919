# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/storekeep/routes/auth.py
"""
Authentication API routes

- Owner self-registration (creates a new tenant)
- Login / logout with opaque session tokens
- /me returns the caller's account, principal and the actions their role
  satisfies (for UI filtering)

Errors are raised as domain errors and rendered by the app's handlers.
"""

from flask import Blueprint, request, jsonify, current_app

from ..access import actions_for_role
from ..errors import AuthError, ValidationError
from ..models import User
from ..services import auth_service
from ..services import session_service
from ..services.ownership_service import load_live
from ..decorators import bearer_token, require_auth
from ..validation import json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, status: int):
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
    }), status


@auth_bp.post("/register")
def register_route():
    """
    Self-register a new OWNER (a new tenant) and log them in.

    Request body: {"username", "name", "password"}
    """
    data = json_object(request.get_json(silent=True))
    if not data.get("password"):
        raise ValidationError("password is required")

    user = auth_service.register_owner(
        username=data.get("username"),
        name=data.get("name"),
        password=data["password"],
    )
    current_app.logger.info("Registered owner %s (id=%s)", user.username, user.id)
    return _session_response(user, 201)


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    data = json_object(request.get_json(silent=True))
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        raise ValidationError("username and password required")

    user = auth_service.authenticate(username, password)
    return _session_response(user, 200)


@auth_bp.post("/logout")
def logout_route():
    """Revoke the presented session token."""
    token = bearer_token()
    if token is None:
        raise AuthError("Authorization header required")

    if not session_service.revoke_session(token, reason="User logout"):
        raise AuthError("Invalid or expired token")

    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route(principal):
    user = load_live(User, principal.user_id)
    return jsonify({
        "user": user.to_dict(),
        "principal": principal.to_dict(),
        "actions": actions_for_role(principal.role),
    }), 200
