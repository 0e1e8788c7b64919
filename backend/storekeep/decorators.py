# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, g

from .errors import AuthError
from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require authentication and pass the acting Principal to the view.

    The view receives ``principal`` as a keyword argument. g.principal is
    also set, only so the error handlers can attribute audit events; views
    and services never read it.

    SECURITY: Raises AuthError (401) if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated or deleted
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            raise AuthError("Authentication required")

        principal = session_service.verify(token)
        g.principal = principal

        return f(*args, principal=principal, **kwargs)

    return decorated_function

