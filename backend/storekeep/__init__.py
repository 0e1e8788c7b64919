# backend/storekeep/__init__.py
from __future__ import annotations

import logging

from flask import Flask, g, jsonify, request
from sqlalchemy.orm.exc import StaleDataError

from .config import Config
from .extensions import db, migrate
from .errors import (
    AuthError,
    AuthorizationError,
    DomainError,
    IntegrityError,
    InvalidStateError,
    REASON_CONCURRENT_UPDATE,
    REASON_CROSS_TENANT,
)


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.stores import stores_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.transactions import transactions_bp
    from .routes.product_checks import product_checks_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(stores_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(product_checks_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    register_error_handlers(app)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app


def register_error_handlers(app: Flask) -> None:
    """
    Map domain errors onto JSON responses.

    The request's session is always rolled back first so a failed write
    never leaks into the audit record committed afterwards.
    """
    from .services.authorization_service import log_security_event

    def _audit(event_type: str, exc: DomainError, action: str | None = None) -> None:
        principal = g.get("principal")
        log_security_event(
            user_id=principal.user_id if principal else None,
            owner_id=(principal.owner_id or principal.user_id) if principal else None,
            event_type=event_type,
            success=False,
            resource=request.path,
            action=action or request.method,
            reason=exc.reason or exc.message,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )

    @app.errorhandler(AuthorizationError)
    def handle_authorization_error(exc: AuthorizationError):
        db.session.rollback()
        app.logger.warning("Access denied on %s %s: %s", request.method, request.path, exc.message)
        event_type = "CROSS_TENANT_ACCESS_DENIED" if exc.reason == REASON_CROSS_TENANT else "ACCESS_DENIED"
        _audit(event_type, exc, action=exc.action)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(AuthError)
    def handle_auth_error(exc: AuthError):
        db.session.rollback()
        app.logger.info("Authentication failed on %s: %s", request.path, exc.message)
        _audit("AUTHENTICATION_FAILED", exc)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        db.session.rollback()
        app.logger.exception("Integrity violation on %s %s", request.method, request.path)
        return jsonify({"error": "Internal error", "code": exc.code}), exc.status_code

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        db.session.rollback()
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(StaleDataError)
    def handle_stale_data(exc: StaleDataError):
        db.session.rollback()
        app.logger.warning("Concurrent update on %s %s", request.method, request.path)
        err = InvalidStateError("Record was modified by another request", reason=REASON_CONCURRENT_UPDATE)
        return jsonify(err.to_dict()), err.status_code
