"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup
           - Alembic and the flask CLI to load the app without serving it

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging (LOG_LEVEL / LOG_FORMAT) and the access-log hook
  3. Initialise extensions (SQLAlchemy, Marshmallow) via init_app()
  4. Register all route blueprints under /api/v1
  5. Register global error handlers (AppError → JSON, Exception → 500)
  6. Register CLI commands (flask seed-regions)

Note on model imports:
  All model classes are imported inside create_app() so that SQLAlchemy's
  metadata is populated before Alembic or db.create_all() inspects it. They
  are not used directly here — the import side-effect is sufficient.
"""

from __future__ import annotations

import traceback

from flask import Flask, jsonify, request
from marshmallow import ValidationError

from backend.config import config_by_name, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to "development".
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    # ── Logging ────────────────────────────────────────────────────────────
    from backend.app.logging_config import configure_logging
    from backend.app.middleware.request_logging import register_request_logging
    configure_logging(app)
    register_request_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from backend.app.extensions import db, ma
    db.init_app(app)
    ma.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    with app.app_context():
        from backend.app.models import (  # noqa: F401
            club,
            club_join,
            club_waiting,
            event,
            event_city,
            event_join,
            refresh_token,
            region,
            review,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    from backend.app.commands import register_commands
    register_commands(app)

    app.logger.debug("Application created with %s config.", config_name)
    return app


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    Route files only specify the path relative to their resource
    ("" for the collection, "/<int:id>" for one item).
    """
    from backend.app.routes.auth import auth_bp
    from backend.app.routes.clubs import clubs_bp
    from backend.app.routes.events import events_bp
    from backend.app.routes.regions import regions_bp
    from backend.app.routes.reviews import reviews_bp
    from backend.app.routes.users import users_bp

    app.register_blueprint(auth_bp,    url_prefix="/api/v1/auth")
    app.register_blueprint(clubs_bp,   url_prefix="/api/v1/clubs")
    app.register_blueprint(events_bp,  url_prefix="/api/v1/events")
    app.register_blueprint(reviews_bp, url_prefix="/api/v1/reviews")
    app.register_blueprint(users_bp,   url_prefix="/api/v1/users")
    app.register_blueprint(regions_bp, url_prefix="/api/v1/regions")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors as MISSING_FIELD /
                        INVALID_FIELD / NULL_FIELD / INVALID_DECISION (400)
      HTTPException   → Flask's own 404 / 405 in the same envelope
      Exception       → generic INTERNAL_ERROR (500); traceback logged only

    Stack traces never leave the server.
    """
    from werkzeug.exceptions import HTTPException

    from backend.app.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (middleware, service, route) into the standard error envelope.

        Routes never catch AppError — they let it propagate here.
        """
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Returns the FIRST field error only ("one error, not many").

        If a schema raised one of our ErrorCode constants as the message
        (NULL_FIELD, INVALID_DECISION), that constant becomes the code and the
        message comes from _code_to_message(); otherwise INVALID_FIELD, or
        MISSING_FIELD for marshmallow's required-field message.
        """
        messages = error.messages  # e.g. {"max_people": ["NULL_FIELD"]}
        known_codes = set(vars(ErrorCode).values())

        field = None
        raw_message = "Invalid input."
        code = ErrorCode.INVALID_FIELD

        if isinstance(messages, dict):
            for field_name, field_errors in messages.items():
                field = field_name if field_name != "_schema" else None

                if isinstance(field_errors, list):
                    raw_message = field_errors[0] if field_errors else "Invalid value."
                elif isinstance(field_errors, dict):
                    # Nested list item errors, e.g. {"city_ids": {0: ["Not a valid integer."]}}
                    first = next(iter(field_errors.values()), ["Invalid value."])
                    raw_message = first[0] if isinstance(first, list) and first else str(first)
                else:
                    raw_message = str(field_errors)
                break
        elif isinstance(messages, list):
            raw_message = messages[0] if messages else "Invalid input."

        if raw_message in known_codes:
            code = raw_message
        elif str(raw_message).startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD

        response_body = {
            "error": {
                "code": code,
                "message": _code_to_message(code) if raw_message in known_codes else raw_message,
            }
        }
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({
            "error": {
                "code": error.name.upper().replace(" ", "_"),
                "message": error.description,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        The full traceback goes to the application logger only.
        """
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a frontend served from another
    local port can call the API with Authorization headers.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself.
    """
    _messages = {
        "NULL_FIELD": "This field cannot be null. Omit it to leave the value unchanged.",
        "INVALID_DECISION": "decision must be 'approve' or 'reject'.",
    }
    return _messages.get(code, "Invalid input.")
