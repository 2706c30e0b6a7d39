# Overview: App-wide error handlers that keep failures in the JSON envelope.

import traceback

from flask import current_app, request
from werkzeug.exceptions import HTTPException, NotFound, RequestEntityTooLarge

from .responses import fail


# Token error names a legacy client may still surface through the API
LEGACY_TOKEN_ERRORS = {
    "JsonWebTokenError": "Invalid token",
    "TokenExpiredError": "Token expired",
}


def register_error_handlers(app):
    @app.errorhandler(NotFound)
    def handle_not_found(e):
        return fail(f"Route {request.path} not found", 404)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return fail("File too large. Maximum upload size is 5MB", 413)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return fail(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        name = type(e).__name__
        if name in LEGACY_TOKEN_ERRORS:
            return fail(LEGACY_TOKEN_ERRORS[name], 401)

        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        extra = {}
        if current_app.config.get("ENVIRONMENT") == "development":
            extra["error"] = str(e)
            extra["stack"] = traceback.format_exc()
        return fail("Internal server error", 500, **extra)
