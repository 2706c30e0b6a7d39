# Overview: JSON envelope helpers shared by every route.

from flask import jsonify


def ok(data=None, message: str | None = None, status: int = 200, **extra):
    """Build a `{success: true, message?, data?}` response."""
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def fail(message: str, status: int = 400, errors: list | None = None, **extra):
    """Build a `{success: false, message, errors?}` response."""
    body = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    body.update(extra)
    return jsonify(body), status
