# Overview: Flask API routes for the user directory; parses input and returns JSON responses.

"""
User Routes

- superadmin manages every account except other superadmins
- admins may list users and manage vendor accounts through /vendor routes
"""

from flask import Blueprint, current_app, g

from ..decorators import require_admin_or_superadmin, require_auth, require_superadmin
from ..responses import fail, ok
from ..services import user_service
from ..services.auth_service import PasswordValidationError
from ..services.user_service import UserNotFoundError, UserPermissionError, UserValidationError
from ..validation import (
    PAGINATION, SEARCH, USER_REGISTRATION, USER_UPDATE, VENDOR_REGISTRATION, validate_body, validate_query,
)


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _create(data: dict, role: str):
    try:
        user = user_service.create_user(
            name=data["name"],
            email=data["email"],
            password=data["password"],
            role=role,
            phone=data.get("phone"),
            warehouse_id=data.get("warehouseId"),
            contact_number=data.get("contactNumber"),
            status=data.get("status", "active"),
        )
        return ok(user.to_dict(), "User created successfully", 201)
    except (UserValidationError, PasswordValidationError) as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return fail("Failed to create user", 500)


def _update(user_id: int, data: dict, *, vendor_only: bool):
    try:
        user = user_service.get_user(user_id)
        if user.role == "superadmin":
            return fail("Cannot modify superadmin user", 403)
        if vendor_only and user.role != "vendor":
            return fail("Insufficient permissions", 403)
        if vendor_only:
            data = {k: v for k, v in data.items() if k != "role"}
        user = user_service.update_user(user, data)
        return ok(user.to_dict(), "User updated successfully")
    except UserNotFoundError as e:
        return fail(str(e), 404)
    except (UserValidationError, PasswordValidationError) as e:
        return fail(str(e), 400)


def _delete(user_id: int, *, vendor_only: bool):
    try:
        user = user_service.get_user(user_id)
        if vendor_only and user.role != "vendor":
            return fail("Insufficient permissions", 403)
        user_service.delete_user(user)
        return ok(message="User deleted successfully")
    except UserNotFoundError as e:
        return fail(str(e), 404)
    except UserPermissionError as e:
        return fail(str(e), 403)


@users_bp.get("")
@require_auth
@require_admin_or_superadmin
@validate_query(PAGINATION + SEARCH)
def list_users_route():
    """
    List users (superadmins hidden), newest first.

    Query parameters: page, limit (1-100), role, status, q (2+ chars)
    """
    page = g.validated.get("page", 1)
    limit = g.validated.get("limit", 10)
    users, total = user_service.list_users(
        page=page,
        limit=limit,
        role=g.validated.get("role"),
        status=g.validated.get("status"),
        search=g.validated.get("q"),
    )
    return ok({
        "users": [u.to_dict() for u in users],
        "pagination": user_service.pagination(page, limit, total),
    })


@users_bp.post("")
@require_auth
@require_superadmin
@validate_body(USER_REGISTRATION)
def create_user_route():
    return _create(g.validated, g.validated["role"])


@users_bp.get("/<int:user_id>")
@require_auth
@require_admin_or_superadmin
def get_user_route(user_id: int):
    try:
        return ok(user_service.get_user(user_id).to_dict())
    except UserNotFoundError as e:
        return fail(str(e), 404)


@users_bp.put("/<int:user_id>")
@require_auth
@require_superadmin
@validate_body(USER_UPDATE)
def update_user_route(user_id: int):
    return _update(user_id, dict(g.validated), vendor_only=False)


@users_bp.delete("/<int:user_id>")
@require_auth
@require_superadmin
def delete_user_route(user_id: int):
    return _delete(user_id, vendor_only=False)


@users_bp.patch("/<int:user_id>/toggle-status")
@require_auth
@require_superadmin
def toggle_status_route(user_id: int):
    try:
        user = user_service.toggle_status(user_service.get_user(user_id))
        return ok(user.to_dict(), f"User status changed to {user.status}")
    except UserNotFoundError as e:
        return fail(str(e), 404)
    except UserPermissionError as e:
        return fail(str(e), 403)


@users_bp.get("/role/<role>")
@require_auth
@require_admin_or_superadmin
def users_by_role_route(role: str):
    try:
        users = user_service.get_users_by_role(role)
        return ok([u.to_dict() for u in users])
    except UserValidationError as e:
        return fail(str(e), 400)


@users_bp.get("/status/<status>")
@require_auth
@require_superadmin
def users_by_status_route(status: str):
    try:
        users = user_service.get_users_by_status(status)
        return ok([u.to_dict() for u in users])
    except UserValidationError as e:
        return fail(str(e), 400)


@users_bp.post("/vendor")
@require_auth
@require_admin_or_superadmin
@validate_body(VENDOR_REGISTRATION)
def create_vendor_route():
    return _create(g.validated, "vendor")


@users_bp.put("/vendor/<int:user_id>")
@require_auth
@require_admin_or_superadmin
@validate_body(USER_UPDATE)
def update_vendor_route(user_id: int):
    return _update(user_id, dict(g.validated), vendor_only=True)


@users_bp.delete("/vendor/<int:user_id>")
@require_auth
@require_admin_or_superadmin
def delete_vendor_route(user_id: int):
    return _delete(user_id, vendor_only=True)
