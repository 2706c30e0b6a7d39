# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Every route here shares one sliding-window limit per client IP.
Credentials travel as `Authorization: Basic base64(email:password)`; login
hands the header back so clients can store it.
"""

from flask import Blueprint, current_app, g

from ..decorators import rate_limited, require_auth, require_database, require_superadmin
from ..responses import fail, ok
from ..services import auth_service, user_service, vendor_session_service
from ..services.auth_service import AuthenticationError, PasswordValidationError
from ..services.user_service import UserNotFoundError
from ..validation import (
    ADMIN_PASSWORD_SET, PASSWORD_CHANGE, PASSWORD_RESET, PHONE_LOGIN, USER_LOGIN, validate_body,
)


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _login_payload(user, password: str) -> dict:
    data = {
        "user": user.to_dict(),
        "authHeader": auth_service.encode_basic_auth(user.email, password),
        "authType": "Basic",
    }
    if user.role == "vendor" and user.warehouse_id:
        vendor_session_service.ensure_tokens_and_sessions()
        data["vendorToken"] = vendor_session_service.login_vendor(user.warehouse_id)
    return data


@auth_bp.post("/login")
@rate_limited
@require_database
@validate_body(USER_LOGIN)
def login_route():
    """
    Exchange email/password for a Basic auth header.

    Returns:
        {user, authHeader, authType: "Basic", vendorToken?}
    """
    email = g.validated["email"]
    password = g.validated["password"]
    try:
        user = auth_service.login(email, password)
        return ok(_login_payload(user, password), "Login successful")
    except AuthenticationError as e:
        return fail(str(e), 401)
    except Exception:
        current_app.logger.exception("Failed to log in")
        return fail("Login failed", 500)


@auth_bp.post("/login/phone")
@rate_limited
@require_database
@validate_body(PHONE_LOGIN)
def phone_login_route():
    phone = g.validated["phone"]
    password = g.validated["password"]
    try:
        user = auth_service.login_with_phone(phone, password)
        return ok(_login_payload(user, password), "Login successful")
    except AuthenticationError as e:
        return fail(str(e), 401)
    except Exception:
        current_app.logger.exception("Failed to log in by phone")
        return fail("Login failed", 500)


@auth_bp.post("/logout")
@rate_limited
@require_auth
def logout_route():
    user = g.current_user
    if user.role == "vendor" and user.warehouse_id:
        vendor_session_service.logout_vendor(user.warehouse_id)
    return ok(message="Logout successful")


@auth_bp.get("/profile")
@rate_limited
@require_auth
def profile_route():
    return ok(g.current_user.to_dict())


@auth_bp.get("/verify")
@rate_limited
@require_auth
def verify_route():
    return ok({"user": g.current_user.to_dict(), "valid": True}, "Credentials are valid")


@auth_bp.put("/change-password")
@rate_limited
@require_auth
@validate_body(PASSWORD_CHANGE)
def change_password_route():
    try:
        header = auth_service.change_password(
            g.current_user, g.validated["oldPassword"], g.validated["newPassword"],
        )
        return ok({"authHeader": header, "authType": "Basic"}, "Password changed successfully")
    except AuthenticationError as e:
        return fail(str(e), 400)
    except PasswordValidationError as e:
        return fail(str(e), 400)


@auth_bp.put("/change-user-password")
@rate_limited
@require_auth
@require_superadmin
@validate_body(ADMIN_PASSWORD_SET)
def change_user_password_route():
    try:
        user = user_service.get_user(g.validated["userId"])
        auth_service.set_user_password(user, g.validated["newPassword"])
        return ok({"userId": user.id}, f"Password updated for {user.email}")
    except UserNotFoundError as e:
        return fail(str(e), 404)
    except PasswordValidationError as e:
        return fail(str(e), 400)


@auth_bp.post("/reset-password")
@rate_limited
@validate_body(PASSWORD_RESET)
def reset_password_route():
    try:
        user = auth_service.reset_password(
            g.validated["email"], g.validated["oldPassword"], g.validated["newPassword"],
        )
        header = auth_service.encode_basic_auth(user.email, g.validated["newPassword"])
        return ok({"authHeader": header, "authType": "Basic"}, "Password reset successfully")
    except AuthenticationError as e:
        return fail(str(e), 401)
    except PasswordValidationError as e:
        return fail(str(e), 400)
