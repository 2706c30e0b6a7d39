# Overview: Service-layer operations for auth; encapsulates credential encoding, hashing and login checks.

"""
Authentication Service

Every protected request carries `Authorization: Basic base64(email:password)`
and is re-verified against the stored bcrypt hash. There is no server-side
session for admins; vendors additionally get an opaque session token (see
vendor_session_service.py).

SECURITY NOTES:
- Passwords hashed with bcrypt, cost factor from BCRYPT_ROUNDS (default 12)
- Minimum 6 characters with upper, lower and digit
- A malformed stored hash counts as a mismatch, never as a match
"""

import base64
import binascii
import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from . import vendor_session_service
from clamio.time_utils import utcnow


BASIC_PREFIX = "Basic "
PASSWORD_PATTERN = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class AuthenticationError(Exception):
    """Raised when credentials cannot be accepted; message is client-facing."""
    pass


def encode_basic_auth(email: str, password: str) -> str:
    """Build the Authorization header value for a credential pair."""
    raw = f"{email}:{password}".encode("utf-8")
    return BASIC_PREFIX + base64.b64encode(raw).decode("ascii")


def decode_basic_auth(header: str | None) -> tuple[str, str] | None:
    """
    Decode a Basic Authorization header into (email, password).

    Only the first colon separates, so passwords may contain colons.
    Returns None for a missing prefix, bad Base64 or a missing colon.
    """
    if not header or not header.startswith(BASIC_PREFIX):
        return None

    encoded = header[len(BASIC_PREFIX):].strip()
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    if ":" not in decoded:
        return None
    email, password = decoded.split(":", 1)
    return email, password


def validate_password_strength(password: str) -> None:
    if not password or len(password) < 6:
        raise PasswordValidationError("Password must be at least 6 characters long")
    if not PASSWORD_PATTERN.match(password):
        raise PasswordValidationError(
            "Password must contain at least one lowercase letter, one uppercase letter, and one number"
        )


def hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for an empty or malformed hash; other bcrypt errors
    propagate to the caller.
    """
    if not password_hash or password is None:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def find_user_by_email(email: str) -> User | None:
    if not email:
        return None
    return db.session.query(User).filter(User.email == email.strip().lower()).first()


def authenticate_header(header: str | None) -> User:
    """
    Resolve the user behind an Authorization header.

    Raises AuthenticationError with the message the middleware returns.
    """
    if not header:
        raise AuthenticationError("Authorization header is required")

    credentials = decode_basic_auth(header)
    if credentials is None:
        raise AuthenticationError("Invalid Basic Auth format")

    email, password = credentials
    user = find_user_by_email(email)
    if not user:
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("User account is inactive")
    if not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return user


def _check_login(user: User | None, password: str) -> User:
    # Inactive accounts are rejected before the password is checked
    if not user:
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Account is inactive. Please contact administrator.")
    if not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    user.last_login = utcnow()
    db.session.commit()
    return user


def login(email: str, password: str) -> User:
    return _check_login(find_user_by_email(email), password)


def login_with_phone(phone: str, password: str) -> User:
    phone = (phone or "").strip()
    user = None
    if phone:
        user = db.session.query(User).filter(
            db.or_(User.phone == phone, User.contact_number == phone)
        ).first()
    if not user:
        raise AuthenticationError("Invalid phone number or password")
    return _check_login(user, password)


def change_password(user: User, old_password: str, new_password: str) -> str:
    """
    Change a user's own password.

    Returns the Authorization header for the new credentials.
    Raises AuthenticationError when the old password is wrong.
    """
    if not verify_password(old_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")
    validate_password_strength(new_password)

    user.password_hash = hash_password(new_password)
    db.session.commit()
    return encode_basic_auth(user.email, new_password)


def set_user_password(user: User, new_password: str) -> None:
    """Administrative password reset, no old password required."""
    validate_password_strength(new_password)
    user.password_hash = hash_password(new_password)
    db.session.commit()


def reset_password(email: str, old_password: str, new_password: str) -> User:
    user = find_user_by_email(email)
    if not user or not verify_password(old_password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Account is inactive. Please contact administrator.")
    set_user_password(user, new_password)
    return user


def authenticate_vendor_header(header: str | None) -> User:
    """
    Accept Basic credentials or the opaque vendor token issued at login.

    The vendor dashboard sends the bare token as the Authorization value
    on claim requests.
    """
    if header and not header.startswith(BASIC_PREFIX):
        vendor = vendor_session_service.get_vendor_by_token(header.strip())
        if vendor is None:
            raise AuthenticationError("Invalid or expired vendor session")
        if not vendor.is_active:
            raise AuthenticationError("User account is inactive")
        return vendor
    return authenticate_header(header)
