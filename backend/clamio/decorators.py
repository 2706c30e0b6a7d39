# Overview: Request decorators for authentication, role checks, throttling and database availability.

from functools import wraps

from flask import current_app, g, make_response, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .responses import fail
from .services import auth_service
from .services.auth_service import AuthenticationError
from .services.rate_limit_service import auth_limiter


DATABASE_UNAVAILABLE = "Database connection not available"


def _reconnect() -> None:
    db.session.rollback()
    db.engine.dispose()


def _with_reconnect(operation):
    """
    Run a database operation, disposing the pool and retrying once on failure.

    Raises SQLAlchemyError when the retry fails too.
    """
    try:
        return operation()
    except SQLAlchemyError:
        current_app.logger.warning("Database unavailable, reconnecting")
        _reconnect()
        return operation()


def _authenticated(authenticate):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            header = request.headers.get("Authorization")
            try:
                user = _with_reconnect(lambda: authenticate(header))
            except AuthenticationError as e:
                return fail(str(e), 401)
            except SQLAlchemyError:
                current_app.logger.exception("Database unavailable during authentication")
                db.session.rollback()
                return fail(DATABASE_UNAVAILABLE, 503)
            except Exception:
                current_app.logger.exception("Authentication failed")
                return fail("Authentication failed", 500)

            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def require_auth(f):
    """
    Require a valid `Authorization: Basic ...` header.

    Credentials are re-verified against the stored hash on every request.
    Sets g.current_user on success; bad credentials are a 401 and an
    unreachable database a 503.
    """
    return _authenticated(auth_service.authenticate_header)(f)


def require_vendor_session(f):
    """Like require_auth, but also accepts the bare vendor session token."""
    return _authenticated(auth_service.authenticate_vendor_header)(f)


def authorize_roles(*roles: str):
    """
    Allow only the listed roles.

    There is no hierarchy: superadmin passes only where it is listed.
    """
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return fail("Authentication required", 401)
            if user.role not in allowed:
                return fail("Insufficient permissions", 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


require_superadmin = authorize_roles("superadmin")
require_vendor = authorize_roles("vendor")
require_admin_or_superadmin = authorize_roles("admin", "superadmin")
require_any_user = authorize_roles("superadmin", "admin", "vendor")


def client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def rate_limited(f):
    """Apply the auth-route sliding window, keyed by client IP."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        key = client_ip()
        limit = current_app.config["AUTH_RATE_LIMIT_MAX"]
        window = current_app.config["AUTH_RATE_LIMIT_WINDOW_SECONDS"]

        if auth_limiter.hit(key, limit=limit, window_seconds=window):
            response = make_response(f(*args, **kwargs))
        else:
            response = make_response(fail("Too many requests. Please try again later.", 429))
            response.headers["Retry-After"] = str(int(window))

        response.headers["RateLimit-Limit"] = str(limit)
        response.headers["RateLimit-Remaining"] = str(
            auth_limiter.remaining(key, limit=limit, window_seconds=window)
        )
        return response
    return decorated_function


def _ping() -> None:
    db.session.execute(text("SELECT 1"))


def require_database(f):
    """
    Check that the database answers before the view runs.

    A failed check disposes the connection pool and retries once before
    answering 503.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            _with_reconnect(_ping)
        except SQLAlchemyError:
            current_app.logger.exception("Database check failed after reconnect")
            db.session.rollback()
            return fail(DATABASE_UNAVAILABLE, 503)
        return f(*args, **kwargs)
    return decorated_function
