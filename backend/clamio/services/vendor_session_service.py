# Overview: Opaque vendor session tokens keyed by warehouse id.

"""
Vendor Session Service

Every user row carries a UUID `token` and an `active_session` flag stored
as the strings "TRUE" / "FALSE". Vendor dashboards address their session
by warehouse id; the token is handed out at login.
"""

import logging
import uuid

from ..extensions import db
from ..models import User


logger = logging.getLogger(__name__)


def ensure_tokens_and_sessions() -> int:
    """
    Give every user a token and a normalized active_session flag.

    Returns the number of rows changed. Run at startup and on login.
    """
    changed = 0
    for user in db.session.query(User).all():
        dirty = False
        if not user.token:
            user.token = uuid.uuid4().hex
            dirty = True
        if user.active_session not in ("TRUE", "FALSE"):
            user.active_session = "FALSE"
            dirty = True
        if dirty:
            changed += 1
    if changed:
        db.session.commit()
        logger.info("Normalized session columns for %s users", changed)
    return changed


def _vendor(warehouse_id: str) -> User | None:
    return db.session.query(User).filter(
        User.role == "vendor",
        User.warehouse_id == str(warehouse_id),
    ).first()


def login_vendor(warehouse_id: str) -> str | None:
    """Activate the vendor's session and return its token."""
    vendor = _vendor(warehouse_id)
    if not vendor:
        return None
    if not vendor.token:
        vendor.token = uuid.uuid4().hex
    vendor.active_session = "TRUE"
    db.session.commit()
    return vendor.token


def get_vendor_by_token(token: str) -> User | None:
    if not token:
        return None
    return db.session.query(User).filter(
        User.role == "vendor",
        User.token == token,
        User.active_session == "TRUE",
    ).first()


def logout_vendor(warehouse_id: str) -> bool:
    vendor = _vendor(warehouse_id)
    if not vendor:
        return False
    vendor.active_session = "FALSE"
    db.session.commit()
    return True
