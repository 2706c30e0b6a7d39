# Overview: Service-layer operations for users; encapsulates business logic and database work.

"""
User Service

Role-specific required fields:
- vendors need a warehouse_id (their lookup key for orders and sessions)
- admins need a contact_number

Superadmin accounts are never listed through the directory and can never be
deleted.
"""

import math
import uuid

from ..extensions import db
from ..models import User
from ..models.users import ROLES, USER_STATUSES
from .auth_service import hash_password, validate_password_strength


class UserNotFoundError(Exception):
    """Raised when a user is not found."""
    pass


class UserValidationError(Exception):
    """Raised when user data fails validation."""
    pass


class UserPermissionError(Exception):
    """Raised when an operation is forbidden for the target user."""
    pass


def _check_role_fields(role: str, warehouse_id: str | None, contact_number: str | None,
                       user_id: int | None = None) -> None:
    if role == "vendor" and not warehouse_id:
        raise UserValidationError("Warehouse ID is required for vendors")
    if role == "vendor":
        # Orders reference their vendor by warehouse id only
        query = db.session.query(User.id).filter(User.role == "vendor", User.warehouse_id == warehouse_id)
        if user_id is not None:
            query = query.filter(User.id != user_id)
        if query.first():
            raise UserValidationError("Another vendor already uses this warehouse ID")
    if role == "admin" and not contact_number:
        raise UserValidationError("Contact number is required for admins")


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    role: str,
    phone: str | None = None,
    warehouse_id: str | None = None,
    contact_number: str | None = None,
    status: str = "active",
) -> User:
    """
    Create a user account.

    Raises:
        UserValidationError: role fields missing, duplicate email, bad role/status
        PasswordValidationError: weak password
    """
    if role not in ROLES:
        raise UserValidationError("Role must be one of: " + ", ".join(ROLES))
    if status not in USER_STATUSES:
        raise UserValidationError("Status must be either active or inactive")

    warehouse_id = str(warehouse_id).strip() if warehouse_id not in (None, "") else None
    contact_number = contact_number.strip() if contact_number else None
    _check_role_fields(role, warehouse_id, contact_number)

    email = email.strip().lower()
    if db.session.query(User).filter(User.email == email).first():
        raise UserValidationError("User with this email already exists")

    validate_password_strength(password)

    user = User(
        name=name.strip(),
        email=email,
        phone=phone.strip() if phone else None,
        password_hash=hash_password(password),
        role=role,
        status=status,
        warehouse_id=warehouse_id if role == "vendor" else None,
        contact_number=contact_number if role == "admin" else None,
        token=uuid.uuid4().hex,
        active_session="FALSE",
    )
    db.session.add(user)
    db.session.commit()
    return user


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise UserNotFoundError("User not found")
    return user


def list_users(
    *,
    page: int = 1,
    limit: int = 10,
    role: str | None = None,
    status: str | None = None,
    search: str | None = None,
) -> tuple[list[User], int]:
    """List non-superadmin users, newest first."""
    query = db.session.query(User).filter(User.role != "superadmin")
    if role:
        query = query.filter(User.role == role)
    if status:
        query = query.filter(User.status == status)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(
            User.name.ilike(like),
            User.email.ilike(like),
            User.phone.ilike(like),
            User.warehouse_id.ilike(like),
        ))

    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return users, total


def pagination(page: int, limit: int, total: int, noun: str = "Users") -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        f"total{noun}": total,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def update_user(user: User, changes: dict) -> User:
    """
    Apply a partial update.

    Keys: name, email, phone, role, status, warehouseId, contactNumber, password.
    """
    role = changes.get("role", user.role)
    if role not in ROLES:
        raise UserValidationError("Role must be one of: " + ", ".join(ROLES))

    if "email" in changes and changes["email"]:
        email = changes["email"].strip().lower()
        clash = db.session.query(User).filter(User.email == email, User.id != user.id).first()
        if clash:
            raise UserValidationError("User with this email already exists")
        user.email = email

    if "name" in changes and changes["name"]:
        user.name = changes["name"].strip()
    if "phone" in changes:
        user.phone = changes["phone"] or None
    if "status" in changes and changes["status"]:
        if changes["status"] not in USER_STATUSES:
            raise UserValidationError("Status must be either active or inactive")
        user.status = changes["status"]

    warehouse_id = changes.get("warehouseId", user.warehouse_id)
    contact_number = changes.get("contactNumber", user.contact_number)
    warehouse_id = str(warehouse_id).strip() if warehouse_id not in (None, "") else None
    _check_role_fields(role, warehouse_id, contact_number, user_id=user.id)

    user.role = role
    user.warehouse_id = warehouse_id if role == "vendor" else None
    user.contact_number = contact_number if role == "admin" else None

    if changes.get("password"):
        validate_password_strength(changes["password"])
        user.password_hash = hash_password(changes["password"])

    db.session.commit()
    return user


def delete_user(user: User) -> None:
    if user.role == "superadmin":
        raise UserPermissionError("Cannot delete superadmin user")
    db.session.delete(user)
    db.session.commit()


def get_users_by_role(role: str) -> list[User]:
    if role not in ROLES:
        raise UserValidationError("Invalid role")
    return db.session.query(User).filter(User.role == role).order_by(User.name).all()


def get_users_by_status(status: str) -> list[User]:
    if status not in USER_STATUSES:
        raise UserValidationError("Invalid status")
    return (
        db.session.query(User)
        .filter(User.status == status, User.role != "superadmin")
        .order_by(User.name)
        .all()
    )


def toggle_status(user: User) -> User:
    if user.role == "superadmin":
        raise UserPermissionError("Cannot change superadmin status")
    user.status = "inactive" if user.status == "active" else "active"
    db.session.commit()
    return user


def get_vendor_by_warehouse(warehouse_id: str) -> User | None:
    return db.session.query(User).filter(
        User.role == "vendor",
        User.warehouse_id == str(warehouse_id),
    ).first()
