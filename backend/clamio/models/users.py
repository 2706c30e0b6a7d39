from __future__ import annotations

from ..extensions import db
from clamio.time_utils import to_utc_z


ROLES = ("superadmin", "admin", "vendor")
USER_STATUSES = ("active", "inactive")


class User(db.Model):
    """
    Account for every role on the platform.

    Vendors carry a warehouse_id (their lookup key in order and session
    flows); admins carry a contact_number. `token` / `active_session` back
    the vendor session helper and are kept for every role.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(32), nullable=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, index=True)  # superadmin, admin, vendor
    status = db.Column(db.String(16), nullable=False, default="active", index=True)  # active, inactive

    warehouse_id = db.Column(db.String(64), nullable=True, index=True)
    contact_number = db.Column(db.String(32), nullable=True)

    token = db.Column(db.String(64), nullable=True, unique=True)
    active_session = db.Column(db.String(5), nullable=False, default="FALSE")  # "TRUE" / "FALSE"

    last_login = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "status": self.status,
            "warehouseId": self.warehouse_id,
            "contactNumber": self.contact_number,
            "activeSession": self.active_session,
            "lastLogin": to_utc_z(self.last_login),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
