from __future__ import annotations

from ..extensions import db
from clamio.time_utils import to_utc_z


CARRIER_STATUSES = ("active", "inactive", "pending")


class Store(db.Model):
    """A storefront; `account_code` scopes orders and carriers."""
    __tablename__ = "stores"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    account_code = db.Column(db.String(64), nullable=False, unique=True, index=True)
    store_name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    carriers = db.relationship("Carrier", back_populates="store", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "account_code": self.account_code,
            "store_name": self.store_name,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class Carrier(db.Model):
    """
    Per-store carrier preference.

    Lower `priority` is preferred. Priority is unique within a store and a
    carrier_id may repeat across stores.
    """
    __tablename__ = "carriers"
    __table_args__ = (
        db.UniqueConstraint("carrier_id", "account_code", name="uq_carrier_store"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    carrier_id = db.Column(db.String(64), nullable=False, index=True)
    account_code = db.Column(db.String(64), db.ForeignKey("stores.account_code"), nullable=False, index=True)
    carrier_name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="active")  # active, inactive, pending
    priority = db.Column(db.Integer, nullable=False)
    weight_in_kg = db.Column(db.Float, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    store = db.relationship("Store", back_populates="carriers")

    def to_dict(self):
        return {
            "carrier_id": self.carrier_id,
            "account_code": self.account_code,
            "carrier_name": self.carrier_name,
            "status": self.status,
            "priority": self.priority,
            "weight_in_kg": self.weight_in_kg,
        }
