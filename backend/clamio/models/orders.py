from __future__ import annotations

from ..extensions import db
from clamio.time_utils import to_utc_z


class Order(db.Model):
    """
    One shipment line item.

    `unique_id` identifies the line; `order_id` groups lines of a
    multi-item order. `vendor_name` holds the claiming vendor's warehouse
    id and is null while the line is unclaimed.
    """
    __tablename__ = "orders"

    unique_id = db.Column(db.String(100), primary_key=True)
    order_id = db.Column(db.String(100), nullable=False, index=True)
    account_code = db.Column(db.String(64), nullable=True, index=True)

    # Open carrier vocabulary: unclaimed, claimed, in_pack, handover, picked,
    # in_transit, delivered, rto, cancelled, ...
    status = db.Column(db.String(32), nullable=False, default="unclaimed", index=True)

    vendor_name = db.Column(db.String(64), nullable=True, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    claimed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_claimed_by = db.Column(db.String(64), nullable=True)
    last_claimed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    product_name = db.Column(db.String(255), nullable=True)
    product_code = db.Column(db.String(100), nullable=True, index=True)
    size = db.Column(db.String(32), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    value = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    is_in_new_order = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "unique_id": self.unique_id,
            "order_id": self.order_id,
            "account_code": self.account_code,
            "status": self.status,
            "vendor_name": self.vendor_name,
            "vendor_id": self.vendor_id,
            "claimed_at": to_utc_z(self.claimed_at),
            "last_claimed_by": self.last_claimed_by,
            "last_claimed_at": to_utc_z(self.last_claimed_at),
            "product_name": self.product_name,
            "product_code": self.product_code,
            "size": self.size,
            "quantity": self.quantity,
            "value": float(self.value or 0),
            "is_in_new_order": self.is_in_new_order,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """Catalog row joined to orders by normalized SKU."""
    __tablename__ = "products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sku_id = db.Column(db.String(100), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    image = db.Column(db.String(512), nullable=True)
    account_code = db.Column(db.String(64), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "sku_id": self.sku_id,
            "name": self.name,
            "image": self.image,
            "account_code": self.account_code,
        }
