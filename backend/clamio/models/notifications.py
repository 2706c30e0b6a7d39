from __future__ import annotations

from ..extensions import db
from clamio.time_utils import to_utc_z


NOTIFICATION_STATUSES = ("pending", "in_progress", "resolved", "dismissed")
NOTIFICATION_SEVERITIES = ("critical", "high", "medium", "low")


class Notification(db.Model):
    """
    Operational alert raised by vendors or background jobs.

    resolved_* fields are only written by the resolve and dismiss
    transitions.
    """
    __tablename__ = "notifications"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(64), nullable=False, index=True)
    severity = db.Column(db.String(16), nullable=False, default="medium", index=True)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)

    order_id = db.Column(db.String(100), nullable=True, index=True)
    vendor_id = db.Column(db.Integer, nullable=True, index=True)
    vendor_name = db.Column(db.String(100), nullable=True)
    vendor_warehouse_id = db.Column(db.String(64), nullable=True)

    # "metadata" is reserved on declarative models
    extra_data = db.Column("metadata", db.JSON, nullable=True)
    error_details = db.Column(db.Text, nullable=True)

    resolved_by = db.Column(db.Integer, nullable=True)
    resolved_by_name = db.Column(db.String(100), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    resolution_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "severity": self.severity,
            "status": self.status,
            "title": self.title,
            "message": self.message,
            "order_id": self.order_id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "vendor_warehouse_id": self.vendor_warehouse_id,
            "metadata": self.extra_data,
            "error_details": self.error_details,
            "resolved_by": self.resolved_by,
            "resolved_by_name": self.resolved_by_name,
            "resolved_at": to_utc_z(self.resolved_at),
            "resolution_notes": self.resolution_notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
