from __future__ import annotations

from ..extensions import db
from clamio.time_utils import to_utc_z


SETTLEMENT_STATUSES = ("pending", "approved", "rejected")
PAYMENT_STATUSES = ("settled_fully", "settled_partially")


class Settlement(db.Model):
    """
    Vendor payout request.

    `amount` is the remaining balance snapshotted at request time;
    `amount_paid` never exceeds it. `order_ids` is the comma-joined list of
    handover lines the request was computed from.
    """
    __tablename__ = "settlements"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    vendor_name = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(8), nullable=False, default="INR")
    upi_id = db.Column(db.String(100), nullable=False)
    order_ids = db.Column(db.Text, nullable=True)
    number_of_orders = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(32), nullable=True)
    amount_paid = db.Column(db.Numeric(12, 2), nullable=True)
    transaction_id = db.Column(db.String(100), nullable=True)
    payment_proof_path = db.Column(db.String(512), nullable=True)

    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    rejected_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    rejected_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "vendorId": self.vendor_id,
            "vendorName": self.vendor_name,
            "amount": float(self.amount),
            "currency": self.currency,
            "upiId": self.upi_id,
            "orderIds": self.order_ids,
            "numberOfOrders": self.number_of_orders,
            "status": self.status,
            "paymentStatus": self.payment_status,
            "amountPaid": float(self.amount_paid) if self.amount_paid is not None else None,
            "transactionId": self.transaction_id,
            "paymentProofPath": self.payment_proof_path,
            "approvedBy": self.approved_by,
            "approvedAt": to_utc_z(self.approved_at),
            "rejectionReason": self.rejection_reason,
            "rejectedBy": self.rejected_by,
            "rejectedAt": to_utc_z(self.rejected_at),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Transaction(db.Model):
    """Append-only payout ledger entry written when a settlement is approved."""
    __tablename__ = "transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    settlement_id = db.Column(db.Integer, db.ForeignKey("settlements.id"), nullable=True, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    type = db.Column(db.String(32), nullable=False, default="settlement")
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "vendorId": self.vendor_id,
            "settlementId": self.settlement_id,
            "amount": float(self.amount),
            "type": self.type,
            "description": self.description,
            "createdAt": to_utc_z(self.created_at),
        }
