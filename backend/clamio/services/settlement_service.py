# Overview: Service-layer operations for vendor settlements and payout transactions.

"""
Settlement Service

A vendor's current payment is the value of their handover orders minus
what approved settlements already paid, floored at zero. A settlement
request snapshots that balance; an admin then approves it (fully or
partially) or rejects it. Both are terminal.

Approval writes the settlement update and its Transaction in one commit.
Request creation locks the vendor row and approval/rejection lock the
settlement row so concurrent requests serialize on MySQL.
"""

import csv
import io
import logging
import os
import re
import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from flask import current_app
from werkzeug.utils import secure_filename

from ..extensions import db
from ..models import Order, Settlement, Transaction, User
from .concurrency import lock_for_update, run_with_retry
from clamio.time_utils import utcnow, to_utc_z


logger = logging.getLogger(__name__)

UPI_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z0-9.-]+$")
CURRENCY = "INR"
CENT = Decimal("0.01")
PROOF_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}


class SettlementError(Exception):
    """Raised for settlement rule violations; `code` names the rule."""

    STATUS_BY_CODE = {
        "NOT_FOUND": 404,
    }

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def http_status(self) -> int:
        return self.STATUS_BY_CODE.get(self.code, 400)


def _money(value) -> Decimal:
    if value is None:
        value = 0
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def is_valid_upi_id(upi_id: str | None) -> bool:
    return bool(upi_id) and bool(UPI_PATTERN.match(upi_id))


def _handover_orders(vendor: User) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.vendor_name == vendor.warehouse_id, Order.status == "handover")
        .order_by(Order.unique_id)
        .all()
    )


def _sum_order_value(vendor: User, status: str) -> Decimal:
    total = db.session.query(db.func.coalesce(db.func.sum(Order.value), 0)).filter(
        Order.vendor_name == vendor.warehouse_id,
        Order.status == status,
    ).scalar()
    return _money(total)


def _settled_amount(vendor: User) -> Decimal:
    total = db.session.query(db.func.coalesce(db.func.sum(Settlement.amount_paid), 0)).filter(
        Settlement.vendor_id == vendor.id,
        Settlement.status == "approved",
    ).scalar()
    return _money(total)


def current_payment(vendor: User) -> Decimal:
    """Handover value minus approved payouts, never negative."""
    remaining = _sum_order_value(vendor, "handover") - _settled_amount(vendor)
    return max(_money(remaining), Decimal("0.00"))


def vendor_payments(vendor: User) -> dict:
    return {
        "currentPayment": float(current_payment(vendor)),
        "futurePayment": float(_sum_order_value(vendor, "in_pack")),
        "currency": CURRENCY,
    }


def create_request(vendor: User, upi_id: str) -> Settlement:
    """
    Create a settlement for the vendor's whole remaining balance.

    Raises SettlementError INVALID_UPI or NOTHING_TO_SETTLE.
    """
    upi_id = (upi_id or "").strip()
    if not is_valid_upi_id(upi_id):
        raise SettlementError("INVALID_UPI", "Invalid UPI ID format")

    vendor_id = vendor.id

    def _op():
        # Serializes concurrent requests from the same vendor
        locked = lock_for_update(db.session.query(User).filter(User.id == vendor_id)).first()

        remaining = current_payment(locked)
        if remaining <= 0:
            db.session.rollback()
            raise SettlementError(
                "NOTHING_TO_SETTLE",
                "No amount available for settlement. All eligible amounts have been settled.",
            )

        order_ids = [o.unique_id for o in _handover_orders(locked)]
        settlement = Settlement(
            vendor_id=locked.id,
            vendor_name=locked.name,
            amount=remaining,
            currency=CURRENCY,
            upi_id=upi_id,
            order_ids=",".join(order_ids),
            number_of_orders=len(order_ids),
            status="pending",
            created_at=utcnow(),
        )
        db.session.add(settlement)
        db.session.commit()
        return settlement

    settlement = run_with_retry(_op)
    logger.info("Settlement %s requested by vendor %s for %s", settlement.id, vendor_id, settlement.amount)
    return settlement


def get_settlement(settlement_id: int) -> Settlement:
    settlement = db.session.get(Settlement, settlement_id)
    if not settlement:
        raise SettlementError("NOT_FOUND", "Settlement not found")
    return settlement


def _locked_pending(settlement_id: int) -> Settlement:
    settlement = lock_for_update(
        db.session.query(Settlement).filter(Settlement.id == settlement_id)
    ).first()
    if not settlement:
        db.session.rollback()
        raise SettlementError("NOT_FOUND", "Settlement not found")
    if settlement.status != "pending":
        db.session.rollback()
        raise SettlementError("NOT_PENDING", "Settlement is not in pending status")
    return settlement


def parse_amount(raw) -> Decimal:
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, AttributeError):
        raise SettlementError("INVALID_AMOUNT", "Amount paid must be a valid number")
    if not amount.is_finite() or amount < CENT:
        raise SettlementError("INVALID_AMOUNT", "Amount paid must be at least 0.01")
    return _money(amount)


def _store_proof(proof) -> str:
    filename = secure_filename(proof.filename or "")
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in PROOF_EXTENSIONS:
        raise SettlementError("INVALID_PROOF", "Only image files are allowed for payment proof")

    folder = proof_folder()
    os.makedirs(folder, exist_ok=True)
    stored = f"paymentProof-{utcnow().strftime('%Y%m%d%H%M%S')}-{uuid.uuid4().hex[:8]}.{ext}"
    proof.save(os.path.join(folder, stored))
    return stored


def approve(settlement_id: int, *, amount_paid, transaction_id: str, approver: User, proof=None) -> tuple[Settlement, Transaction]:
    """
    Approve a pending settlement and record the payout transaction.

    Raises SettlementError NOT_FOUND, NOT_PENDING, INVALID_AMOUNT,
    AMOUNT_EXCEEDS_REQUEST or INVALID_PROOF.
    """
    paid = parse_amount(amount_paid)
    settlement = _locked_pending(settlement_id)

    requested = _money(settlement.amount)
    if paid > requested:
        db.session.rollback()
        raise SettlementError("AMOUNT_EXCEEDS_REQUEST", "Amount paid cannot exceed requested amount")

    proof_name = None
    if proof is not None and proof.filename:
        try:
            proof_name = _store_proof(proof)
        except SettlementError:
            db.session.rollback()
            raise

    settlement.status = "approved"
    settlement.payment_status = "settled_fully" if paid == requested else "settled_partially"
    settlement.amount_paid = paid
    settlement.transaction_id = transaction_id
    settlement.payment_proof_path = proof_name
    settlement.approved_by = approver.id
    settlement.approved_at = utcnow()

    description = f"Settlement payment for settlement {settlement.id}. Transaction ID: {transaction_id}"
    if proof_name:
        description += f". Payment proof: {proof_name}"
    transaction = Transaction(
        vendor_id=settlement.vendor_id,
        settlement_id=settlement.id,
        amount=paid,
        type="settlement",
        description=description,
        created_at=utcnow(),
    )
    db.session.add(transaction)

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        if proof_name:
            os.remove(os.path.join(proof_folder(), proof_name))
        raise

    logger.info("Settlement %s approved by %s: %s (%s)", settlement.id, approver.id, paid, settlement.payment_status)
    return settlement, transaction


def reject(settlement_id: int, *, reason: str, rejecter: User) -> Settlement:
    rejecter_id = rejecter.id

    def _op():
        settlement = _locked_pending(settlement_id)
        settlement.status = "rejected"
        settlement.rejection_reason = reason
        settlement.rejected_by = rejecter_id
        settlement.rejected_at = utcnow()
        db.session.commit()
        return settlement

    settlement = run_with_retry(_op)
    logger.info("Settlement %s rejected by %s", settlement.id, rejecter_id)
    return settlement


def vendor_settlements(vendor: User) -> list[Settlement]:
    return (
        db.session.query(Settlement)
        .filter(Settlement.vendor_id == vendor.id)
        .order_by(Settlement.created_at.desc(), Settlement.id.desc())
        .all()
    )


def vendor_transactions(vendor: User) -> list[Transaction]:
    return (
        db.session.query(Transaction)
        .filter(Transaction.vendor_id == vendor.id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )


def _filtered(status=None, vendor_name=None, start_date=None, end_date=None):
    query = db.session.query(Settlement)
    if status:
        query = query.filter(Settlement.status == status)
    if vendor_name:
        query = query.filter(Settlement.vendor_name.ilike(f"%{vendor_name.strip()}%"))
    if start_date:
        query = query.filter(Settlement.created_at >= start_date)
    if end_date:
        query = query.filter(Settlement.created_at <= end_date)
    return query.order_by(Settlement.created_at.desc(), Settlement.id.desc())


def list_settlements(*, status=None, vendor_name=None, start_date=None, end_date=None,
                     page: int = 1, limit: int = 10) -> tuple[list[Settlement], int]:
    query = _filtered(status, vendor_name, start_date, end_date)
    total = query.count()
    return query.offset((page - 1) * limit).limit(limit).all(), total


EXPORT_COLUMNS = [
    "Settlement ID", "Vendor Name", "Amount", "Currency", "UPI ID", "Orders",
    "Status", "Payment Status", "Amount Paid", "Transaction ID", "Requested At",
    "Approved At", "Rejected At", "Rejection Reason",
]


def export_csv(*, status=None, vendor_name=None, start_date=None, end_date=None) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for s in _filtered(status, vendor_name, start_date, end_date).all():
        writer.writerow([
            s.id,
            s.vendor_name,
            f"{_money(s.amount):.2f}",
            s.currency,
            s.upi_id,
            s.number_of_orders,
            s.status,
            s.payment_status or "pending",
            f"{_money(s.amount_paid):.2f}" if s.amount_paid is not None else "",
            s.transaction_id or "",
            to_utc_z(s.created_at) or "",
            to_utc_z(s.approved_at) or "",
            to_utc_z(s.rejected_at) or "",
            s.rejection_reason or "",
        ])
    return buffer.getvalue()


def proof_folder() -> str:
    folder = current_app.config["PAYMENT_PROOF_FOLDER"]
    if not os.path.isabs(folder):
        folder = os.path.join(current_app.root_path, "..", folder)
    return os.path.abspath(folder)


def proof_path(filename: str) -> str:
    """Resolve a stored proof file, raising NOT_FOUND when it is gone."""
    safe = secure_filename(filename or "")
    path = os.path.join(proof_folder(), safe)
    if not safe or not os.path.isfile(path):
        raise SettlementError("NOT_FOUND", "Payment proof not found")
    return path
