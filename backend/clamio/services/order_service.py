# Overview: Service-layer operations for order claim and assignment.

"""
Order Service

An order line is either unclaimed (vendor_name null) or claimed by one
vendor, identified by warehouse id. Vendors claim unclaimed lines; admins
assign or unassign any line. Each read-check-write takes a row lock.

BULK POLICY: best-effort. Every id is attempted, failures are reported per
id with a reason, and the successful transitions are committed together.
"""

import logging

from ..extensions import db
from ..models import Order, User
from .concurrency import lock_for_update
from clamio.time_utils import utcnow


logger = logging.getLogger(__name__)


class OrderNotFoundError(Exception):
    """Raised when an order line is not found."""
    pass


class OrderStateError(Exception):
    """Raised when an order line is not in the state a transition needs."""
    pass


def _locked_order(unique_id: str) -> Order:
    order = lock_for_update(
        db.session.query(Order).filter(Order.unique_id == unique_id)
    ).first()
    if not order:
        raise OrderNotFoundError("Order row not found")
    return order


def _vendor_for_warehouse(warehouse_id: str) -> User:
    vendor = db.session.query(User).filter(
        User.role == "vendor",
        User.warehouse_id == str(warehouse_id),
    ).first()
    if not vendor:
        raise OrderStateError("Vendor not found for warehouse ID")
    if not vendor.is_active:
        raise OrderStateError("Vendor account is inactive")
    return vendor


def _mark_claimed(order: Order, vendor: User) -> None:
    now = utcnow()
    order.status = "claimed"
    order.vendor_name = vendor.warehouse_id
    order.vendor_id = vendor.id
    order.claimed_at = now
    order.last_claimed_by = vendor.warehouse_id
    order.last_claimed_at = now


def _mark_unclaimed(order: Order) -> None:
    order.status = "unclaimed"
    order.vendor_name = None
    order.vendor_id = None
    order.claimed_at = None


def _claim(unique_id: str, vendor: User) -> Order:
    order = _locked_order(unique_id)
    if order.status != "unclaimed":
        raise OrderStateError("Order row is not unclaimed")
    _mark_claimed(order, vendor)
    return order


def _assign(unique_id: str, vendor: User) -> Order:
    # Reassigning to a different vendor overwrites the previous claim
    order = _locked_order(unique_id)
    _mark_claimed(order, vendor)
    return order


def _unassign(unique_id: str) -> Order:
    order = _locked_order(unique_id)
    _mark_unclaimed(order)
    return order


def claim_order(unique_id: str, vendor: User) -> Order:
    order = _claim(unique_id, vendor)
    db.session.commit()
    return order


def assign_order(unique_id: str, warehouse_id: str) -> Order:
    vendor = _vendor_for_warehouse(warehouse_id)
    order = _assign(unique_id, vendor)
    db.session.commit()
    return order


def unassign_order(unique_id: str) -> Order:
    order = _unassign(unique_id)
    db.session.commit()
    return order


def _run_bulk(unique_ids: list[str], apply, label: str) -> dict:
    successful = []
    failed = []
    for unique_id in dict.fromkeys(unique_ids):
        try:
            order = apply(unique_id)
        except (OrderNotFoundError, OrderStateError) as e:
            failed.append({"unique_id": unique_id, "reason": str(e)})
            continue
        successful.append({
            "unique_id": order.unique_id,
            "order_id": order.order_id,
            "status": order.status,
            "vendor_name": order.vendor_name,
        })
    db.session.commit()

    logger.info("Bulk %s: %s succeeded, %s failed", label, len(successful), len(failed))
    return {
        "successful": successful,
        "failed": failed,
        "total_requested": len(successful) + len(failed),
        "total_successful": len(successful),
        "total_failed": len(failed),
    }


def bulk_claim(unique_ids: list[str], vendor: User) -> dict:
    return _run_bulk(unique_ids, lambda uid: _claim(uid, vendor), "claim")


def bulk_assign(unique_ids: list[str], warehouse_id: str) -> dict:
    vendor = _vendor_for_warehouse(warehouse_id)
    return _run_bulk(unique_ids, lambda uid: _assign(uid, vendor), "assign")


def bulk_unassign(unique_ids: list[str]) -> dict:
    return _run_bulk(unique_ids, _unassign, "unassign")


def update_status(unique_id: str, status: str) -> Order:
    """Record a carrier-side status change (handover, in_transit, delivered, ...)."""
    status = (status or "").strip().lower()
    if not status:
        raise OrderStateError("Status is required")
    order = _locked_order(unique_id)
    order.status = status
    db.session.commit()
    return order


def get_order(unique_id: str) -> Order:
    order = db.session.get(Order, unique_id)
    if not order:
        raise OrderNotFoundError("Order row not found")
    return order


def list_orders(
    *,
    status: str | None = None,
    vendor_name: str | None = None,
    account_code: str | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[Order], int]:
    query = db.session.query(Order)
    if status:
        query = query.filter(Order.status == status)
    if vendor_name:
        query = query.filter(Order.vendor_name == vendor_name)
    if account_code:
        query = query.filter(Order.account_code == account_code)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Order.order_id.ilike(like),
            Order.unique_id.ilike(like),
            Order.product_name.ilike(like),
            Order.product_code.ilike(like),
        ))
    total = query.count()
    orders = (
        query.order_by(Order.created_at.desc(), Order.unique_id)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return orders, total


def list_vendor_orders(vendor: User, status: str | None = None) -> list[Order]:
    query = db.session.query(Order).filter(Order.vendor_name == vendor.warehouse_id)
    if status:
        query = query.filter(Order.status == status)
    return query.order_by(Order.claimed_at.desc(), Order.unique_id).all()
