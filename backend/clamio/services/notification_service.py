# Overview: Service-layer operations for the operational notification ledger.

"""
Notification Service

Alerts are listed most-actionable first: by status (pending, in_progress,
resolved, dismissed), then severity (critical, high, medium, low), then
newest. Resolve and dismiss record who closed the alert and when.
"""

from datetime import timedelta

from ..extensions import db
from ..models import Notification, User
from ..models.notifications import NOTIFICATION_SEVERITIES, NOTIFICATION_STATUSES
from clamio.time_utils import utcnow


MAX_LIMIT = 10000
DEFAULT_LIMIT = 20


class NotificationNotFoundError(Exception):
    """Raised when a notification is not found."""
    pass


class NotificationValidationError(Exception):
    """Raised when notification input fails validation."""
    pass


STATUS_RANK = db.case(
    {status: rank for rank, status in enumerate(NOTIFICATION_STATUSES, start=1)},
    value=Notification.status,
    else_=len(NOTIFICATION_STATUSES) + 1,
)
SEVERITY_RANK = db.case(
    {severity: rank for rank, severity in enumerate(NOTIFICATION_SEVERITIES, start=1)},
    value=Notification.severity,
    else_=len(NOTIFICATION_SEVERITIES) + 1,
)


def clamp_limit(raw) -> int:
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, limit))


def list_notifications(
    *,
    status: str | None = None,
    type: str | None = None,
    severity: str | None = None,
    vendor_id: int | None = None,
    order_id: str | None = None,
    start_date=None,
    end_date=None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> tuple[list[Notification], int]:
    query = db.session.query(Notification)
    if status:
        query = query.filter(Notification.status == status)
    if type:
        query = query.filter(Notification.type == type)
    if severity:
        query = query.filter(Notification.severity == severity)
    if vendor_id is not None:
        query = query.filter(Notification.vendor_id == vendor_id)
    if order_id:
        query = query.filter(Notification.order_id.ilike(f"%{order_id}%"))
    if start_date:
        query = query.filter(Notification.created_at >= start_date)
    if end_date:
        query = query.filter(Notification.created_at <= end_date)
    if search:
        like = f"%{search}%"
        query = query.filter(db.or_(
            Notification.title.ilike(like),
            Notification.message.ilike(like),
            Notification.vendor_name.ilike(like),
            Notification.order_id.ilike(like),
        ))

    total = query.count()
    limit = clamp_limit(limit)
    offset = max(0, (page - 1) * limit)
    items = (
        query.order_by(STATUS_RANK, SEVERITY_RANK, Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return items, total


def status_severity_counts() -> list[dict]:
    rows = (
        db.session.query(Notification.status, Notification.severity, db.func.count(Notification.id))
        .group_by(Notification.status, Notification.severity)
        .all()
    )
    return [{"status": s, "severity": sev, "count": c} for s, sev, c in rows]


def get_notification(notification_id: int) -> Notification:
    notification = db.session.get(Notification, notification_id)
    if not notification:
        raise NotificationNotFoundError("Notification not found")
    return notification


def create_notification(data: dict, author: User | None = None) -> Notification:
    """
    Create an alert.

    When a vendor raises it, the vendor identity comes from the account,
    not from the body.
    """
    type_ = (data.get("type") or "").strip()
    title = (data.get("title") or "").strip()
    message = (data.get("message") or "").strip()
    if not type_ or not title or not message:
        raise NotificationValidationError("Type, title, and message are required")

    severity = data.get("severity") or "medium"
    if severity not in NOTIFICATION_SEVERITIES:
        raise NotificationValidationError("Invalid severity value")

    vendor_id = data.get("vendor_id")
    vendor_name = data.get("vendor_name")
    warehouse_id = data.get("vendor_warehouse_id")
    if author is not None and author.role == "vendor":
        vendor_id = author.id
        vendor_name = author.name
        warehouse_id = author.warehouse_id

    metadata = data.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        metadata = {"value": metadata}

    now = utcnow()
    notification = Notification(
        type=type_,
        severity=severity,
        status="pending",
        title=title,
        message=message,
        order_id=data.get("order_id"),
        vendor_id=vendor_id,
        vendor_name=vendor_name,
        vendor_warehouse_id=warehouse_id,
        extra_data=metadata,
        error_details=data.get("error_details"),
        created_at=now,
        updated_at=now,
    )
    db.session.add(notification)
    db.session.commit()
    return notification


def update_status(notification_id: int, status: str) -> Notification:
    if status not in NOTIFICATION_STATUSES:
        raise NotificationValidationError("Invalid status value")
    notification = get_notification(notification_id)
    notification.status = status
    notification.updated_at = utcnow()
    db.session.commit()
    return notification


def _close(notification: Notification, status: str, actor: User, notes: str | None) -> None:
    now = utcnow()
    notification.status = status
    notification.resolved_by = actor.id
    notification.resolved_by_name = actor.name
    notification.resolved_at = now
    notification.resolution_notes = notes
    notification.updated_at = now


def resolve(notification_id: int, actor: User, notes: str | None = None) -> Notification:
    notification = get_notification(notification_id)
    _close(notification, "resolved", actor, notes or None)
    db.session.commit()
    return notification


def dismiss(notification_id: int, actor: User, reason: str | None = None) -> Notification:
    notification = get_notification(notification_id)
    notes = f"Dismissed: {reason}" if reason else "Dismissed by admin"
    _close(notification, "dismissed", actor, notes)
    db.session.commit()
    return notification


def bulk_resolve(notification_ids: list, actor: User, notes: str | None = None) -> int:
    """Resolve many alerts with a single UPDATE; returns rows touched."""
    if not isinstance(notification_ids, list) or not notification_ids:
        raise NotificationValidationError("notification_ids array is required")

    now = utcnow()
    count = (
        db.session.query(Notification)
        .filter(Notification.id.in_(notification_ids))
        .update(
            {
                Notification.status: "resolved",
                Notification.resolved_by: actor.id,
                Notification.resolved_by_name: actor.name,
                Notification.resolved_at: now,
                Notification.resolution_notes: notes or "Bulk resolved",
                Notification.updated_at: now,
            },
            synchronize_session=False,
        )
    )
    db.session.commit()
    return count


def delete_notification(notification_id: int) -> None:
    notification = get_notification(notification_id)
    db.session.delete(notification)
    db.session.commit()


def stats_overview() -> dict:
    now = utcnow()

    def _count(*criteria) -> int:
        return db.session.query(db.func.count(Notification.id)).filter(*criteria).scalar() or 0

    overview = {"total": _count()}
    for status in NOTIFICATION_STATUSES:
        overview[status] = _count(Notification.status == status)
    for severity in NOTIFICATION_SEVERITIES:
        overview[severity] = _count(Notification.severity == severity)
    overview["last_24h"] = _count(Notification.created_at >= now - timedelta(hours=24))
    overview["last_7days"] = _count(Notification.created_at >= now - timedelta(days=7))

    pending = db.func.sum(db.case((Notification.status == "pending", 1), else_=0))
    by_type = (
        db.session.query(Notification.type, db.func.count(Notification.id), pending)
        .group_by(Notification.type)
        .order_by(db.func.count(Notification.id).desc())
        .all()
    )
    return {
        "overview": overview,
        "by_type": [
            {"type": t, "count": c, "pending_count": int(p or 0)} for t, c, p in by_type
        ],
    }
