# Overview: Flask API routes for operational notifications; parses input and returns JSON responses.

import math

from flask import Blueprint, current_app, g, request

from ..decorators import require_admin_or_superadmin, require_any_user, require_auth, require_superadmin
from ..responses import fail, ok
from ..services import notification_service
from ..services.notification_service import NotificationNotFoundError, NotificationValidationError
from ..time_utils import parse_date_bound
from ..validation import NOTIFICATION_CREATE, validate_body


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
@require_admin_or_superadmin
def list_notifications_route():
    """
    List notifications, most actionable first.

    Query parameters: status, type, severity, vendor_id, order_id (substring),
    start_date, end_date, search, page (default 1), limit (1-10000, default 20)
    """
    try:
        start = parse_date_bound(request.args.get("start_date"))
        end = parse_date_bound(request.args.get("end_date"), end_of_day=True)
    except ValueError:
        return fail("Dates must be ISO-8601 (YYYY-MM-DD)", 400)

    page = max(1, request.args.get("page", 1, type=int))
    limit = notification_service.clamp_limit(request.args.get("limit", notification_service.DEFAULT_LIMIT))

    items, total = notification_service.list_notifications(
        status=request.args.get("status"),
        type=request.args.get("type"),
        severity=request.args.get("severity"),
        vendor_id=request.args.get("vendor_id", type=int),
        order_id=request.args.get("order_id"),
        start_date=start,
        end_date=end,
        search=request.args.get("search"),
        page=page,
        limit=limit,
    )
    return ok({
        "notifications": [n.to_dict() for n in items],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit),
        },
        "stats": notification_service.status_severity_counts(),
    })


@notifications_bp.get("/stats")
@require_auth
@require_admin_or_superadmin
def notification_stats_route():
    return ok(notification_service.stats_overview())


@notifications_bp.get("/<int:notification_id>")
@require_auth
@require_admin_or_superadmin
def get_notification_route(notification_id: int):
    try:
        return ok(notification_service.get_notification(notification_id).to_dict())
    except NotificationNotFoundError as e:
        return fail(str(e), 404)


@notifications_bp.post("")
@require_auth
@require_any_user
@validate_body(NOTIFICATION_CREATE)
def create_notification_route():
    data = request.get_json(silent=True) or {}
    try:
        notification = notification_service.create_notification(data, author=g.current_user)
        return ok(notification.to_dict(), "Notification created successfully", 201)
    except NotificationValidationError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to create notification")
        return fail("Failed to create notification", 500)


@notifications_bp.patch("/<int:notification_id>/status")
@require_auth
@require_admin_or_superadmin
def update_notification_status_route(notification_id: int):
    data = request.get_json(silent=True) or {}
    try:
        notification = notification_service.update_status(notification_id, data.get("status"))
        return ok(notification.to_dict(), "Notification status updated successfully")
    except NotificationValidationError as e:
        return fail(str(e), 400)
    except NotificationNotFoundError as e:
        return fail(str(e), 404)


@notifications_bp.post("/<int:notification_id>/resolve")
@require_auth
@require_admin_or_superadmin
def resolve_notification_route(notification_id: int):
    data = request.get_json(silent=True) or {}
    try:
        notification = notification_service.resolve(
            notification_id, g.current_user, data.get("resolution_notes"),
        )
        return ok(notification.to_dict(), "Notification resolved successfully")
    except NotificationNotFoundError as e:
        return fail(str(e), 404)


@notifications_bp.post("/<int:notification_id>/dismiss")
@require_auth
@require_admin_or_superadmin
def dismiss_notification_route(notification_id: int):
    data = request.get_json(silent=True) or {}
    try:
        reason = data.get("dismiss_reason") or data.get("reason")
        notification = notification_service.dismiss(notification_id, g.current_user, reason)
        return ok(notification.to_dict(), "Notification dismissed successfully")
    except NotificationNotFoundError as e:
        return fail(str(e), 404)


@notifications_bp.post("/bulk-resolve")
@require_auth
@require_admin_or_superadmin
def bulk_resolve_route():
    data = request.get_json(silent=True) or {}
    ids = data.get("notification_ids")
    try:
        count = notification_service.bulk_resolve(ids, g.current_user, data.get("resolution_notes"))
        return ok({"resolved": count}, f"{len(ids)} notifications resolved successfully")
    except NotificationValidationError as e:
        return fail(str(e), 400)


@notifications_bp.delete("/<int:notification_id>")
@require_auth
@require_superadmin
def delete_notification_route(notification_id: int):
    try:
        notification_service.delete_notification(notification_id)
        return ok(message="Notification deleted successfully")
    except NotificationNotFoundError as e:
        return fail(str(e), 404)
