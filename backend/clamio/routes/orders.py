# Overview: Flask API routes for order claim and assignment; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, request

from ..decorators import (
    require_admin_or_superadmin, require_any_user, require_auth, require_database, require_vendor,
    require_vendor_session,
)
from ..responses import fail, ok
from ..services import order_service
from ..services.order_service import OrderNotFoundError, OrderStateError


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _id_list(data: dict) -> list[str] | None:
    ids = data.get("unique_ids")
    if not isinstance(ids, list) or not ids:
        return None
    return [str(i).strip() for i in ids if str(i).strip()]


def _warehouse_id(data: dict) -> str:
    """The dashboard sends vendor_warehouse_id; warehouse_id is also accepted."""
    return str(data.get("vendor_warehouse_id") or data.get("warehouse_id") or "").strip()


@orders_bp.get("")
@orders_bp.get("/admin/all")
@require_auth
@require_admin_or_superadmin
def list_orders_route():
    """
    List order lines.

    Query parameters: status, vendor (warehouse id), account_code, search,
    limit (1-500, default 100), offset
    """
    limit = request.args.get("limit", 100, type=int)
    offset = request.args.get("offset", 0, type=int)
    limit = max(1, min(limit, 500))
    offset = max(offset, 0)

    orders, total = order_service.list_orders(
        status=request.args.get("status"),
        vendor_name=request.args.get("vendor"),
        account_code=request.args.get("account_code"),
        search=request.args.get("search"),
        limit=limit,
        offset=offset,
    )
    return ok({"orders": [o.to_dict() for o in orders], "count": total, "limit": limit, "offset": offset})


@orders_bp.get("/unclaimed")
@require_auth
@require_any_user
def unclaimed_orders_route():
    orders, total = order_service.list_orders(status="unclaimed", limit=500)
    return ok({"orders": [o.to_dict() for o in orders], "count": total})


@orders_bp.get("/vendor")
@require_auth
@require_vendor
def vendor_orders_route():
    orders = order_service.list_vendor_orders(g.current_user, request.args.get("status"))
    return ok({"orders": [o.to_dict() for o in orders], "count": len(orders)})


@orders_bp.post("/claim")
@require_vendor_session
@require_vendor
@require_database
def claim_order_route():
    data = request.get_json(silent=True) or {}
    unique_id = str(data.get("unique_id") or "").strip()
    if not unique_id:
        return fail("unique_id is required", 400)
    try:
        order = order_service.claim_order(unique_id, g.current_user)
        return ok(order.to_dict(), "Order claimed successfully")
    except OrderNotFoundError as e:
        return fail(str(e), 404)
    except OrderStateError as e:
        return fail(str(e), 400)
    except Exception:
        current_app.logger.exception("Failed to claim order")
        return fail("Failed to claim order", 500)


@orders_bp.post("/bulk-claim")
@require_vendor_session
@require_vendor
@require_database
def bulk_claim_route():
    ids = _id_list(request.get_json(silent=True) or {})
    if ids is None:
        return fail("unique_ids array is required", 400)
    result = order_service.bulk_claim(ids, g.current_user)
    return ok(result, f"Claimed {result['total_successful']} of {result['total_requested']} orders")


@orders_bp.post("/assign")
@orders_bp.post("/admin/assign")
@require_auth
@require_admin_or_superadmin
@require_database
def assign_order_route():
    data = request.get_json(silent=True) or {}
    unique_id = str(data.get("unique_id") or "").strip()
    warehouse_id = _warehouse_id(data)
    if not unique_id or not warehouse_id:
        return fail("unique_id and vendor_warehouse_id are required", 400)
    try:
        order = order_service.assign_order(unique_id, warehouse_id)
        return ok(order.to_dict(), "Order assigned successfully")
    except OrderNotFoundError as e:
        return fail(str(e), 404)
    except OrderStateError as e:
        return fail(str(e), 400)


@orders_bp.post("/unassign")
@orders_bp.post("/admin/unassign")
@require_auth
@require_admin_or_superadmin
@require_database
def unassign_order_route():
    data = request.get_json(silent=True) or {}
    unique_id = str(data.get("unique_id") or "").strip()
    if not unique_id:
        return fail("unique_id is required", 400)
    try:
        order = order_service.unassign_order(unique_id)
        return ok(order.to_dict(), "Order unassigned successfully")
    except OrderNotFoundError as e:
        return fail(str(e), 404)


@orders_bp.post("/bulk-assign")
@orders_bp.post("/admin/bulk-assign")
@require_auth
@require_admin_or_superadmin
@require_database
def bulk_assign_route():
    data = request.get_json(silent=True) or {}
    ids = _id_list(data)
    warehouse_id = _warehouse_id(data)
    if ids is None or not warehouse_id:
        return fail("unique_ids array and vendor_warehouse_id are required", 400)
    try:
        result = order_service.bulk_assign(ids, warehouse_id)
    except OrderStateError as e:
        return fail(str(e), 400)
    return ok(result, f"Assigned {result['total_successful']} of {result['total_requested']} orders")


@orders_bp.post("/bulk-unassign")
@orders_bp.post("/admin/bulk-unassign")
@require_auth
@require_admin_or_superadmin
@require_database
def bulk_unassign_route():
    ids = _id_list(request.get_json(silent=True) or {})
    if ids is None:
        return fail("unique_ids array is required", 400)
    result = order_service.bulk_unassign(ids)
    return ok(result, f"Unassigned {result['total_successful']} of {result['total_requested']} orders")


@orders_bp.patch("/<unique_id>/status")
@require_auth
@require_admin_or_superadmin
def update_order_status_route(unique_id: str):
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.update_status(unique_id, data.get("status"))
        return ok(order.to_dict(), "Order status updated")
    except OrderNotFoundError as e:
        return fail(str(e), 404)
    except OrderStateError as e:
        return fail(str(e), 400)
