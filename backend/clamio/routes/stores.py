# Overview: Flask API routes for store management; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import require_admin_or_superadmin, require_auth, require_superadmin
from ..responses import fail, ok
from ..services import store_service
from ..services.store_service import StoreNotFoundError, StoreValidationError


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_auth
@require_admin_or_superadmin
def list_stores_route():
    include_inactive = request.args.get("include_inactive", "true").lower() == "true"
    stores = store_service.list_stores(include_inactive=include_inactive)
    return ok([s.to_dict() for s in stores])


@stores_bp.post("")
@require_auth
@require_superadmin
def create_store_route():
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.create_store(
            account_code=data.get("account_code"),
            store_name=data.get("store_name"),
            status=data.get("status", "active"),
        )
        return ok(store.to_dict(), "Store created successfully", 201)
    except StoreValidationError as e:
        return fail(str(e), 400)


@stores_bp.patch("/<account_code>/toggle-status")
@require_auth
@require_superadmin
def toggle_store_route(account_code: str):
    try:
        store = store_service.toggle_status(account_code)
        return ok(store.to_dict(), f"Store status changed to {store.status}")
    except StoreNotFoundError as e:
        return fail(str(e), 404)
