# Overview: Health and API index endpoints.

from flask import Blueprint, current_app, url_for

from ..responses import ok
from ..time_utils import utcnow, to_utc_z


system_bp = Blueprint("system", __name__)


@system_bp.get("/health")
def health_route():
    return ok({
        "status": "OK",
        "timestamp": to_utc_z(utcnow()),
        "environment": current_app.config.get("ENVIRONMENT"),
        "version": current_app.config.get("APP_VERSION"),
    }, "Server is running")


@system_bp.get("/api")
def api_index_route():
    return ok({
        "auth": url_for("auth.login_route"),
        "users": url_for("users.list_users_route"),
        "orders": url_for("orders.list_orders_route"),
        "carriers": url_for("carriers.list_carriers_route"),
        "stores": url_for("stores.list_stores_route"),
        "settlements": url_for("settlements.list_settlements_route"),
        "notifications": url_for("notifications.list_notifications_route"),
        "inventory": url_for("inventory.aggregate_inventory_route"),
    }, "Clamio fulfillment API")
