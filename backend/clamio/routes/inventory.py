# Overview: Flask API routes for the admin inventory views; parses uploads and returns JSON responses.

from flask import Blueprint, current_app, request

from ..decorators import require_admin_or_superadmin, require_auth
from ..responses import fail, ok
from ..services import inventory_service
from ..services.inventory_service import InventoryUploadError


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/admin/inventory")


@inventory_bp.get("/aggregate")
@require_auth
@require_admin_or_superadmin
def aggregate_inventory_route():
    """
    Unclaimed stock grouped by base SKU.

    Returns:
        {totalProducts, products: [{productName, baseProductName, imageUrl,
        baseSku, sizeQuantity, prefix}]}
    """
    try:
        return ok(inventory_service.aggregate_unclaimed())
    except Exception:
        current_app.logger.exception("Failed to aggregate inventory")
        return fail("Failed to fetch inventory data", 500)


@inventory_bp.post("/rto-upload")
@require_auth
@require_admin_or_superadmin
def rto_upload_route():
    upload = request.files.get("rto_file") or request.files.get("file")
    if upload is None:
        return fail("No file uploaded", 400)

    try:
        return ok(inventory_service.parse_rto_csv(upload.stream.read()))
    except InventoryUploadError as e:
        return fail(str(e), 400)
    except UnicodeDecodeError:
        return fail("File must be UTF-8 encoded", 400)
