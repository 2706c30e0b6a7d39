# Overview: Flask API routes for carrier priorities; parses uploads and returns JSON or CSV responses.

import csv
import io

from flask import Blueprint, Response, current_app, request

from ..decorators import require_admin_or_superadmin, require_auth, require_database
from ..responses import fail, ok
from ..services import carrier_service
from ..services.carrier_service import CarrierNotFoundError, CarrierValidationError


carriers_bp = Blueprint("carriers", __name__, url_prefix="/api/carriers")


def _read_rows(file) -> list[dict]:
    filename = file.filename or ""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""

    if ext == "csv":
        stream = io.StringIO(file.stream.read().decode("utf-8-sig"))
        return [row for row in csv.DictReader(stream)]
    if ext in {"xlsx", "xlsm"}:
        from openpyxl import load_workbook
        wb = load_workbook(file.stream, read_only=True, data_only=True)
        data = list(wb.active.values)
        if not data:
            return []
        headers = [str(h) if h is not None else "" for h in data[0]]
        return [
            {headers[i]: row[i] for i in range(len(headers)) if i < len(row)}
            for row in data[1:]
            if any(cell not in (None, "") for cell in row)
        ]
    raise CarrierValidationError("Unsupported file format. Upload a .csv or .xlsx file")


@carriers_bp.get("")
@require_auth
@require_admin_or_superadmin
def list_carriers_route():
    carriers = carrier_service.list_carriers(request.args.get("account_code"))
    return ok({"carriers": [c.to_dict() for c in carriers], "count": len(carriers)})


@carriers_bp.post("/<carrier_id>/move")
@require_auth
@require_admin_or_superadmin
@require_database
def move_carrier_route(carrier_id: str):
    """
    Swap a carrier with its neighbour.

    Request body: {"direction": "up" | "down", "account_code": "STORE1"}
    """
    data = request.get_json(silent=True) or {}
    try:
        result = carrier_service.move_carrier(carrier_id, data.get("direction"), data.get("account_code"))
    except CarrierNotFoundError as e:
        return fail(str(e), 404)
    except CarrierValidationError as e:
        return fail(str(e), 400)

    message = "Carrier moved successfully" if result["moved"] else "Carrier is already at the boundary"
    return ok(result, message)


@carriers_bp.post("/upload")
@require_auth
@require_admin_or_superadmin
@require_database
def upload_carriers_route():
    if "file" not in request.files:
        return fail("No file uploaded", 400)

    try:
        rows = _read_rows(request.files["file"])
        result = carrier_service.import_carriers(rows)
        return ok(result, f"Updated priorities for {result['totalCarriers']} carriers")
    except CarrierValidationError as e:
        return fail(str(e), 400, errors=e.errors or None)
    except UnicodeDecodeError:
        return fail("File must be UTF-8 encoded", 400)
    except Exception:
        current_app.logger.exception("Failed to import carrier priorities")
        return fail("Failed to import carrier priorities", 500)


@carriers_bp.get("/export")
@require_auth
@require_admin_or_superadmin
def export_carriers_route():
    body = carrier_service.export_csv(request.args.get("account_code"))
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=carriers.csv"},
    )


@carriers_bp.get("/format")
@require_auth
@require_admin_or_superadmin
def carrier_format_route():
    return ok(carrier_service.format_info())
