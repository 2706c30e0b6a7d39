# Overview: Flask API routes for vendor settlements; parses input and returns JSON, CSV or file responses.

"""
Settlement Routes

Vendors see their balance and raise payout requests; admins and
superadmins approve (multipart, optional image proof) or reject them.
"""

from flask import Blueprint, Response, current_app, g, request, send_file

from ..decorators import (
    require_admin_or_superadmin, require_any_user, require_auth, require_database, require_vendor,
)
from ..extensions import db
from ..models import Settlement
from ..responses import fail, ok
from ..services import settlement_service, user_service
from ..services.settlement_service import SettlementError
from ..time_utils import parse_date_bound
from ..validation import (
    PAGINATION, SETTLEMENT_APPROVAL, SETTLEMENT_REJECTION, SETTLEMENT_REQUEST, validate_body, validate_query,
)


settlements_bp = Blueprint("settlements", __name__, url_prefix="/api/settlements")


def _settlement_error(e: SettlementError):
    return fail(e.message, e.http_status, code=e.code)


def _date_filters():
    """Returns (start, end) or raises ValueError."""
    start = parse_date_bound(request.args.get("startDate"))
    end = parse_date_bound(request.args.get("endDate"), end_of_day=True)
    return start, end


@settlements_bp.get("/vendor/payments")
@require_auth
@require_vendor
@require_database
def vendor_payments_route():
    return ok(settlement_service.vendor_payments(g.current_user))


@settlements_bp.post("/vendor/request")
@require_auth
@require_vendor
@require_database
@validate_body(SETTLEMENT_REQUEST)
def create_request_route():
    try:
        settlement = settlement_service.create_request(g.current_user, g.validated["upiId"])
        return ok(settlement.to_dict(), "Settlement request created successfully", 201)
    except SettlementError as e:
        return _settlement_error(e)
    except Exception:
        current_app.logger.exception("Failed to create settlement request")
        return fail("Failed to create settlement request", 500)


@settlements_bp.get("/vendor/history")
@require_auth
@require_vendor
def vendor_history_route():
    settlements = settlement_service.vendor_settlements(g.current_user)
    return ok([s.to_dict() for s in settlements])


@settlements_bp.get("/vendor/transactions")
@require_auth
@require_vendor
def vendor_transactions_route():
    transactions = settlement_service.vendor_transactions(g.current_user)
    return ok([t.to_dict() for t in transactions])


@settlements_bp.get("/admin/all")
@require_auth
@require_admin_or_superadmin
@validate_query([rule for rule in PAGINATION if rule.name in ("page", "limit")])
def list_settlements_route():
    """
    List settlements, newest first.

    Query parameters: status, vendorName, startDate, endDate, page, limit
    """
    try:
        start, end = _date_filters()
    except ValueError:
        return fail("Dates must be ISO-8601 (YYYY-MM-DD)", 400)

    page = g.validated.get("page", 1)
    limit = g.validated.get("limit", 10)
    settlements, total = settlement_service.list_settlements(
        status=request.args.get("status"),
        vendor_name=request.args.get("vendorName"),
        start_date=start,
        end_date=end,
        page=page,
        limit=limit,
    )
    return ok({
        "settlements": [s.to_dict() for s in settlements],
        "pagination": user_service.pagination(page, limit, total, noun="Settlements"),
    })


@settlements_bp.get("/admin/export")
@settlements_bp.get("/admin/export-csv")
@require_auth
@require_admin_or_superadmin
def export_settlements_route():
    try:
        start, end = _date_filters()
    except ValueError:
        return fail("Dates must be ISO-8601 (YYYY-MM-DD)", 400)

    body = settlement_service.export_csv(
        status=request.args.get("status"),
        vendor_name=request.args.get("vendorName"),
        start_date=start,
        end_date=end,
    )
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=settlements.csv"},
    )


@settlements_bp.get("/admin/<int:settlement_id>")
@require_auth
@require_admin_or_superadmin
def get_settlement_route(settlement_id: int):
    try:
        return ok(settlement_service.get_settlement(settlement_id).to_dict())
    except SettlementError as e:
        return _settlement_error(e)


@settlements_bp.post("/admin/<int:settlement_id>/approve")
@require_auth
@require_admin_or_superadmin
@require_database
@validate_body(SETTLEMENT_APPROVAL)
def approve_settlement_route(settlement_id: int):
    """
    Approve a pending settlement.

    Multipart form: amountPaid, transactionId, paymentProof (image, optional)
    """
    form = request.form if request.form else (request.get_json(silent=True) or {})
    try:
        settlement, transaction = settlement_service.approve(
            settlement_id,
            amount_paid=form.get("amountPaid"),
            transaction_id=g.validated["transactionId"],
            approver=g.current_user,
            proof=request.files.get("paymentProof"),
        )
        return ok(
            {"settlement": settlement.to_dict(), "transaction": transaction.to_dict()},
            "Settlement approved successfully",
        )
    except SettlementError as e:
        return _settlement_error(e)
    except Exception:
        current_app.logger.exception("Failed to approve settlement")
        return fail("Failed to approve settlement", 500)


@settlements_bp.post("/admin/<int:settlement_id>/reject")
@require_auth
@require_admin_or_superadmin
@require_database
@validate_body(SETTLEMENT_REJECTION)
def reject_settlement_route(settlement_id: int):
    try:
        settlement = settlement_service.reject(
            settlement_id,
            reason=g.validated["rejectionReason"],
            rejecter=g.current_user,
        )
        return ok(settlement.to_dict(), "Settlement rejected successfully")
    except SettlementError as e:
        return _settlement_error(e)
    except Exception:
        current_app.logger.exception("Failed to reject settlement")
        return fail("Failed to reject settlement", 500)


@settlements_bp.get("/proof/<filename>")
@require_auth
@require_any_user
def payment_proof_route(filename: str):
    user = g.current_user
    if user.role == "vendor":
        owned = db.session.query(Settlement.id).filter(
            Settlement.vendor_id == user.id,
            Settlement.payment_proof_path == filename,
        ).first()
        if not owned:
            return fail("Payment proof not found", 404)
    try:
        return send_file(settlement_service.proof_path(filename))
    except SettlementError as e:
        return _settlement_error(e)
