# Overview: Flask API routes for rejected and short item reports.

"""
Report Routes

SECURITY: All routes require authentication and a matching x-company-id.

Rejected item reports are rows written by move-received-to-rejected; their
dispositions (sent to vendor, received back, scrapped) are editable.
Short item reports are read-only, derived from lines that started short.
"""

from flask import Blueprint, current_app, request, g

from ..decorators import require_auth, require_company, require_role
from ..services import rejected_report_service, short_report_service
from ..validation import optional_date_arg, page_args
from ..wire import from_wire, ok


reports_bp = Blueprint("reports", __name__, url_prefix="/api/inventory")


# Rejected item reports

@reports_bp.get("/rejected-item-reports")
@require_auth
@require_company
def list_rejected_reports_route():
    """
    Query parameters:
    - dateFrom, dateTo: inspection date range (inclusive)
    - search: report number, invoice number, item name or sku code
    - limit (default 100, max 500), offset
    """
    limit, offset = page_args(request.args, max_limit=current_app.config["MAX_PAGE_SIZE"])
    reports, total = rejected_report_service.list_reports(
        company_id=g.company_id,
        date_from=optional_date_arg(request.args, "dateFrom"),
        date_to=optional_date_arg(request.args, "dateTo"),
        search=request.args.get("search") or None,
        limit=limit,
        offset=offset,
    )
    return ok([r.to_dict() for r in reports], total=total, limit=limit, offset=offset)


@reports_bp.get("/rejected-item-reports/<int:report_id>")
@require_auth
@require_company
def get_rejected_report_route(report_id: int):
    report = rejected_report_service.get_report(company_id=g.company_id, report_id=report_id)
    return ok(report.to_dict())


@reports_bp.put("/rejected-item-reports/<int:report_id>")
@require_auth
@require_company
def update_rejected_report_route(report_id: int):
    """
    Update dispositions.

    Request body (all optional):
    {"sentToVendor": 2, "receivedBack": 1, "scrapped": 0,
     "status": "Sent", "inspectionDate": "2024-01-20", "reason": "..."}

    netRejected is recomputed. The three counts together may not exceed
    the report quantity.
    """
    report = rejected_report_service.update_report(
        company_id=g.company_id,
        report_id=report_id,
        changes=from_wire(request.get_json(silent=True) or {}),
    )
    return ok(report.to_dict(), message="Rejected item report updated")


@reports_bp.delete("/rejected-item-reports/<int:report_id>")
@require_auth
@require_company
@require_role("super_admin", "admin")
def delete_rejected_report_route(report_id: int):
    rejected_report_service.delete_report(company_id=g.company_id, report_id=report_id)
    return ok(message="Rejected item report deleted")


# Short item reports

@reports_bp.get("/short-item-reports")
@require_auth
@require_company
def list_short_reports_route():
    """Query parameters: dateFrom, dateTo (receiving date), search, limit, offset."""
    limit, offset = page_args(request.args, max_limit=current_app.config["MAX_PAGE_SIZE"])
    reports = short_report_service.list_reports(
        company_id=g.company_id,
        date_from=optional_date_arg(request.args, "dateFrom"),
        date_to=optional_date_arg(request.args, "dateTo"),
        search=request.args.get("search") or None,
        limit=limit,
        offset=offset,
    )
    return ok(reports, limit=limit, offset=offset)


@reports_bp.get("/short-item-reports/<int:item_id>")
@require_auth
@require_company
def get_short_report_route(item_id: int):
    return ok(short_report_service.get_report(company_id=g.company_id, item_id=item_id))
