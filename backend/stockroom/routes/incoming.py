# Overview: Flask API routes for incoming inventory; parses input and returns JSON responses.

"""
Incoming Inventory Routes

SECURITY: All routes require authentication and a matching x-company-id.

A receipt is a header (one vendor invoice) with one line per SKU. Each line
keeps received + short + rejected reconciled against the ordered quantity:

- POST /incoming                                create header + items
- POST /incoming/<id>/move-received-to-rejected received -> rejected, writes a report
- POST /incoming/<id>/move-to-rejected          short -> rejected
- PUT  /incoming/<id>/short                     set short (one or many lines)
- PUT  /incoming/<id>/update-short-item         short / challan fields on one line
- PUT  /incoming/<id>/update-item-rejected-short rejected / short on one line
- PUT  /incoming/<id>/status                    draft -> completed | cancelled

'received' is fixed at entry; sending it to any update route is a 400.
"""

from flask import Blueprint, current_app, request, g

from ..decorators import require_auth, require_company, require_role
from ..services import incoming_service
from ..validation import optional_date_arg, optional_int_arg, page_args, validate_incoming_payload
from ..wire import from_wire, ok


incoming_bp = Blueprint("incoming", __name__, url_prefix="/api/inventory")


def _body() -> dict:
    return from_wire(request.get_json(silent=True) or {})


@incoming_bp.post("/incoming")
@require_auth
@require_company
def create_incoming_route():
    """
    Create an incoming inventory receipt.

    Request body:
    {
        "invoiceNumber": "INV-1",       // required
        "invoiceDate": "2024-01-10",    // required
        "receivingDate": "2024-01-12",  // required
        "vendorId": 1,                  // required
        "brandId": 1,                   // required
        "docketNumber", "transportorName", "warranty", "warrantyUnit",
        "receivedBy", "remarks", "documentType", "status",
        "items": [
            {
                "skuId": 1,             // required
                "totalQuantity": 100,   // required
                "received": 90,         // default: totalQuantity
                "unitPrice": 12.5,      // required
                "gstRate": 18,
                "numberOfBoxes", "receivedBoxes", "challanNumber", "challanDate"
            }
        ]
    }

    short is computed as totalQuantity - received; any client value is ignored.
    """
    payload = validate_incoming_payload(request.get_json(silent=True))
    data = from_wire(payload)
    items = [from_wire(item) for item in data.pop("items")]

    header = incoming_service.create_incoming(
        company_id=g.company_id,
        data=data,
        items=items,
        created_by_user_id=g.current_user.id,
    )
    return ok(
        header.to_dict(include_items=True),
        status=201,
        message="Incoming inventory created successfully",
    )


@incoming_bp.get("/incoming")
@require_auth
@require_company
def list_incoming_route():
    """
    List receipts with per-receipt quantity sums.

    Query parameters:
    - dateFrom, dateTo: receiving date range (inclusive)
    - vendor: vendor id
    - status: draft | completed | cancelled
    - limit (default 100, max 500), offset
    """
    limit, offset = page_args(request.args, max_limit=current_app.config["MAX_PAGE_SIZE"])
    rows = incoming_service.list_incoming(
        company_id=g.company_id,
        date_from=optional_date_arg(request.args, "dateFrom"),
        date_to=optional_date_arg(request.args, "dateTo"),
        vendor_id=optional_int_arg(request.args, "vendor"),
        status=request.args.get("status") or None,
        limit=limit,
        offset=offset,
    )
    return ok(rows, limit=limit, offset=offset)


@incoming_bp.get("/incoming/history")
@require_auth
@require_company
def incoming_history_route():
    """
    Completed receipts with value totals.

    Query parameters: dateFrom, dateTo, vendor, sku (code or name substring)
    """
    rows = incoming_service.get_history(
        company_id=g.company_id,
        date_from=optional_date_arg(request.args, "dateFrom"),
        date_to=optional_date_arg(request.args, "dateTo"),
        vendor_id=optional_int_arg(request.args, "vendor"),
        sku=request.args.get("sku") or None,
    )
    return ok(rows)


@incoming_bp.get("/incoming/<int:incoming_id>")
@require_auth
@require_company
def get_incoming_route(incoming_id: int):
    header = incoming_service.get_incoming(company_id=g.company_id, incoming_id=incoming_id)
    return ok(header.to_dict(include_items=True))


@incoming_bp.get("/incoming/<int:incoming_id>/items")
@require_auth
@require_company
def get_incoming_items_route(incoming_id: int):
    items = incoming_service.get_items(company_id=g.company_id, incoming_id=incoming_id)
    return ok([item.to_dict() for item in items])


@incoming_bp.put("/incoming/<int:incoming_id>/status")
@require_auth
@require_company
def update_status_route(incoming_id: int):
    """Request body: {"status": "completed" | "cancelled"}"""
    data = _body()
    header = incoming_service.update_status(
        company_id=g.company_id,
        incoming_id=incoming_id,
        status=data.get("status"),
    )
    return ok(header.to_dict(), message=f"Status updated to {header.status}")


@incoming_bp.post("/incoming/<int:incoming_id>/move-received-to-rejected")
@require_auth
@require_company
def move_received_to_rejected_route(incoming_id: int):
    """
    Move units from received to rejected and file a rejected item report.

    Request body:
    {
        "itemId": 1,                    // required
        "quantity": 5,                  // required, 1..received
        "inspectionDate": "2024-01-15", // optional, default today
        "reason": "Damaged"             // optional, max 30 chars
    }

    The quantity change and the report commit together.
    """
    data = _body()
    item, report = incoming_service.move_received_to_rejected(
        company_id=g.company_id,
        incoming_id=incoming_id,
        item_id=data.get("item_id"),
        quantity=data.get("quantity"),
        inspection_date=data.get("inspection_date"),
        reason=data.get("reason"),
    )
    return ok(
        {"item": item.to_dict(), "report": report.to_dict()},
        message="Moved received quantity to rejected",
        report_created=True,
    )


@incoming_bp.post("/incoming/<int:incoming_id>/move-to-rejected")
@require_auth
@require_company
def move_short_to_rejected_route(incoming_id: int):
    """Request body: {"itemId": 1, "quantity"?: 3}. quantity defaults to all remaining short."""
    data = _body()
    item = incoming_service.move_short_to_rejected(
        company_id=g.company_id,
        incoming_id=incoming_id,
        item_id=data.get("item_id"),
        quantity=data.get("quantity"),
    )
    return ok(item.to_dict(), message="Moved short quantity to rejected")


@incoming_bp.put("/incoming/<int:incoming_id>/short")
@require_auth
@require_company
def update_short_route(incoming_id: int):
    """
    Set short on one or more lines.

    Request body, either:
    {"itemId": 1, "short": 4}
    or:
    {"items": [{"itemId": 1, "short": 4}, ...], "invoiceNumber"?, "invoiceDate"?}
    """
    header = incoming_service.update_short(
        company_id=g.company_id,
        incoming_id=incoming_id,
        changes=_body(),
    )
    return ok(header.to_dict(include_items=True), message="Short quantities updated")


@incoming_bp.put("/incoming/<int:incoming_id>/update-short-item")
@require_auth
@require_company
def update_short_item_route(incoming_id: int):
    """Request body: {"itemId": 1, "short"?, "challanNumber"?, "challanDate"?}"""
    data = _body()
    item = incoming_service.update_item(
        company_id=g.company_id,
        incoming_id=incoming_id,
        item_id=data.pop("item_id", None),
        changes=data,
        allowed=("short", "challan_number", "challan_date"),
    )
    return ok(item.to_dict(), message="Item updated successfully")


@incoming_bp.put("/incoming/<int:incoming_id>/update-item-rejected-short")
@require_auth
@require_company
def update_item_rejected_short_route(incoming_id: int):
    """Request body: {"itemId": 1, "rejected"?, "short"?}"""
    data = _body()
    item = incoming_service.update_item(
        company_id=g.company_id,
        incoming_id=incoming_id,
        item_id=data.pop("item_id", None),
        changes=data,
        allowed=("rejected", "short"),
    )
    return ok(item.to_dict(), message="Item updated successfully")


@incoming_bp.delete("/incoming/<int:incoming_id>")
@require_auth
@require_company
@require_role("super_admin", "admin")
def delete_incoming_route(incoming_id: int):
    incoming_service.delete_incoming(company_id=g.company_id, incoming_id=incoming_id)
    return ok(message="Incoming inventory deleted successfully")
