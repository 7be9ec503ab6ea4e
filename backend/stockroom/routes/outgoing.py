# Overview: Flask API routes for outgoing inventory; parses input and returns JSON responses.

"""
Outgoing Inventory Routes

SECURITY: All routes require authentication and a matching x-company-id.

- POST   /outgoing               create header + items (completed takes stock)
- GET    /outgoing               list with per-document sums
- GET    /outgoing/history       one row per line of completed documents
- GET    /outgoing/<id>          header + items
- PUT    /outgoing/<id>/status   draft -> completed | cancelled
- DELETE /outgoing/<id>          soft delete (admin), completed stock returned
"""

from flask import Blueprint, current_app, request, g

from ..decorators import require_auth, require_company, require_role
from ..services import outgoing_service
from ..validation import optional_date_arg, page_args
from ..wire import from_wire, ok


outgoing_bp = Blueprint("outgoing", __name__, url_prefix="/api/inventory")


def _body() -> dict:
    return from_wire(request.get_json(silent=True) or {})


@outgoing_bp.post("/outgoing")
@require_auth
@require_company
def create_outgoing_route():
    """
    Create an outgoing inventory document.

    Request body:
    {
        "documentType": "delivery_challan",     // required
        "invoiceChallanDate": "2024-02-01",     // required
        "destinationType": "customer",          // customer | vendor | store_to_factory
        "destinationId": 3,                     // vendor id when destinationType is vendor
        "destinationName": "Kumar Traders",     // required for customer
        "documentSubType", "vendorSubType", "deliveryChallanSubType",
        "invoiceChallanNumber", "docketNumber", "transportorName",
        "dispatchedBy", "remarks", "status",
        "items": [
            {"skuId": 1, "outgoingQuantity": 5, "unitPrice": 20, "gstRate": 18}
        ]
    }
    """
    data = _body()
    items = data.pop("items", None)
    if isinstance(items, list):
        items = [from_wire(item) for item in items]

    header = outgoing_service.create_outgoing(
        company_id=g.company_id,
        data=data,
        items=items,
        created_by_user_id=g.current_user.id,
    )
    return ok(
        header.to_dict(include_items=True),
        status=201,
        message="Outgoing inventory created successfully",
    )


@outgoing_bp.get("/outgoing")
@require_auth
@require_company
def list_outgoing_route():
    """
    Query parameters:
    - dateFrom, dateTo: invoice/challan date range (inclusive)
    - destination: destination name substring
    - status: draft | completed | cancelled
    - limit (default 100), offset
    """
    limit, offset = page_args(request.args, max_limit=current_app.config["MAX_PAGE_SIZE"])
    rows = outgoing_service.list_outgoing(
        company_id=g.company_id,
        date_from=optional_date_arg(request.args, "dateFrom"),
        date_to=optional_date_arg(request.args, "dateTo"),
        destination=request.args.get("destination") or None,
        status=request.args.get("status") or None,
        limit=limit,
        offset=offset,
    )
    return ok(rows, limit=limit, offset=offset)


@outgoing_bp.get("/outgoing/history")
@require_auth
@require_company
def outgoing_history_route():
    """Query parameters: dateFrom, dateTo, destination, sku (code substring)"""
    rows = outgoing_service.get_history(
        company_id=g.company_id,
        date_from=optional_date_arg(request.args, "dateFrom"),
        date_to=optional_date_arg(request.args, "dateTo"),
        destination=request.args.get("destination") or None,
        sku=request.args.get("sku") or None,
    )
    return ok(rows)


@outgoing_bp.get("/outgoing/<int:outgoing_id>")
@require_auth
@require_company
def get_outgoing_route(outgoing_id: int):
    header = outgoing_service.get_outgoing(company_id=g.company_id, outgoing_id=outgoing_id)
    return ok(header.to_dict(include_items=True))


@outgoing_bp.put("/outgoing/<int:outgoing_id>/status")
@require_auth
@require_company
def update_outgoing_status_route(outgoing_id: int):
    data = _body()
    header = outgoing_service.update_status(
        company_id=g.company_id,
        outgoing_id=outgoing_id,
        status=data.get("status"),
    )
    return ok(header.to_dict(), message=f"Status updated to {header.status}")


@outgoing_bp.delete("/outgoing/<int:outgoing_id>")
@require_auth
@require_company
@require_role("super_admin", "admin")
def delete_outgoing_route(outgoing_id: int):
    outgoing_service.delete_outgoing(company_id=g.company_id, outgoing_id=outgoing_id)
    return ok(message="Outgoing inventory deleted successfully")
