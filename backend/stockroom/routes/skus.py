# Overview: Flask API routes for SKU operations; parses input and returns JSON responses.

"""
SKU Routes

SECURITY: All routes require authentication and a matching x-company-id.

- GET    /api/skus                      paged list with filters
- POST   /api/skus                      create (sku_code is generated)
- GET    /api/skus/<id>                 one SKU
- DELETE /api/skus/<id>                 soft delete
- GET    /api/skus/<id>/price-history   current / previous / lowest price
- POST   /api/skus/import               bulk import (file upload or JSON rows)
"""

import csv
import io
import json

from flask import Blueprint, current_app, request, g
from openpyxl import load_workbook

from ..decorators import require_auth, require_company, require_role
from ..errors import ValidationError
from ..services import price_history_service, sku_import_service, sku_service
from ..validation import optional_int_arg, page_args
from ..wire import from_wire, ok


skus_bp = Blueprint("skus", __name__, url_prefix="/api/skus")

XLSX_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}


@skus_bp.get("")
@require_auth
@require_company
def list_skus_route():
    """
    List SKUs.

    Query parameters:
    - search: sku code, item name, model or HSN
    - productCategoryId, brandId: exact filters
    - stockStatus: low | out | in
    - limit (default 50, max 500), offset
    """
    limit, offset = page_args(
        request.args, default_limit=50, max_limit=current_app.config["MAX_PAGE_SIZE"]
    )
    skus, total = sku_service.list_skus(
        company_id=g.company_id,
        search=request.args.get("search"),
        product_category_id=optional_int_arg(request.args, "productCategoryId"),
        brand_id=optional_int_arg(request.args, "brandId"),
        stock_status=request.args.get("stockStatus") or None,
        limit=limit,
        offset=offset,
    )
    return ok([s.to_dict() for s in skus], total=total, limit=limit, offset=offset)


@skus_bp.post("")
@require_auth
@require_company
def create_sku_route():
    """
    Create a SKU.

    Request body:
    {
        "itemName": "...",              // required
        "productCategoryId": 1,         // required
        "itemCategoryId", "subCategoryId", "vendorId", "brandId",
        "itemDetails", "vendorItemCode", "hsnSacCode", "model", "series",
        "unit", "rackNumber", "minStockLevel", "reorderPoint"
    }
    """
    payload = from_wire(request.get_json(silent=True) or {})
    sku = sku_service.create_sku(company_id=g.company_id, payload=payload)
    current_app.logger.info("Created SKU %s for company %s", sku.sku_code, g.company_id)
    return ok(sku.to_dict(), status=201, message="SKU created successfully")


@skus_bp.get("/<int:sku_id>")
@require_auth
@require_company
def get_sku_route(sku_id: int):
    sku = sku_service.get_sku(company_id=g.company_id, sku_id=sku_id)
    return ok(sku.to_dict())


@skus_bp.delete("/<int:sku_id>")
@require_auth
@require_company
@require_role("super_admin", "admin")
def delete_sku_route(sku_id: int):
    sku_service.delete_sku(company_id=g.company_id, sku_id=sku_id)
    return ok(message="SKU deleted successfully")


@skus_bp.get("/<int:sku_id>/price-history")
@require_auth
@require_company
def price_history_route(sku_id: int):
    history = price_history_service.get_price_history(company_id=g.company_id, sku_id=sku_id)
    return ok(history)


def _rows_from_upload(file) -> list[dict]:
    filename = file.filename or ""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""

    if ext == "csv":
        try:
            stream = io.StringIO(file.stream.read().decode("utf-8-sig"))
        except UnicodeDecodeError:
            raise ValidationError("CSV file must be UTF-8 encoded")
        return [row for row in csv.DictReader(stream)]

    if ext == "json":
        try:
            rows = json.load(file.stream)
        except ValueError:
            raise ValidationError("Invalid JSON file")
        if isinstance(rows, dict):
            rows = rows.get("rows", [])
        return rows

    if ext in XLSX_EXTENSIONS:
        try:
            wb = load_workbook(file.stream, data_only=True, read_only=True)
        except Exception:
            current_app.logger.info("Unreadable workbook upload: %s", filename)
            raise ValidationError("Failed to read workbook")
        data = list(wb.active.values)
        wb.close()
        if not data:
            return []
        headers = [str(h).strip() if h is not None else "" for h in data[0]]
        return [
            {headers[i]: row[i] for i in range(min(len(headers), len(row))) if headers[i]}
            for row in data[1:]
        ]

    raise ValidationError("Unsupported file format (use .csv, .json or .xlsx)")


@skus_bp.post("/import")
@require_auth
@require_company
def import_skus_route():
    """
    Bulk import SKUs.

    Either a multipart upload with field 'file' (.csv, .json or .xlsx), or a
    JSON body {"rows": [{<header>: <value>, ...}, ...]}.

    Headers are matched through an alias table, so 'Item Name', 'item_name'
    and 'itemName' all land in the same column. Rows that fail validation
    are reported and skipped; the rest are committed together.

    Returns:
        {inserted: [...], errors: [{row, error}], totalRows}
    """
    if "file" in request.files:
        rows = _rows_from_upload(request.files["file"])
    else:
        body = request.get_json(silent=True) or {}
        rows = body.get("rows") if isinstance(body, dict) else body

    result = sku_import_service.import_skus(company_id=g.company_id, rows=rows)
    status = 201 if result["inserted"] else 200
    return ok(
        result,
        status=status,
        message=f"Imported {len(result['inserted'])} of {result['total_rows']} rows",
    )
