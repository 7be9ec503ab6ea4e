# Overview: Service-layer reads for short item reports, derived from incoming inventory lines.

"""
Short Item Reports

Not a table: one report per incoming line that started short
(initial_short > 0).

- short_quantity: initial_short, the shortfall recorded at entry
- received_back: units that arrived later (total - received - short - rejected)
- net_rejected: short still outstanding
- status: 'Received Back' when nothing is outstanding, 'Partially Received'
  when some units arrived, otherwise 'Pending'
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import or_

from ..errors import NotFoundError
from ..extensions import db
from ..models import IncomingInventory, IncomingInventoryItem, SKU
from .reconciliation import ItemQuantities, short_report_status


def _to_report(item: IncomingInventoryItem, header: IncomingInventory) -> dict:
    quantities = ItemQuantities.of(item)
    return {
        "id": item.id,
        "incoming_inventory_id": header.id,
        "invoice_number": header.invoice_number,
        "invoice_date": header.invoice_date,
        "receiving_date": header.receiving_date,
        "vendor_name": header.vendor.name if header.vendor else None,
        "brand_name": header.brand.name if header.brand else None,
        "sku_id": item.sku_id,
        "sku_code": item.sku.sku_code if item.sku else None,
        "item_name": item.sku.item_name if item.sku else None,
        "total_quantity": item.total_quantity,
        "received": item.received,
        "short_quantity": item.initial_short,
        "received_back": quantities.arrived,
        "net_rejected": item.short,
        "challan_number": item.challan_number,
        "challan_date": item.challan_date,
        "status": short_report_status(item.short, quantities.arrived),
    }


def _base_query(company_id: str):
    return (
        db.session.query(IncomingInventoryItem, IncomingInventory)
        .join(IncomingInventory, IncomingInventory.id == IncomingInventoryItem.incoming_inventory_id)
        .join(SKU, SKU.id == IncomingInventoryItem.sku_id)
        .filter(
            IncomingInventory.company_id == company_id,
            IncomingInventory.is_active.is_(True),
            IncomingInventoryItem.initial_short > 0,
        )
    )


def list_reports(
    *,
    company_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[dict]:
    query = _base_query(company_id)
    if date_from:
        query = query.filter(IncomingInventory.receiving_date >= date_from)
    if date_to:
        query = query.filter(IncomingInventory.receiving_date <= date_to)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                IncomingInventory.invoice_number.ilike(pattern),
                SKU.sku_code.ilike(pattern),
                SKU.item_name.ilike(pattern),
            )
        )

    rows = (
        query.order_by(IncomingInventory.receiving_date.desc(), IncomingInventoryItem.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [_to_report(item, header) for item, header in rows]


def get_report(*, company_id: str, item_id: int) -> dict:
    row = _base_query(company_id).filter(IncomingInventoryItem.id == item_id).first()
    if not row:
        raise NotFoundError("Short item report not found")
    item, header = row
    return _to_report(item, header)
