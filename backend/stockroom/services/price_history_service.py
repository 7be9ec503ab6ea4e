# Overview: Service-layer operations for SKU purchase price history.

"""
Price History

Snapshotted per SKU when an incoming inventory header is completed, for
every item with unit_price > 0:

- the active 'current' row (if any) is deactivated and re-inserted as the
  active 'previous' row (replacing any older 'previous')
- a new active 'current' row is written from this receipt
- 'lowest' is replaced when this price is strictly lower

Snapshotting is best-effort: record_completion() commits on its own and a
failure is logged and rolled back without affecting the completed receipt.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import IncomingInventory, PriceHistory, PRICE_HISTORY_TYPES
from .sku_service import get_sku


def _active(company_id: str, sku_id: int, kind: str) -> PriceHistory | None:
    return (
        db.session.query(PriceHistory)
        .filter_by(company_id=company_id, sku_id=sku_id, type=kind, is_active=True)
        .order_by(PriceHistory.buying_date.desc(), PriceHistory.id.desc())
        .first()
    )


def _snapshot(header: IncomingInventory, kind: str, *, sku_id: int, price) -> PriceHistory:
    row = PriceHistory(
        company_id=header.company_id,
        sku_id=sku_id,
        price=price,
        vendor_id=header.vendor_id,
        vendor_name=header.vendor.name if header.vendor else None,
        buying_date=header.receiving_date,
        invoice_number=header.invoice_number,
        incoming_inventory_id=header.id,
        type=kind,
        is_active=True,
    )
    db.session.add(row)
    return row


def update_price_history(header: IncomingInventory) -> int:
    """Write snapshots for a completed header. Returns the number of SKUs touched."""
    touched = 0
    for item in header.items:
        if item.unit_price is None or item.unit_price <= 0:
            continue

        current = _active(header.company_id, item.sku_id, "current")
        if current is not None:
            current.is_active = False
            previous = _active(header.company_id, item.sku_id, "previous")
            if previous is not None:
                previous.is_active = False
            db.session.add(PriceHistory(
                company_id=current.company_id,
                sku_id=current.sku_id,
                price=current.price,
                vendor_id=current.vendor_id,
                vendor_name=current.vendor_name,
                buying_date=current.buying_date,
                invoice_number=current.invoice_number,
                incoming_inventory_id=current.incoming_inventory_id,
                type="previous",
                is_active=True,
            ))

        _snapshot(header, "current", sku_id=item.sku_id, price=item.unit_price)

        lowest = _active(header.company_id, item.sku_id, "lowest")
        if lowest is None or item.unit_price < lowest.price:
            if lowest is not None:
                lowest.is_active = False
            _snapshot(header, "lowest", sku_id=item.sku_id, price=item.unit_price)

        db.session.flush()
        touched += 1
    return touched


def record_completion(header: IncomingInventory) -> bool:
    """Best-effort wrapper: commit snapshots, or log and roll back. Returns success."""
    try:
        touched = update_price_history(header)
        db.session.commit()
    except Exception:  # noqa: BLE001
        db.session.rollback()
        current_app.logger.exception(
            "Price history update failed for incoming inventory %s", header.id
        )
        return False
    current_app.logger.debug("Price history updated for incoming inventory %s (%d SKUs)", header.id, touched)
    return True


def get_price_history(*, company_id: str, sku_id: int) -> dict:
    get_sku(company_id=company_id, sku_id=sku_id)
    rows = (
        db.session.query(PriceHistory)
        .filter_by(company_id=company_id, sku_id=sku_id, is_active=True)
        .order_by(PriceHistory.id.desc())
        .all()
    )
    history: dict = {kind: None for kind in PRICE_HISTORY_TYPES}
    for row in rows:
        if history.get(row.type) is None:
            history[row.type] = row.to_dict()
    return history
