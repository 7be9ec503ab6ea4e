# Overview: Service-layer operations for incoming inventory; creation, quantity moves, status and reads.

"""
Incoming Inventory Service

A header (one vendor invoice) plus one line per SKU. Quantity rules live in
reconciliation.py; this module applies them to the database.

LIFECYCLE:
1. draft: lines may be reconciled (moves, point updates)
2. completed: stock credited, price history snapshotted; reconciliation
   still allowed and every change adjusts stock by the contribution delta
3. cancelled: terminal, no further mutation

TRANSACTIONS:
- Every mutation is one transaction; any error rolls back everything
- Moves lock the header row (SELECT ... FOR UPDATE) and then run a guarded
  UPDATE whose WHERE clause restates the precondition, so two concurrent
  moves can never push a counter below zero
- move-received-to-rejected writes its RejectedItemReport in the same
  transaction as the quantity change
- Price history is the only best-effort side effect (after commit)

STOCK:
SKU.current_stock changes only while the header is completed, by the change
in (total_quantity - short - rejected) per line, floored at zero.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app
from sqlalchemy import and_, case, exists, func, or_, update

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    SKU,
    Brand,
    IncomingInventory,
    IncomingInventoryItem,
    INCOMING_STATUSES,
    RejectedItemReport,
    Vendor,
)
from ..validation import coerce_date, coerce_int, coerce_money, coerce_text
from . import price_history_service, rejected_report_service
from .concurrency import lock_for_update, require_single_row
from .reconciliation import (
    ItemQuantities,
    apply_point_update,
    initial_split,
    line_totals,
    move_received_to_rejected as plan_received_move,
    move_short_to_rejected as plan_short_move,
)
from stockroom.time_utils import utcnow


STATUS_DRAFT = "draft"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

ALLOWED_TRANSITIONS = {
    STATUS_DRAFT: {STATUS_COMPLETED, STATUS_CANCELLED},
    STATUS_COMPLETED: set(),
    STATUS_CANCELLED: set(),
}

WARRANTY_UNITS = ("days", "months", "years")
MAX_GST_PERCENTAGE = Decimal("100")


# Lookups

def _header_query(company_id: str, incoming_id: int):
    return db.session.query(IncomingInventory).filter(
        IncomingInventory.id == incoming_id,
        IncomingInventory.company_id == company_id,
        IncomingInventory.is_active.is_(True),
    )


def get_incoming(*, company_id: str, incoming_id: int, for_update: bool = False) -> IncomingInventory:
    query = _header_query(company_id, incoming_id)
    if for_update:
        query = lock_for_update(query)
    header = query.first()
    if not header:
        raise NotFoundError("Incoming inventory not found")
    return header


def get_items(*, company_id: str, incoming_id: int) -> list[IncomingInventoryItem]:
    return get_incoming(company_id=company_id, incoming_id=incoming_id).items


def _get_item(header: IncomingInventory, item_id) -> IncomingInventoryItem:
    item_id = coerce_int(item_id, "itemId", minimum=1)
    item = (
        db.session.query(IncomingInventoryItem)
        .filter(
            IncomingInventoryItem.id == item_id,
            IncomingInventoryItem.incoming_inventory_id == header.id,
        )
        .first()
    )
    if not item:
        raise NotFoundError("Item not found in this incoming inventory")
    return item


def _ensure_mutable(header: IncomingInventory) -> None:
    if header.status == STATUS_CANCELLED:
        raise ConflictError("Cancelled incoming inventory cannot be modified")


# Stock

def _adjust_stock(sku_id: int, delta: int) -> None:
    if delta == 0:
        return
    new_value = SKU.current_stock + delta
    db.session.execute(
        update(SKU)
        .where(SKU.id == sku_id)
        .values(current_stock=case((new_value < 0, 0), else_=new_value))
        .execution_options(synchronize_session="fetch")
    )


def _apply_contribution(header: IncomingInventory, sign: int) -> None:
    for item in header.items:
        _adjust_stock(item.sku_id, sign * ItemQuantities.of(item).stock_contribution)


def _stock_delta(header: IncomingInventory, sku_id: int, before: ItemQuantities, after: ItemQuantities) -> None:
    if header.status == STATUS_COMPLETED:
        _adjust_stock(sku_id, after.stock_contribution - before.stock_contribution)


# Creation

def check_owned(model, company_id: str, record_id, label: str) -> int:
    record_id = coerce_int(record_id, label, minimum=1)
    found = (
        db.session.query(model.id)
        .filter(model.id == record_id, model.company_id == company_id, model.is_active.is_(True))
        .first()
    )
    if not found:
        raise ValidationError(f"{label} not found for this company")
    return record_id


def _build_item(company_id: str, raw: dict, index: int) -> tuple[IncomingInventoryItem, Decimal]:
    sku_id = check_owned(SKU, company_id, raw.get("sku_id"), f"items[{index}].skuId")

    total_quantity = coerce_int(raw.get("total_quantity"), f"items[{index}].totalQuantity", minimum=0)
    received = raw.get("received")
    if received is not None:
        received = coerce_int(received, f"items[{index}].received", minimum=0)
    quantities = initial_split(total_quantity, received)

    unit_price = coerce_money(raw.get("unit_price"), f"items[{index}].unitPrice")
    gst_raw = raw.get("gst_percentage")
    gst_percentage = coerce_money(gst_raw, f"items[{index}].gstRate") if gst_raw not in (None, "") else Decimal("0")
    if gst_percentage > MAX_GST_PERCENTAGE:
        raise ValidationError(f"items[{index}].gstRate cannot exceed 100")

    totals = line_totals(total_quantity, unit_price, gst_percentage)

    item = IncomingInventoryItem(
        sku_id=sku_id,
        total_quantity=quantities.total_quantity,
        received=quantities.received,
        short=quantities.short,
        rejected=0,
        initial_short=quantities.short,
        unit_price=unit_price,
        gst_percentage=gst_percentage,
        gst_amount=totals.gst_amount,
        total_value_excl_gst=totals.total_value_excl_gst,
        total_value_incl_gst=totals.total_value_incl_gst,
        number_of_boxes=coerce_int(raw.get("number_of_boxes") or 0, f"items[{index}].numberOfBoxes", minimum=0),
        received_boxes=coerce_int(raw.get("received_boxes") or 0, f"items[{index}].receivedBoxes", minimum=0),
        challan_number=coerce_text(raw.get("challan_number"), "challanNumber", max_length=64),
        challan_date=coerce_date(raw["challan_date"], "challanDate") if raw.get("challan_date") else None,
    )
    return item, totals.total_value_incl_gst


def create_incoming(*, company_id: str, data: dict, items: list[dict], created_by_user_id: int | None = None) -> IncomingInventory:
    """
    Create a header and its items in one transaction and commit.

    data and items use snake_case keys. short is always computed here;
    any client-supplied value is ignored.
    """
    if not items:
        raise ValidationError("At least one item is required")

    status = (coerce_text(data.get("status"), "status") or STATUS_DRAFT).lower()
    if status not in (STATUS_DRAFT, STATUS_COMPLETED):
        raise ValidationError("status must be draft or completed on creation")

    warranty_unit = (coerce_text(data.get("warranty_unit"), "warrantyUnit") or "months").lower()
    if warranty_unit not in WARRANTY_UNITS:
        raise ValidationError(f"warrantyUnit must be one of: {', '.join(WARRANTY_UNITS)}")

    invoice_number = coerce_text(data.get("invoice_number"), "invoiceNumber", max_length=64)
    if not invoice_number:
        raise ValidationError("invoiceNumber is required")

    header = IncomingInventory(
        company_id=company_id,
        invoice_number=invoice_number,
        invoice_date=coerce_date(data.get("invoice_date"), "invoiceDate"),
        receiving_date=coerce_date(data.get("receiving_date"), "receivingDate"),
        docket_number=coerce_text(data.get("docket_number"), "docketNumber", max_length=64),
        transportor_name=coerce_text(data.get("transportor_name"), "transportorName", max_length=255),
        vendor_id=check_owned(Vendor, company_id, data.get("vendor_id"), "vendorId"),
        brand_id=check_owned(Brand, company_id, data.get("brand_id"), "brandId"),
        warranty=coerce_int(data.get("warranty") or 0, "warranty", minimum=0),
        warranty_unit=warranty_unit,
        received_by=coerce_text(data.get("received_by"), "receivedBy", max_length=255),
        remarks=coerce_text(data.get("remarks"), "remarks"),
        document_type=coerce_text(data.get("document_type"), "documentType", max_length=32) or "bill",
        status=STATUS_DRAFT,
        is_active=True,
        created_by_user_id=created_by_user_id,
    )

    seen_skus: set[int] = set()
    total_value = Decimal("0")
    for index, raw in enumerate(items):
        item, incl = _build_item(company_id, raw, index)
        if item.sku_id in seen_skus:
            raise ValidationError(f"items[{index}].skuId appears more than once")
        seen_skus.add(item.sku_id)
        header.items.append(item)
        total_value += incl

    header.total_value = total_value
    db.session.add(header)
    db.session.flush()

    if status == STATUS_COMPLETED:
        header.status = STATUS_COMPLETED
        header.completed_at = utcnow()
        _apply_contribution(header, +1)

    db.session.commit()
    current_app.logger.info(
        "Created incoming inventory %s (invoice %s, %d items, %s)",
        header.id, header.invoice_number, len(header.items), header.status,
    )

    if header.status == STATUS_COMPLETED:
        price_history_service.record_completion(header)
    return header


# Quantity moves

def move_received_to_rejected(
    *,
    company_id: str,
    incoming_id: int,
    item_id,
    quantity,
    inspection_date=None,
    reason: str | None = None,
) -> tuple[IncomingInventoryItem, RejectedItemReport]:
    """
    received -= quantity, rejected += quantity, plus one RejectedItemReport.

    Both writes commit together or not at all.
    """
    quantity = coerce_int(quantity, "quantity", minimum=1)
    reason = coerce_text(reason, "reason", max_length=rejected_report_service.REASON_MAX_LENGTH)
    inspected_on = coerce_date(inspection_date, "inspectionDate") if inspection_date else None

    header = get_incoming(company_id=company_id, incoming_id=incoming_id, for_update=True)
    _ensure_mutable(header)
    item = _get_item(header, item_id)

    before = ItemQuantities.of(item)
    after = plan_received_move(before, quantity)

    result = db.session.execute(
        update(IncomingInventoryItem)
        .where(
            IncomingInventoryItem.id == item.id,
            IncomingInventoryItem.received >= quantity,
        )
        .values(
            received=IncomingInventoryItem.received - quantity,
            rejected=IncomingInventoryItem.rejected + quantity,
        )
        .execution_options(synchronize_session=False)
    )
    require_single_row(result, "Received quantity changed; not enough received units to move", error=ValidationError)
    db.session.refresh(item)

    _stock_delta(header, item.sku_id, before, after)

    report = rejected_report_service.create_report(
        header=header,
        item=item,
        quantity=quantity,
        inspection_date=inspected_on,
        reason=reason,
    )

    db.session.commit()
    current_app.logger.info(
        "Moved %d received to rejected on item %s (incoming %s); report %s",
        quantity, item.id, header.id, report.report_number,
    )
    return item, report


def move_short_to_rejected(*, company_id: str, incoming_id: int, item_id, quantity=None) -> IncomingInventoryItem:
    """short -= quantity, rejected += quantity. quantity defaults to all remaining short."""
    if quantity is not None:
        quantity = coerce_int(quantity, "quantity", minimum=1)

    header = get_incoming(company_id=company_id, incoming_id=incoming_id, for_update=True)
    _ensure_mutable(header)
    item = _get_item(header, item_id)

    before = ItemQuantities.of(item)
    after = plan_short_move(before, quantity)
    moved = before.short - after.short

    result = db.session.execute(
        update(IncomingInventoryItem)
        .where(
            IncomingInventoryItem.id == item.id,
            IncomingInventoryItem.short >= moved,
        )
        .values(
            short=IncomingInventoryItem.short - moved,
            rejected=IncomingInventoryItem.rejected + moved,
        )
        .execution_options(synchronize_session=False)
    )
    require_single_row(result, "Short quantity changed; not enough short units to move", error=ValidationError)
    db.session.refresh(item)

    _stock_delta(header, item.sku_id, before, after)

    db.session.commit()
    current_app.logger.info("Moved %d short to rejected on item %s (incoming %s)", moved, item.id, header.id)
    return item


# Point updates

ITEM_UPDATE_FIELDS = ("short", "rejected", "challan_number", "challan_date")


def _update_item(header: IncomingInventory, item_id, changes: dict) -> IncomingInventoryItem:
    """Compare-and-set update of one line. Caller holds the header lock and commits."""
    item = _get_item(header, item_id)
    before = ItemQuantities.of(item)

    short = coerce_int(changes["short"], "short", minimum=0) if "short" in changes else None
    rejected = coerce_int(changes["rejected"], "rejected", minimum=0) if "rejected" in changes else None
    after = apply_point_update(before, short=short, rejected=rejected)

    values: dict = {"short": after.short, "rejected": after.rejected}
    if "challan_number" in changes:
        values["challan_number"] = coerce_text(changes["challan_number"], "challanNumber", max_length=64)
    if "challan_date" in changes:
        raw = changes["challan_date"]
        values["challan_date"] = coerce_date(raw, "challanDate") if raw not in (None, "") else None

    result = db.session.execute(
        update(IncomingInventoryItem)
        .where(
            IncomingInventoryItem.id == item.id,
            IncomingInventoryItem.received == before.received,
            IncomingInventoryItem.short == before.short,
            IncomingInventoryItem.rejected == before.rejected,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    require_single_row(result, "Item quantities changed while updating; reload and retry")
    db.session.refresh(item)

    _stock_delta(header, item.sku_id, before, after)
    return item


def _reject_received(changes: dict) -> None:
    if "received" in changes:
        raise ValidationError(
            "Received quantity cannot be modified after creation. It is fixed at entry."
        )


def update_item(
    *,
    company_id: str,
    incoming_id: int,
    item_id,
    changes: dict,
    allowed: tuple[str, ...] = ITEM_UPDATE_FIELDS,
) -> IncomingInventoryItem:
    """
    Overwrite short / rejected / challan fields on one line and commit.

    changes uses snake_case keys. A 'received' key is always rejected.
    """
    _reject_received(changes)
    present = {k: v for k, v in changes.items() if k in allowed}
    if not present:
        raise ValidationError(f"At least one of {', '.join(allowed)} must be provided")

    header = get_incoming(company_id=company_id, incoming_id=incoming_id, for_update=True)
    _ensure_mutable(header)
    item = _update_item(header, item_id, present)

    db.session.commit()
    current_app.logger.info("Updated item %s on incoming %s: %s", item.id, header.id, sorted(present))
    return item


def update_short(*, company_id: str, incoming_id: int, changes: dict) -> IncomingInventory:
    """
    Set short on one or more lines and optionally correct the header's
    invoice number/date, all in one transaction.

    Accepts either item_id + short, or items: [{item_id, short}, ...].
    """
    _reject_received(changes)

    entries = changes.get("items")
    if entries is None:
        if changes.get("item_id") is None:
            raise ValidationError("itemId is required")
        entries = [{"item_id": changes.get("item_id"), "short": changes.get("short")}]
    if not isinstance(entries, list) or not entries:
        raise ValidationError("items must be a non-empty array")

    header = get_incoming(company_id=company_id, incoming_id=incoming_id, for_update=True)
    _ensure_mutable(header)

    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValidationError(f"items[{index}] must be an object")
        _reject_received(entry)
        item_id = entry.get("item_id", entry.get("itemId"))
        if item_id is None:
            raise ValidationError(f"items[{index}].itemId is required")
        if entry.get("short") is None:
            raise ValidationError("short must be provided")
        _update_item(header, item_id, {"short": entry["short"]})

    if changes.get("invoice_number"):
        header.invoice_number = coerce_text(changes["invoice_number"], "invoiceNumber", max_length=64)
    if changes.get("invoice_date"):
        header.invoice_date = coerce_date(changes["invoice_date"], "invoiceDate")

    db.session.commit()
    db.session.refresh(header)
    return header


# Status and deletion

def update_status(*, company_id: str, incoming_id: int, status) -> IncomingInventory:
    status = (coerce_text(status, "status") or "").lower()
    if status not in INCOMING_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(INCOMING_STATUSES)}")

    header = get_incoming(company_id=company_id, incoming_id=incoming_id, for_update=True)
    if status not in ALLOWED_TRANSITIONS[header.status]:
        raise ConflictError(f"Cannot change status from {header.status} to {status}")

    header.status = status
    if status == STATUS_COMPLETED:
        header.completed_at = utcnow()
        _apply_contribution(header, +1)

    db.session.commit()
    current_app.logger.info("Incoming inventory %s is now %s", header.id, status)

    if status == STATUS_COMPLETED:
        price_history_service.record_completion(header)
    return header


def delete_incoming(*, company_id: str, incoming_id: int) -> None:
    """Soft delete. A completed header gives its stock contribution back."""
    header = get_incoming(company_id=company_id, incoming_id=incoming_id, for_update=True)
    if header.status == STATUS_COMPLETED:
        _apply_contribution(header, -1)
    header.is_active = False
    db.session.commit()
    current_app.logger.info("Deleted incoming inventory %s", header.id)


# Reads

def _item_sums():
    item = IncomingInventoryItem
    return (
        db.session.query(
            item.incoming_inventory_id.label("incoming_inventory_id"),
            func.coalesce(func.sum(item.total_quantity), 0).label("total_quantity"),
            func.coalesce(func.sum(item.received), 0).label("received"),
            func.coalesce(func.sum(item.short), 0).label("short"),
            func.coalesce(func.sum(item.rejected), 0).label("rejected"),
            func.coalesce(func.sum(item.total_value_excl_gst), 0).label("total_value_excl_gst"),
            func.coalesce(func.sum(item.gst_amount), 0).label("gst_amount"),
            func.coalesce(func.sum(item.total_value_incl_gst), 0).label("total_value_incl_gst"),
            func.count(item.id).label("item_count"),
        )
        .group_by(item.incoming_inventory_id)
        .subquery()
    )


def _filtered_headers(company_id: str, sums, *, date_from: date | None, date_to: date | None, vendor_id: int | None):
    query = (
        db.session.query(
            IncomingInventory,
            sums.c.total_quantity,
            sums.c.received,
            sums.c.short,
            sums.c.rejected,
            sums.c.total_value_excl_gst,
            sums.c.gst_amount,
            sums.c.total_value_incl_gst,
            sums.c.item_count,
        )
        .outerjoin(sums, sums.c.incoming_inventory_id == IncomingInventory.id)
        .filter(IncomingInventory.company_id == company_id, IncomingInventory.is_active.is_(True))
    )
    if date_from:
        query = query.filter(IncomingInventory.receiving_date >= date_from)
    if date_to:
        query = query.filter(IncomingInventory.receiving_date <= date_to)
    if vendor_id is not None:
        query = query.filter(IncomingInventory.vendor_id == vendor_id)
    return query


def _row_totals(row) -> dict:
    return {
        "total_quantity": int(row.total_quantity or 0),
        "received": int(row.received or 0),
        "short": int(row.short or 0),
        "rejected": int(row.rejected or 0),
        "item_count": int(row.item_count or 0),
    }


def list_incoming(
    *,
    company_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
    vendor_id: int | None = None,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[dict]:
    sums = _item_sums()
    query = _filtered_headers(company_id, sums, date_from=date_from, date_to=date_to, vendor_id=vendor_id)
    if status:
        if status not in INCOMING_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(INCOMING_STATUSES)}")
        query = query.filter(IncomingInventory.status == status)

    rows = (
        query.order_by(IncomingInventory.receiving_date.desc(), IncomingInventory.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    result = []
    for row in rows:
        data = row.IncomingInventory.to_dict()
        data.update(_row_totals(row))
        result.append(data)
    return result


def get_history(
    *,
    company_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
    vendor_id: int | None = None,
    sku: str | None = None,
    limit: int = 1000,
) -> list[dict]:
    """
    Completed receipts with totals. status is 'Pending' while any short
    remains on the receipt, otherwise 'Complete'.
    """
    sums = _item_sums()
    query = _filtered_headers(company_id, sums, date_from=date_from, date_to=date_to, vendor_id=vendor_id)
    query = query.filter(IncomingInventory.status == STATUS_COMPLETED)

    if sku:
        pattern = f"%{sku.strip()}%"
        query = query.filter(
            exists().where(
                and_(
                    IncomingInventoryItem.incoming_inventory_id == IncomingInventory.id,
                    IncomingInventoryItem.sku_id == SKU.id,
                    or_(SKU.sku_code.ilike(pattern), SKU.item_name.ilike(pattern)),
                )
            )
        )

    rows = (
        query.order_by(IncomingInventory.receiving_date.desc(), IncomingInventory.id.desc())
        .limit(limit)
        .all()
    )
    result = []
    for row in rows:
        header = row.IncomingInventory
        totals = _row_totals(row)
        result.append({
            "id": header.id,
            "invoice_number": header.invoice_number,
            "invoice_date": header.invoice_date,
            "receiving_date": header.receiving_date,
            "vendor_name": header.vendor.name if header.vendor else None,
            "received_by": header.received_by,
            "total_value": header.total_value,
            "total_quantity": totals["total_quantity"],
            "received_quantity": totals["received"],
            "total_short": totals["short"],
            "total_rejected": totals["rejected"],
            "total_value_excl_gst": Decimal(str(row.total_value_excl_gst or 0)),
            "gst_amount": Decimal(str(row.gst_amount or 0)),
            "total_value_incl_gst": Decimal(str(row.total_value_incl_gst or 0)),
            "item_count": totals["item_count"],
            "status": "Pending" if totals["short"] > 0 else "Complete",
        })
    return result
