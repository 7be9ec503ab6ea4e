# Overview: Service-layer operations for outgoing inventory; dispatch, status, deletion and reads.

"""
Outgoing Inventory Service

A header (one sales invoice, delivery challan or transfer note) plus one line
per SKU dispatched.

STOCK:
- Completing a document takes each line's outgoing_quantity out of
  SKU.current_stock. The decrement is a guarded UPDATE
  (WHERE current_stock >= quantity), so stock never goes negative and the
  whole document fails if any line is short of stock
- A rejected-item return (delivery_challan / replacement / to_vendor) records
  rejected_quantity = outgoing_quantity and never touches stock
- Soft delete of a completed document puts its stock back

Every mutation is one transaction; any error rolls back everything.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, update

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    SKU,
    OutgoingInventory,
    OutgoingInventoryItem,
    OUTGOING_STATUSES,
    Vendor,
)
from ..models.outgoing import OUTGOING_DESTINATION_TYPES
from ..validation import coerce_date, coerce_int, coerce_money, coerce_text
from .concurrency import lock_for_update
from .incoming_service import MAX_GST_PERCENTAGE, check_owned
from .reconciliation import line_totals
from stockroom.time_utils import utcnow


STATUS_DRAFT = "draft"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

ALLOWED_TRANSITIONS = {
    STATUS_DRAFT: {STATUS_COMPLETED, STATUS_CANCELLED},
    STATUS_COMPLETED: set(),
    STATUS_CANCELLED: set(),
}

STORE_TO_FACTORY = "Store to Factory"


def get_outgoing(*, company_id: str, outgoing_id: int, for_update: bool = False) -> OutgoingInventory:
    query = db.session.query(OutgoingInventory).filter(
        OutgoingInventory.id == outgoing_id,
        OutgoingInventory.company_id == company_id,
        OutgoingInventory.is_active.is_(True),
    )
    if for_update:
        query = lock_for_update(query)
    header = query.first()
    if not header:
        raise NotFoundError("Outgoing inventory record not found")
    return header


# Stock

def _take_stock(item: OutgoingInventoryItem) -> None:
    quantity = item.outgoing_quantity
    result = db.session.execute(
        update(SKU)
        .where(SKU.id == item.sku_id, SKU.current_stock >= quantity)
        .values(current_stock=SKU.current_stock - quantity)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        sku_code, available = (
            db.session.query(SKU.sku_code, SKU.current_stock).filter(SKU.id == item.sku_id).one()
        )
        raise ValidationError(
            f"Insufficient stock for SKU {sku_code}. Available: {available}, Required: {quantity}",
            details={"skuId": item.sku_id, "available": available, "required": quantity},
        )


def _return_stock(item: OutgoingInventoryItem) -> None:
    db.session.execute(
        update(SKU)
        .where(SKU.id == item.sku_id)
        .values(current_stock=SKU.current_stock + item.outgoing_quantity)
        .execution_options(synchronize_session="fetch")
    )


def _complete(header: OutgoingInventory) -> None:
    header.status = STATUS_COMPLETED
    header.completed_at = utcnow()
    if not header.is_rejected_return:
        for item in header.items:
            _take_stock(item)


# Creation

def _lowered(value, field: str) -> str | None:
    text = coerce_text(value, field, max_length=32)
    return text.lower() if text else None


def _destination(company_id: str, data: dict) -> tuple[str, int | None, str | None]:
    destination_type = (coerce_text(data.get("destination_type"), "destinationType") or "").lower()
    if destination_type not in OUTGOING_DESTINATION_TYPES:
        raise ValidationError(f"destinationType must be one of: {', '.join(OUTGOING_DESTINATION_TYPES)}")

    if destination_type == "store_to_factory":
        return destination_type, None, None

    if destination_type == "vendor":
        vendor_id = check_owned(Vendor, company_id, data.get("destination_id"), "destinationId")
        return destination_type, vendor_id, db.session.get(Vendor, vendor_id).name

    destination_id = data.get("destination_id")
    if destination_id not in (None, ""):
        destination_id = coerce_int(destination_id, "destinationId", minimum=1)
    else:
        destination_id = None
    name = coerce_text(data.get("destination_name"), "destinationName", max_length=255)
    if not name:
        raise ValidationError("destinationName is required for a customer destination")
    return destination_type, destination_id, name


def _build_item(company_id: str, raw, index: int, rejected_return: bool) -> OutgoingInventoryItem:
    if not isinstance(raw, dict):
        raise ValidationError(f"items[{index}] must be an object")
    if raw.get("sku_id") in (None, ""):
        raise ValidationError(f"items[{index}].skuId is required")
    sku_id = check_owned(SKU, company_id, raw.get("sku_id"), f"items[{index}].skuId")

    quantity = coerce_int(raw.get("outgoing_quantity"), f"items[{index}].outgoingQuantity", minimum=1)
    unit_price = coerce_money(raw.get("unit_price") or 0, f"items[{index}].unitPrice")
    gst_raw = raw.get("gst_percentage")
    gst_percentage = coerce_money(gst_raw, f"items[{index}].gstRate") if gst_raw not in (None, "") else Decimal("0")
    if gst_percentage > MAX_GST_PERCENTAGE:
        raise ValidationError(f"items[{index}].gstRate cannot exceed 100")

    totals = line_totals(quantity, unit_price, gst_percentage)
    return OutgoingInventoryItem(
        sku_id=sku_id,
        outgoing_quantity=quantity,
        rejected_quantity=quantity if rejected_return else 0,
        unit_price=unit_price,
        gst_percentage=gst_percentage,
        gst_amount=totals.gst_amount,
        total_value_excl_gst=totals.total_value_excl_gst,
        total_value_incl_gst=totals.total_value_incl_gst,
    )


def create_outgoing(*, company_id: str, data: dict, items, created_by_user_id: int | None = None) -> OutgoingInventory:
    """
    Create a header and its items in one transaction and commit.

    data and items use snake_case keys. A document created as completed
    takes its stock immediately; insufficient stock on any line fails the
    whole document.
    """
    document_type = coerce_text(data.get("document_type"), "documentType", max_length=32)
    if not document_type:
        raise ValidationError("documentType is required")
    if data.get("invoice_challan_date") in (None, ""):
        raise ValidationError("invoiceChallanDate is required")
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item is required")

    status = (coerce_text(data.get("status"), "status") or STATUS_DRAFT).lower()
    if status not in (STATUS_DRAFT, STATUS_COMPLETED):
        raise ValidationError("status must be draft or completed on creation")

    destination_type, destination_id, destination_name = _destination(company_id, data)

    header = OutgoingInventory(
        company_id=company_id,
        document_type=document_type.lower(),
        document_sub_type=_lowered(data.get("document_sub_type"), "documentSubType"),
        vendor_sub_type=coerce_text(data.get("vendor_sub_type"), "vendorSubType", max_length=32),
        delivery_challan_sub_type=_lowered(data.get("delivery_challan_sub_type"), "deliveryChallanSubType"),
        invoice_challan_date=coerce_date(data.get("invoice_challan_date"), "invoiceChallanDate"),
        invoice_challan_number=coerce_text(data.get("invoice_challan_number"), "invoiceChallanNumber", max_length=64),
        docket_number=coerce_text(data.get("docket_number"), "docketNumber", max_length=64),
        transportor_name=coerce_text(data.get("transportor_name"), "transportorName", max_length=255),
        destination_type=destination_type,
        destination_id=destination_id,
        destination_name=destination_name,
        dispatched_by=coerce_text(data.get("dispatched_by"), "dispatchedBy", max_length=255),
        remarks=coerce_text(data.get("remarks"), "remarks"),
        status=STATUS_DRAFT,
        is_active=True,
        created_by_user_id=created_by_user_id,
    )

    seen_skus: set[int] = set()
    total_value = Decimal("0")
    for index, raw in enumerate(items):
        item = _build_item(company_id, raw, index, header.is_rejected_return)
        if item.sku_id in seen_skus:
            raise ValidationError(f"items[{index}].skuId appears more than once")
        seen_skus.add(item.sku_id)
        header.items.append(item)
        total_value += item.total_value_incl_gst

    header.total_value = total_value
    db.session.add(header)
    db.session.flush()

    if status == STATUS_COMPLETED:
        _complete(header)

    db.session.commit()
    current_app.logger.info(
        "Created outgoing inventory %s (%s, %d items, %s)",
        header.id, header.document_type, len(header.items), header.status,
    )
    return header


# Status and deletion

def update_status(*, company_id: str, outgoing_id: int, status) -> OutgoingInventory:
    status = (coerce_text(status, "status") or "").lower()
    if status not in OUTGOING_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(OUTGOING_STATUSES)}")

    header = get_outgoing(company_id=company_id, outgoing_id=outgoing_id, for_update=True)
    if status not in ALLOWED_TRANSITIONS[header.status]:
        raise ConflictError(f"Cannot change status from {header.status} to {status}")

    if status == STATUS_COMPLETED:
        _complete(header)
    else:
        header.status = status

    db.session.commit()
    current_app.logger.info("Outgoing inventory %s is now %s", header.id, status)
    return header


def delete_outgoing(*, company_id: str, outgoing_id: int) -> None:
    """Soft delete. A completed dispatch puts its stock back."""
    header = get_outgoing(company_id=company_id, outgoing_id=outgoing_id, for_update=True)
    if header.status == STATUS_COMPLETED and not header.is_rejected_return:
        for item in header.items:
            _return_stock(item)
    header.is_active = False
    db.session.commit()
    current_app.logger.info("Deleted outgoing inventory %s", header.id)


# Reads

def _destination_filter(query, destination: str | None):
    if destination:
        pattern = f"%{destination.strip()}%"
        query = query.filter(
            func.coalesce(OutgoingInventory.destination_name, STORE_TO_FACTORY).ilike(pattern)
        )
    return query


def list_outgoing(
    *,
    company_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
    destination: str | None = None,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[dict]:
    item = OutgoingInventoryItem
    sums = (
        db.session.query(
            item.outgoing_inventory_id.label("outgoing_inventory_id"),
            func.coalesce(func.sum(item.outgoing_quantity), 0).label("total_quantity_sum"),
            func.coalesce(func.sum(item.total_value_incl_gst), 0).label("total_value_sum"),
            func.count(item.id).label("item_count"),
        )
        .group_by(item.outgoing_inventory_id)
        .subquery()
    )
    query = (
        db.session.query(OutgoingInventory, sums.c.total_quantity_sum, sums.c.total_value_sum, sums.c.item_count)
        .outerjoin(sums, sums.c.outgoing_inventory_id == OutgoingInventory.id)
        .filter(OutgoingInventory.company_id == company_id, OutgoingInventory.is_active.is_(True))
    )
    if date_from:
        query = query.filter(OutgoingInventory.invoice_challan_date >= date_from)
    if date_to:
        query = query.filter(OutgoingInventory.invoice_challan_date <= date_to)
    query = _destination_filter(query, destination)
    if status:
        if status not in OUTGOING_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(OUTGOING_STATUSES)}")
        query = query.filter(OutgoingInventory.status == status)

    rows = (
        query.order_by(
            OutgoingInventory.invoice_challan_date.desc(),
            OutgoingInventory.created_at.desc(),
            OutgoingInventory.id.desc(),
        )
        .offset(offset)
        .limit(limit)
        .all()
    )
    result = []
    for row in rows:
        data = row.OutgoingInventory.to_dict()
        data["total_quantity_sum"] = int(row.total_quantity_sum or 0)
        data["total_value_sum"] = Decimal(str(row.total_value_sum or 0))
        data["item_count"] = int(row.item_count or 0)
        result.append(data)
    return result


def get_history(
    *,
    company_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
    destination: str | None = None,
    sku: str | None = None,
    limit: int = 1000,
) -> list[dict]:
    """
    One row per dispatched line on completed documents.

    document_number is the invoice/challan number, falling back to the
    docket number.
    """
    query = (
        db.session.query(OutgoingInventoryItem, OutgoingInventory, SKU)
        .join(OutgoingInventory, OutgoingInventory.id == OutgoingInventoryItem.outgoing_inventory_id)
        .join(SKU, SKU.id == OutgoingInventoryItem.sku_id)
        .filter(
            OutgoingInventory.company_id == company_id,
            OutgoingInventory.is_active.is_(True),
            OutgoingInventory.status == STATUS_COMPLETED,
        )
    )
    if date_from:
        query = query.filter(OutgoingInventory.invoice_challan_date >= date_from)
    if date_to:
        query = query.filter(OutgoingInventory.invoice_challan_date <= date_to)
    query = _destination_filter(query, destination)
    if sku:
        query = query.filter(SKU.sku_code.ilike(f"%{sku.strip()}%"))

    rows = (
        query.order_by(
            OutgoingInventory.invoice_challan_date.desc(),
            OutgoingInventory.created_at.desc(),
            OutgoingInventoryItem.id.asc(),
        )
        .limit(limit)
        .all()
    )
    return [
        {
            "id": item.id,
            "record_id": header.id,
            "invoice_challan_date": header.invoice_challan_date,
            "document_number": header.invoice_challan_number or header.docket_number,
            "document_type": header.document_type,
            "document_sub_type": header.document_sub_type,
            "vendor_sub_type": header.vendor_sub_type,
            "delivery_challan_sub_type": header.delivery_challan_sub_type,
            "destination": header.destination_name or STORE_TO_FACTORY,
            "destination_type": header.destination_type,
            "sku_code": sku_row.sku_code,
            "item_name": sku_row.item_name,
            "outgoing_quantity": item.outgoing_quantity,
            "rejected_quantity": item.rejected_quantity,
            "unit_price": item.unit_price,
            "total_value_excl_gst": item.total_value_excl_gst,
            "gst_percentage": item.gst_percentage,
            "gst_amount": item.gst_amount,
            "total_value_incl_gst": item.total_value_incl_gst,
            "status": header.status,
            "created_at": header.created_at,
        }
        for item, header, sku_row in rows
    ]
