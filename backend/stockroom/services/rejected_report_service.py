# Overview: Service-layer operations for rejected item reports; numbering, dispositions and reads.

"""
Rejected Item Reports

One report per move-received-to-rejected action. The report is written in
the same transaction as the quantity move (see incoming_service), so a move
never exists without its report and vice versa.

Numbering: REJ/<invoice number>/<seq:03d>
- seq = highest sequence already issued for that invoice in the company + 1
- soft-deleted reports still count, so numbers are never reused
- seq is parsed and compared as an integer; padding is a minimum width, so
  /1000 follows /999 even though it sorts before it as text. Nothing orders
  reports by report_number (lists use inspection_date, id)
- (company_id, report_number) is unique; a concurrent writer that races to
  the same number fails with an IntegrityError and its whole move rolls back

Dispositions (sent_to_vendor, received_back, scrapped) may not add up to
more than the report quantity; net_rejected is recomputed on every update.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import or_

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import IncomingInventory, IncomingInventoryItem, RejectedItemReport, SKU
from ..validation import coerce_date, coerce_int, coerce_text
from .reconciliation import rejected_net
from stockroom.time_utils import today


REPORT_PREFIX = "REJ"
REASON_MAX_LENGTH = 30


def report_prefix(invoice_number: str) -> str:
    return f"{REPORT_PREFIX}/{invoice_number}/"


def next_report_number(*, company_id: str, invoice_number: str) -> str:
    prefix = report_prefix(invoice_number)
    existing = (
        db.session.query(RejectedItemReport.report_number)
        .filter(
            RejectedItemReport.company_id == company_id,
            RejectedItemReport.report_number.startswith(prefix, autoescape=True),
        )
        .all()
    )

    highest = 0
    for (number,) in existing:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))

    return f"{prefix}{highest + 1:03d}"


def create_report(
    *,
    header: IncomingInventory,
    item: IncomingInventoryItem,
    quantity: int,
    inspection_date: date | None = None,
    reason: str | None = None,
) -> RejectedItemReport:
    """Add a report to the session and flush. The caller commits."""
    if quantity <= 0:
        raise ValidationError("quantity must be greater than 0")
    reason = coerce_text(reason, "reason", max_length=REASON_MAX_LENGTH)

    report = RejectedItemReport(
        company_id=header.company_id,
        report_number=next_report_number(company_id=header.company_id, invoice_number=header.invoice_number),
        original_invoice_number=header.invoice_number,
        incoming_inventory_id=header.id,
        incoming_inventory_item_id=item.id,
        sku_id=item.sku_id,
        item_name=item.sku.item_name if item.sku else None,
        quantity=quantity,
        sent_to_vendor=0,
        received_back=0,
        scrapped=0,
        net_rejected=quantity,
        status="Pending",
        reason=reason,
        inspection_date=inspection_date or today(),
        is_active=True,
    )
    db.session.add(report)
    db.session.flush()
    return report


def list_reports(
    *,
    company_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[RejectedItemReport], int]:
    query = (
        db.session.query(RejectedItemReport)
        .outerjoin(SKU, SKU.id == RejectedItemReport.sku_id)
        .filter(
            RejectedItemReport.company_id == company_id,
            RejectedItemReport.is_active.is_(True),
        )
    )
    if date_from:
        query = query.filter(RejectedItemReport.inspection_date >= date_from)
    if date_to:
        query = query.filter(RejectedItemReport.inspection_date <= date_to)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                RejectedItemReport.report_number.ilike(pattern),
                RejectedItemReport.original_invoice_number.ilike(pattern),
                RejectedItemReport.item_name.ilike(pattern),
                SKU.sku_code.ilike(pattern),
            )
        )

    total = query.count()
    rows = (
        query.order_by(RejectedItemReport.inspection_date.desc(), RejectedItemReport.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total


def get_report(*, company_id: str, report_id: int) -> RejectedItemReport:
    report = (
        db.session.query(RejectedItemReport)
        .filter(
            RejectedItemReport.id == report_id,
            RejectedItemReport.company_id == company_id,
            RejectedItemReport.is_active.is_(True),
        )
        .first()
    )
    if not report:
        raise NotFoundError("Rejected item report not found")
    return report


def update_report(*, company_id: str, report_id: int, changes: dict) -> RejectedItemReport:
    """
    Apply disposition changes (snake_case keys) and commit.

    Accepted keys: sent_to_vendor, received_back, scrapped, status,
    inspection_date, reason.
    """
    allowed = {"sent_to_vendor", "received_back", "scrapped", "status", "inspection_date", "reason"}
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")
    if not changes:
        raise ValidationError("No fields to update")

    report = get_report(company_id=company_id, report_id=report_id)

    counts = {
        "sent_to_vendor": report.sent_to_vendor,
        "received_back": report.received_back,
        "scrapped": report.scrapped,
    }
    for key in counts:
        if key in changes:
            counts[key] = coerce_int(changes[key], key, minimum=0)

    if sum(counts.values()) > report.quantity:
        raise ValidationError(
            "sentToVendor + receivedBack + scrapped cannot exceed the rejected quantity",
            details={"quantity": report.quantity},
        )

    report.sent_to_vendor = counts["sent_to_vendor"]
    report.received_back = counts["received_back"]
    report.scrapped = counts["scrapped"]
    report.net_rejected = rejected_net(report.quantity, **counts)

    if "status" in changes:
        status = coerce_text(changes["status"], "status", max_length=32)
        if not status:
            raise ValidationError("status cannot be blank")
        report.status = status
    if "inspection_date" in changes:
        report.inspection_date = coerce_date(changes["inspection_date"], "inspectionDate")
    if "reason" in changes:
        report.reason = coerce_text(changes["reason"], "reason", max_length=REASON_MAX_LENGTH)

    db.session.commit()
    return report


def delete_report(*, company_id: str, report_id: int) -> None:
    report = get_report(company_id=company_id, report_id=report_id)
    report.is_active = False
    db.session.commit()
