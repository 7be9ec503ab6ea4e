from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_iso_date, to_utc_z


PRICE_HISTORY_TYPES = ("current", "previous", "lowest")


class RejectedItemReport(db.Model):
    """
    One row per move-received-to-rejected action.

    report_number = REJ/<invoice number>/<seq:03d>, where seq is one more
    than the highest sequence already used for that invoice in the company.
    Unique per company, so two concurrent writers cannot share a number.

    net_rejected = max(0, quantity - sent_to_vendor - received_back - scrapped)
    """
    __tablename__ = "rejected_item_reports"
    __table_args__ = (
        db.UniqueConstraint("company_id", "report_number", name="uq_rejected_reports_company_number"),
        db.Index("ix_rejected_reports_company_invoice", "company_id", "original_invoice_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)

    report_number = db.Column(db.String(100), nullable=False)
    original_invoice_number = db.Column(db.String(64), nullable=False)

    incoming_inventory_id = db.Column(db.Integer, db.ForeignKey("incoming_inventory.id"), nullable=False, index=True)
    incoming_inventory_item_id = db.Column(
        db.Integer, db.ForeignKey("incoming_inventory_items.id"), nullable=False, index=True
    )
    sku_id = db.Column(db.Integer, db.ForeignKey("skus.id"), nullable=False)
    item_name = db.Column(db.String(255), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    sent_to_vendor = db.Column(db.Integer, nullable=False, default=0)
    received_back = db.Column(db.Integer, nullable=False, default=0)
    scrapped = db.Column(db.Integer, nullable=False, default=0)
    net_rejected = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(32), nullable=False, default="Pending")
    reason = db.Column(db.String(30), nullable=True)
    inspection_date = db.Column(db.Date, nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    incoming_inventory = db.relationship("IncomingInventory")
    sku = db.relationship("SKU")

    def to_dict(self) -> dict:
        header = self.incoming_inventory
        return {
            "id": self.id,
            "company_id": self.company_id,
            "report_number": self.report_number,
            "original_invoice_number": self.original_invoice_number,
            "incoming_inventory_id": self.incoming_inventory_id,
            "incoming_inventory_item_id": self.incoming_inventory_item_id,
            "sku_id": self.sku_id,
            "sku_code": self.sku.sku_code if self.sku else None,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "sent_to_vendor": self.sent_to_vendor,
            "received_back": self.received_back,
            "scrapped": self.scrapped,
            "net_rejected": self.net_rejected,
            "status": self.status,
            "reason": self.reason,
            "inspection_date": to_iso_date(self.inspection_date),
            "vendor_name": header.vendor.name if header and header.vendor else None,
            "brand_name": header.brand.name if header and header.brand else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PriceHistory(db.Model):
    """
    Purchase price snapshots per SKU.

    Written when an incoming inventory is completed. At most one active row
    per (sku, type): the newest price is 'current', the one it replaced
    becomes 'previous', and 'lowest' tracks the cheapest price seen.
    """
    __tablename__ = "price_history"
    __table_args__ = (
        db.Index("ix_price_history_sku_type_active", "sku_id", "type", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)
    sku_id = db.Column(db.Integer, db.ForeignKey("skus.id"), nullable=False, index=True)

    price = db.Column(db.Numeric(12, 2), nullable=False)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=True)
    vendor_name = db.Column(db.String(255), nullable=True)
    buying_date = db.Column(db.Date, nullable=True)
    invoice_number = db.Column(db.String(64), nullable=True)
    incoming_inventory_id = db.Column(db.Integer, db.ForeignKey("incoming_inventory.id"), nullable=True)

    type = db.Column(db.String(16), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "price": self.price,
            "vendor_name": self.vendor_name,
            "buying_date": to_iso_date(self.buying_date),
            "invoice_number": self.invoice_number,
            "type": self.type,
        }
