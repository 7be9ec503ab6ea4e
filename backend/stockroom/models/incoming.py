from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_iso_date, to_utc_z


INCOMING_STATUSES = ("draft", "completed", "cancelled")


class IncomingInventory(db.Model):
    """
    Incoming inventory header: one vendor invoice (or challan) being received.

    STATUS FLOW:
    - draft -> completed   (credits SKU stock, snapshots purchase prices)
    - draft -> cancelled
    completed and cancelled are terminal.

    total_value is the GST-inclusive sum over the items.
    Soft-deleted via is_active.
    """
    __tablename__ = "incoming_inventory"
    __table_args__ = (
        db.Index("ix_incoming_inventory_company_active", "company_id", "is_active"),
        db.Index("ix_incoming_inventory_company_invoice", "company_id", "invoice_number"),
        db.Index("ix_incoming_inventory_receiving_date", "company_id", "receiving_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)

    invoice_number = db.Column(db.String(64), nullable=False)
    invoice_date = db.Column(db.Date, nullable=False)
    docket_number = db.Column(db.String(64), nullable=True)
    transportor_name = db.Column(db.String(255), nullable=True)

    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=False, index=True)

    warranty = db.Column(db.Integer, nullable=False, default=0)
    warranty_unit = db.Column(db.String(16), nullable=False, default="months")

    receiving_date = db.Column(db.Date, nullable=False)
    received_by = db.Column(db.String(255), nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    document_type = db.Column(db.String(32), nullable=False, default="bill")

    status = db.Column(db.String(16), nullable=False, default="draft", index=True)
    total_value = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    vendor = db.relationship("Vendor")
    brand = db.relationship("Brand")
    items = db.relationship(
        "IncomingInventoryItem",
        backref="incoming_inventory",
        lazy=True,
        order_by="IncomingInventoryItem.id",
    )

    def __repr__(self) -> str:
        return f"<IncomingInventory id={self.id} invoice={self.invoice_number!r} status={self.status}>"

    def to_dict(self, *, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "company_id": self.company_id,
            "invoice_number": self.invoice_number,
            "invoice_date": to_iso_date(self.invoice_date),
            "docket_number": self.docket_number,
            "transportor_name": self.transportor_name,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor.name if self.vendor else None,
            "brand_id": self.brand_id,
            "brand_name": self.brand.name if self.brand else None,
            "warranty": self.warranty,
            "warranty_unit": self.warranty_unit,
            "receiving_date": to_iso_date(self.receiving_date),
            "received_by": self.received_by,
            "remarks": self.remarks,
            "document_type": self.document_type,
            "status": self.status,
            "total_value": self.total_value,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "completed_at": to_utc_z(self.completed_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class IncomingInventoryItem(db.Model):
    """
    One SKU line within an incoming inventory header.

    QUANTITIES:
    - total_quantity: ordered, fixed at creation
    - received: accepted units; only lowered by move-received-to-rejected
    - short: units not (yet) delivered; starts at total_quantity - received
    - rejected: units moved out of received or short
    - initial_short: short at creation, never changes

    received + short + rejected never exceeds total_quantity. The gap is the
    number of short units that later arrived.
    """
    __tablename__ = "incoming_inventory_items"
    __table_args__ = (
        db.CheckConstraint("received >= 0", name="ck_incoming_items_received_nonneg"),
        db.CheckConstraint("short >= 0", name="ck_incoming_items_short_nonneg"),
        db.CheckConstraint("rejected >= 0", name="ck_incoming_items_rejected_nonneg"),
        db.CheckConstraint(
            "received + short + rejected <= total_quantity",
            name="ck_incoming_items_quantities_bounded",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    incoming_inventory_id = db.Column(
        db.Integer, db.ForeignKey("incoming_inventory.id"), nullable=False, index=True
    )
    sku_id = db.Column(db.Integer, db.ForeignKey("skus.id"), nullable=False, index=True)

    total_quantity = db.Column(db.Integer, nullable=False)
    received = db.Column(db.Integer, nullable=False, default=0)
    short = db.Column(db.Integer, nullable=False, default=0)
    rejected = db.Column(db.Integer, nullable=False, default=0)
    initial_short = db.Column(db.Integer, nullable=False, default=0)

    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    gst_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    gst_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_value_excl_gst = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_value_incl_gst = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    number_of_boxes = db.Column(db.Integer, nullable=False, default=0)
    received_boxes = db.Column(db.Integer, nullable=False, default=0)

    challan_number = db.Column(db.String(64), nullable=True)
    challan_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    sku = db.relationship("SKU")

    @property
    def arrived(self) -> int:
        return self.total_quantity - self.received - self.short - self.rejected

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "incoming_inventory_id": self.incoming_inventory_id,
            "sku_id": self.sku_id,
            "sku_code": self.sku.sku_code if self.sku else None,
            "item_name": self.sku.item_name if self.sku else None,
            "total_quantity": self.total_quantity,
            "received": self.received,
            "short": self.short,
            "rejected": self.rejected,
            "initial_short": self.initial_short,
            "unit_price": self.unit_price,
            "gst_percentage": self.gst_percentage,
            "gst_amount": self.gst_amount,
            "total_value_excl_gst": self.total_value_excl_gst,
            "total_value_incl_gst": self.total_value_incl_gst,
            "number_of_boxes": self.number_of_boxes,
            "received_boxes": self.received_boxes,
            "challan_number": self.challan_number,
            "challan_date": to_iso_date(self.challan_date),
            "updated_at": to_utc_z(self.updated_at),
        }
