from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_iso_date, to_utc_z


OUTGOING_STATUSES = ("draft", "completed", "cancelled")
OUTGOING_DESTINATION_TYPES = ("customer", "vendor", "store_to_factory")


class OutgoingInventory(db.Model):
    """
    Outgoing inventory header: one invoice or challan dispatching stock.

    STATUS FLOW:
    - draft -> completed   (takes the dispatched units out of SKU stock)
    - draft -> cancelled
    completed and cancelled are terminal.

    A delivery challan of sub type 'replacement' going 'to_vendor' returns
    rejected units. Rejected units were never credited to stock, so such a
    document records rejected_quantity on its lines and leaves stock alone.
    """
    __tablename__ = "outgoing_inventory"
    __table_args__ = (
        db.Index("ix_outgoing_inventory_company_active", "company_id", "is_active"),
        db.Index("ix_outgoing_inventory_challan_date", "company_id", "invoice_challan_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)

    document_type = db.Column(db.String(32), nullable=False)
    document_sub_type = db.Column(db.String(32), nullable=True)
    vendor_sub_type = db.Column(db.String(32), nullable=True)
    delivery_challan_sub_type = db.Column(db.String(32), nullable=True)

    invoice_challan_date = db.Column(db.Date, nullable=False)
    invoice_challan_number = db.Column(db.String(64), nullable=True)
    docket_number = db.Column(db.String(64), nullable=True)
    transportor_name = db.Column(db.String(255), nullable=True)

    destination_type = db.Column(db.String(32), nullable=False)
    destination_id = db.Column(db.Integer, nullable=True)
    destination_name = db.Column(db.String(255), nullable=True)
    dispatched_by = db.Column(db.String(255), nullable=True)
    remarks = db.Column(db.Text, nullable=True)

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

    items = db.relationship(
        "OutgoingInventoryItem",
        backref="outgoing_inventory",
        lazy=True,
        order_by="OutgoingInventoryItem.id",
    )

    @property
    def is_rejected_return(self) -> bool:
        return (
            self.document_type == "delivery_challan"
            and self.document_sub_type == "replacement"
            and self.delivery_challan_sub_type == "to_vendor"
        )

    def __repr__(self) -> str:
        return f"<OutgoingInventory id={self.id} type={self.document_type!r} status={self.status}>"

    def to_dict(self, *, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "company_id": self.company_id,
            "document_type": self.document_type,
            "document_sub_type": self.document_sub_type,
            "vendor_sub_type": self.vendor_sub_type,
            "delivery_challan_sub_type": self.delivery_challan_sub_type,
            "invoice_challan_date": to_iso_date(self.invoice_challan_date),
            "invoice_challan_number": self.invoice_challan_number,
            "docket_number": self.docket_number,
            "transportor_name": self.transportor_name,
            "destination_type": self.destination_type,
            "destination_id": self.destination_id,
            "destination_name": self.destination_name or "Store to Factory",
            "dispatched_by": self.dispatched_by,
            "remarks": self.remarks,
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


class OutgoingInventoryItem(db.Model):
    __tablename__ = "outgoing_inventory_items"
    __table_args__ = (
        db.CheckConstraint("outgoing_quantity > 0", name="ck_outgoing_items_quantity_pos"),
        db.CheckConstraint("rejected_quantity >= 0", name="ck_outgoing_items_rejected_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    outgoing_inventory_id = db.Column(
        db.Integer, db.ForeignKey("outgoing_inventory.id"), nullable=False, index=True
    )
    sku_id = db.Column(db.Integer, db.ForeignKey("skus.id"), nullable=False, index=True)

    outgoing_quantity = db.Column(db.Integer, nullable=False)
    rejected_quantity = db.Column(db.Integer, nullable=False, default=0)

    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    gst_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    gst_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_value_excl_gst = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_value_incl_gst = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sku = db.relationship("SKU")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "outgoing_inventory_id": self.outgoing_inventory_id,
            "sku_id": self.sku_id,
            "sku_code": self.sku.sku_code if self.sku else None,
            "item_name": self.sku.item_name if self.sku else None,
            "outgoing_quantity": self.outgoing_quantity,
            "rejected_quantity": self.rejected_quantity,
            "unit_price": self.unit_price,
            "gst_percentage": self.gst_percentage,
            "gst_amount": self.gst_amount,
            "total_value_excl_gst": self.total_value_excl_gst,
            "total_value_incl_gst": self.total_value_incl_gst,
        }
