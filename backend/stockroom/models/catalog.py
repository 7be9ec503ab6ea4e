from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class Vendor(db.Model):
    """
    Supplier master data.

    MULTI-TENANT: Vendors are company-scoped. Names are unique per company.
    Soft-deleted via is_active so historical receipts keep their reference.
    """
    __tablename__ = "vendors"
    __table_args__ = (
        db.UniqueConstraint("company_id", "name", name="uq_vendors_company_name"),
        db.Index("ix_vendors_company_active", "company_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    gst_number = db.Column(db.String(15), nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(120), nullable=True)
    pin = db.Column(db.String(12), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "gst_number": self.gst_number,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "pin": self.pin,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Brand(db.Model):
    __tablename__ = "brands"
    __table_args__ = (
        db.UniqueConstraint("company_id", "name", name="uq_brands_company_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class ProductCategory(db.Model):
    """Top level of the category hierarchy (product -> item -> sub)."""
    __tablename__ = "product_categories"
    __table_args__ = (
        db.UniqueConstraint("company_id", "name", name="uq_product_categories_company_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class ItemCategory(db.Model):
    __tablename__ = "item_categories"
    __table_args__ = (
        db.UniqueConstraint("product_category_id", "name", name="uq_item_categories_parent_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)
    product_category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product_category = db.relationship("ProductCategory", backref=db.backref("item_categories", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "product_category_id": self.product_category_id,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class SubCategory(db.Model):
    __tablename__ = "sub_categories"
    __table_args__ = (
        db.UniqueConstraint("item_category_id", "name", name="uq_sub_categories_parent_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)
    item_category_id = db.Column(db.Integer, db.ForeignKey("item_categories.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item_category = db.relationship("ItemCategory", backref=db.backref("sub_categories", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "item_category_id": self.item_category_id,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class SKU(db.Model):
    """
    Stock-keeping unit.

    sku_code is 14 characters: the owning company's 6-letter id followed by
    8 random [A-Z0-9]. It is globally unique.

    current_stock is only moved by completed incoming inventory and never
    drops below zero.
    """
    __tablename__ = "skus"
    __table_args__ = (
        db.Index("ix_skus_company_active", "company_id", "is_active"),
        db.Index("ix_skus_company_name", "company_id", "item_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), db.ForeignKey("companies.company_id"), nullable=False, index=True)
    sku_code = db.Column(db.String(14), nullable=False, unique=True, index=True)

    product_category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), nullable=True)
    item_category_id = db.Column(db.Integer, db.ForeignKey("item_categories.id"), nullable=True)
    sub_category_id = db.Column(db.Integer, db.ForeignKey("sub_categories.id"), nullable=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True)

    item_name = db.Column(db.String(255), nullable=False)
    item_details = db.Column(db.Text, nullable=True)
    vendor_item_code = db.Column(db.String(64), nullable=True)
    hsn_sac_code = db.Column(db.String(16), nullable=True)
    model = db.Column(db.String(120), nullable=True)
    series = db.Column(db.String(120), nullable=True)
    unit = db.Column(db.String(32), nullable=False, default="Pcs")
    rack_number = db.Column(db.String(64), nullable=True)

    current_stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)
    reorder_point = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    vendor = db.relationship("Vendor")
    brand = db.relationship("Brand")
    product_category = db.relationship("ProductCategory")
    item_category = db.relationship("ItemCategory")
    sub_category = db.relationship("SubCategory")

    def __repr__(self) -> str:
        return f"<SKU id={self.id} sku_code={self.sku_code!r} company_id={self.company_id!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "sku_code": self.sku_code,
            "product_category_id": self.product_category_id,
            "product_category": self.product_category.name if self.product_category else None,
            "item_category_id": self.item_category_id,
            "item_category": self.item_category.name if self.item_category else None,
            "sub_category_id": self.sub_category_id,
            "sub_category": self.sub_category.name if self.sub_category else None,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor.name if self.vendor else None,
            "brand_id": self.brand_id,
            "brand_name": self.brand.name if self.brand else None,
            "item_name": self.item_name,
            "item_details": self.item_details,
            "vendor_item_code": self.vendor_item_code,
            "hsn_sac_code": self.hsn_sac_code,
            "model": self.model,
            "series": self.series,
            "unit": self.unit,
            "rack_number": self.rack_number,
            "current_stock": self.current_stock,
            "min_stock_level": self.min_stock_level,
            "reorder_point": self.reorder_point,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
