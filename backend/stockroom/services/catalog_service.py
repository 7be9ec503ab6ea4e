# Overview: Service-layer operations for library master data; vendors, brands and categories.

"""
Library (Master Data) Service

Vendors, brands and the three-level category hierarchy
(product category -> item category -> sub category).

MULTI-TENANT: every row is company-scoped; every lookup filters by
company_id so ids from another tenant behave as "not found".

Names are unique per company (vendors, brands, product categories) or per
parent (item and sub categories). Category lookups by name are
case-insensitive.
"""

from __future__ import annotations

from sqlalchemy import func

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Brand, ItemCategory, ProductCategory, SubCategory, Vendor
from ..validation import ModelValidationPolicy, validate_payload


VENDOR_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "contact_person", "email", "phone", "gst_number",
        "address", "city", "state", "pin",
    },
    required_on_create={"name"},
)

BRAND_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

PRODUCT_CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

ITEM_CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "product_category_id"},
    required_on_create={"name", "product_category_id"},
)

SUB_CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "item_category_id"},
    required_on_create={"name", "item_category_id"},
)


def _name_taken(model, company_id: str, name: str, **scope) -> bool:
    query = db.session.query(model.id).filter(
        model.company_id == company_id,
        func.lower(model.name) == name.lower(),
    )
    for key, value in scope.items():
        query = query.filter(getattr(model, key) == value)
    return query.first() is not None


def _get_scoped(model, company_id: str, record_id: int, label: str, *, active_only: bool = True):
    query = db.session.query(model).filter(model.id == record_id, model.company_id == company_id)
    if active_only:
        query = query.filter(model.is_active.is_(True))
    record = query.first()
    if not record:
        raise NotFoundError(f"{label} not found")
    return record


# Vendors

def create_vendor(*, company_id: str, payload: dict) -> Vendor:
    patch = validate_payload(model=Vendor, payload=payload, policy=VENDOR_POLICY, partial=False)
    if patch.get("gst_number"):
        patch["gst_number"] = patch["gst_number"].upper()

    if _name_taken(Vendor, company_id, patch["name"]):
        raise ConflictError("Vendor with this name already exists")

    vendor = Vendor(company_id=company_id, is_active=True, **patch)
    db.session.add(vendor)
    db.session.commit()
    return vendor


def list_vendors(*, company_id: str, search: str | None = None) -> list[Vendor]:
    query = db.session.query(Vendor).filter(Vendor.company_id == company_id, Vendor.is_active.is_(True))
    if search:
        query = query.filter(Vendor.name.ilike(f"%{search}%"))
    return query.order_by(Vendor.name.asc()).all()


def get_vendor(*, company_id: str, vendor_id: int) -> Vendor:
    return _get_scoped(Vendor, company_id, vendor_id, "Vendor")


def delete_vendor(*, company_id: str, vendor_id: int) -> Vendor:
    vendor = get_vendor(company_id=company_id, vendor_id=vendor_id)
    vendor.is_active = False
    db.session.commit()
    return vendor


# Brands

def create_brand(*, company_id: str, payload: dict) -> Brand:
    patch = validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=False)
    if _name_taken(Brand, company_id, patch["name"]):
        raise ConflictError("Brand with this name already exists")

    brand = Brand(company_id=company_id, is_active=True, **patch)
    db.session.add(brand)
    db.session.commit()
    return brand


def list_brands(*, company_id: str) -> list[Brand]:
    return (
        db.session.query(Brand)
        .filter(Brand.company_id == company_id, Brand.is_active.is_(True))
        .order_by(Brand.name.asc())
        .all()
    )


def get_brand(*, company_id: str, brand_id: int) -> Brand:
    return _get_scoped(Brand, company_id, brand_id, "Brand")


def delete_brand(*, company_id: str, brand_id: int) -> Brand:
    brand = get_brand(company_id=company_id, brand_id=brand_id)
    brand.is_active = False
    db.session.commit()
    return brand


# Categories

def create_product_category(*, company_id: str, payload: dict) -> ProductCategory:
    patch = validate_payload(
        model=ProductCategory, payload=payload, policy=PRODUCT_CATEGORY_POLICY, partial=False
    )
    if _name_taken(ProductCategory, company_id, patch["name"]):
        raise ConflictError("Product category with this name already exists")

    category = ProductCategory(company_id=company_id, is_active=True, **patch)
    db.session.add(category)
    db.session.commit()
    return category


def create_item_category(*, company_id: str, payload: dict) -> ItemCategory:
    patch = validate_payload(model=ItemCategory, payload=payload, policy=ITEM_CATEGORY_POLICY, partial=False)
    _get_scoped(ProductCategory, company_id, patch["product_category_id"], "Product category")

    if _name_taken(ItemCategory, company_id, patch["name"], product_category_id=patch["product_category_id"]):
        raise ConflictError("Item category with this name already exists")

    category = ItemCategory(company_id=company_id, is_active=True, **patch)
    db.session.add(category)
    db.session.commit()
    return category


def create_sub_category(*, company_id: str, payload: dict) -> SubCategory:
    patch = validate_payload(model=SubCategory, payload=payload, policy=SUB_CATEGORY_POLICY, partial=False)
    _get_scoped(ItemCategory, company_id, patch["item_category_id"], "Item category")

    if _name_taken(SubCategory, company_id, patch["name"], item_category_id=patch["item_category_id"]):
        raise ConflictError("Sub category with this name already exists")

    category = SubCategory(company_id=company_id, is_active=True, **patch)
    db.session.add(category)
    db.session.commit()
    return category


def list_product_categories(*, company_id: str) -> list[ProductCategory]:
    return (
        db.session.query(ProductCategory)
        .filter(ProductCategory.company_id == company_id, ProductCategory.is_active.is_(True))
        .order_by(ProductCategory.name.asc())
        .all()
    )


def list_item_categories(*, company_id: str, product_category_id: int | None = None) -> list[ItemCategory]:
    query = db.session.query(ItemCategory).filter(
        ItemCategory.company_id == company_id, ItemCategory.is_active.is_(True)
    )
    if product_category_id is not None:
        query = query.filter(ItemCategory.product_category_id == product_category_id)
    return query.order_by(ItemCategory.name.asc()).all()


def list_sub_categories(*, company_id: str, item_category_id: int | None = None) -> list[SubCategory]:
    query = db.session.query(SubCategory).filter(
        SubCategory.company_id == company_id, SubCategory.is_active.is_(True)
    )
    if item_category_id is not None:
        query = query.filter(SubCategory.item_category_id == item_category_id)
    return query.order_by(SubCategory.name.asc()).all()


def resolve_category_path(
    *,
    company_id: str,
    product_category: str,
    item_category: str | None = None,
    sub_category: str | None = None,
) -> tuple[ProductCategory, ItemCategory | None, SubCategory | None]:
    """
    Find-or-create a category path by name (case-insensitive).

    Adds new rows to the session without committing; the caller owns the
    transaction. A sub category without an item category is rejected.
    """
    product_category = (product_category or "").strip()
    item_category = (item_category or "").strip()
    sub_category = (sub_category or "").strip()

    if not product_category:
        raise ValidationError("Product category is required")
    if sub_category and not item_category:
        raise ValidationError("Sub category requires an item category")

    product = (
        db.session.query(ProductCategory)
        .filter(
            ProductCategory.company_id == company_id,
            func.lower(ProductCategory.name) == product_category.lower(),
        )
        .first()
    )
    if not product:
        product = ProductCategory(company_id=company_id, name=product_category, is_active=True)
        db.session.add(product)
        db.session.flush()

    item = None
    if item_category:
        item = (
            db.session.query(ItemCategory)
            .filter(
                ItemCategory.product_category_id == product.id,
                func.lower(ItemCategory.name) == item_category.lower(),
            )
            .first()
        )
        if not item:
            item = ItemCategory(
                company_id=company_id,
                product_category_id=product.id,
                name=item_category,
                is_active=True,
            )
            db.session.add(item)
            db.session.flush()

    sub = None
    if sub_category:
        sub = (
            db.session.query(SubCategory)
            .filter(
                SubCategory.item_category_id == item.id,
                func.lower(SubCategory.name) == sub_category.lower(),
            )
            .first()
        )
        if not sub:
            sub = SubCategory(
                company_id=company_id,
                item_category_id=item.id,
                name=sub_category,
                is_active=True,
            )
            db.session.add(sub)
            db.session.flush()

    return product, item, sub


def find_by_name(model, *, company_id: str, name: str | None):
    """Case-insensitive active lookup used by imports (vendors, brands)."""
    name = (name or "").strip()
    if not name:
        return None
    return (
        db.session.query(model)
        .filter(
            model.company_id == company_id,
            model.is_active.is_(True),
            func.lower(model.name) == name.lower(),
        )
        .first()
    )
