# Overview: Service-layer operations for SKUs; code generation, creation, lookup and soft delete.

"""
SKU Service

sku_code = company_id (6 uppercase letters) + 8 random [A-Z0-9].
Codes are globally unique; generation retries on collision.

current_stock is not writable here. Only incoming inventory moves it.
"""

from __future__ import annotations

import secrets
import string
from typing import Callable

from sqlalchemy import or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import SKU, Brand, ItemCategory, ProductCategory, SubCategory, Vendor
from ..validation import ModelValidationPolicy, validate_payload


SKU_SUFFIX_LENGTH = 8
SKU_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
MAX_SKU_CODE_ATTEMPTS = 20

SKU_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_category_id", "item_category_id", "sub_category_id",
        "vendor_id", "brand_id",
        "item_name", "item_details", "vendor_item_code", "hsn_sac_code",
        "model", "series", "unit", "rack_number",
        "min_stock_level", "reorder_point",
    },
    required_on_create={"item_name"},
)

STOCK_STATUSES = ("low", "out", "in")


def generate_sku_code(company_id: str) -> str:
    suffix = "".join(secrets.choice(SKU_SUFFIX_ALPHABET) for _ in range(SKU_SUFFIX_LENGTH))
    return company_id.upper() + suffix


def generate_unique_sku_code(company_id: str, generator: Callable[[str], str] = generate_sku_code) -> str:
    for _ in range(MAX_SKU_CODE_ATTEMPTS):
        candidate = generator(company_id)
        if not db.session.query(SKU.id).filter_by(sku_code=candidate).first():
            return candidate
    raise ConflictError("Could not allocate a unique SKU code")


def _check_reference(model, company_id: str, record_id: int | None, label: str) -> None:
    if record_id is None:
        return
    found = (
        db.session.query(model.id)
        .filter(model.id == record_id, model.company_id == company_id, model.is_active.is_(True))
        .first()
    )
    if not found:
        raise ValidationError(f"{label} not found for this company")


def build_sku(*, company_id: str, patch: dict) -> SKU:
    """
    Validate references and add a new SKU to the session without committing.

    patch is an already-validated snake_case dict (see SKU_POLICY).
    """
    _check_reference(ProductCategory, company_id, patch.get("product_category_id"), "Product category")
    _check_reference(ItemCategory, company_id, patch.get("item_category_id"), "Item category")
    _check_reference(SubCategory, company_id, patch.get("sub_category_id"), "Sub category")
    _check_reference(Vendor, company_id, patch.get("vendor_id"), "Vendor")
    _check_reference(Brand, company_id, patch.get("brand_id"), "Brand")

    for field in ("min_stock_level", "reorder_point"):
        if patch.get(field) is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")

    if not patch.get("unit"):
        patch["unit"] = "Pcs"

    sku = SKU(
        company_id=company_id,
        sku_code=generate_unique_sku_code(company_id),
        current_stock=0,
        is_active=True,
        **patch,
    )
    db.session.add(sku)
    db.session.flush()
    return sku


def create_sku(*, company_id: str, payload: dict) -> SKU:
    patch = validate_payload(model=SKU, payload=payload, policy=SKU_POLICY, partial=False)
    sku = build_sku(company_id=company_id, patch=patch)
    db.session.commit()
    return sku


def list_skus(
    *,
    company_id: str,
    search: str | None = None,
    product_category_id: int | None = None,
    brand_id: int | None = None,
    stock_status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[SKU], int]:
    """Returns (page, total_count)."""
    query = db.session.query(SKU).filter(SKU.company_id == company_id, SKU.is_active.is_(True))

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                SKU.sku_code.ilike(pattern),
                SKU.item_name.ilike(pattern),
                SKU.model.ilike(pattern),
                SKU.hsn_sac_code.ilike(pattern),
            )
        )
    if product_category_id is not None:
        query = query.filter(SKU.product_category_id == product_category_id)
    if brand_id is not None:
        query = query.filter(SKU.brand_id == brand_id)
    if stock_status:
        if stock_status not in STOCK_STATUSES:
            raise ValidationError(f"stockStatus must be one of: {', '.join(STOCK_STATUSES)}")
        if stock_status == "low":
            query = query.filter(SKU.current_stock <= SKU.min_stock_level)
        elif stock_status == "out":
            query = query.filter(SKU.current_stock == 0)
        else:
            query = query.filter(SKU.current_stock > SKU.min_stock_level)

    total = query.count()
    rows = query.order_by(SKU.id.desc()).offset(offset).limit(limit).all()
    return rows, total


def get_sku(*, company_id: str, sku_id: int) -> SKU:
    sku = (
        db.session.query(SKU)
        .filter(SKU.id == sku_id, SKU.company_id == company_id, SKU.is_active.is_(True))
        .first()
    )
    if not sku:
        raise NotFoundError("SKU not found")
    return sku


def delete_sku(*, company_id: str, sku_id: int) -> SKU:
    sku = get_sku(company_id=company_id, sku_id=sku_id)
    sku.is_active = False
    db.session.commit()
    return sku
