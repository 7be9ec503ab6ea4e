# Overview: Service-layer operations for bulk SKU import from tabular rows.

"""
SKU Import

Rows arrive as dicts keyed by whatever headers the uploaded sheet used
("Item Name *", "itemName", "item_name", ...). Headers are resolved ONCE per
file against HEADER_ALIASES, an ordered table of accepted spellings per
canonical field:

- Header normalization: trailing '*' dropped, camelCase split, spaces and
  hyphens folded to '_', lowercased
- For each canonical field the first alias (in table order) present in the
  file wins; later matches are ignored
- A file missing any REQUIRED_FIELDS column is rejected before any row is read

Row handling:
- Categories are matched by name case-insensitively and created when missing
- Vendor and brand names must already exist (case-insensitive), else the row fails
- A row is fully validated before anything is added for it; failed rows
  are reported, good rows are committed together
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from flask import current_app

from ..errors import AppError, ValidationError
from ..extensions import db
from ..models import Brand, Vendor
from ..validation import coerce_int
from .catalog_service import find_by_name, resolve_category_path
from .sku_service import build_sku


HEADER_ALIASES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("item_name", ("item_name", "name", "product_name")),
    ("product_category", ("product_category", "product_category_name", "category")),
    ("item_category", ("item_category", "item_category_name")),
    ("sub_category", ("sub_category", "sub_category_name", "subcategory")),
    ("vendor", ("vendor", "vendor_name", "supplier")),
    ("brand", ("brand", "brand_name")),
    ("item_details", ("item_details", "details", "description")),
    ("vendor_item_code", ("vendor_item_code", "vendor_code")),
    ("hsn_sac_code", ("hsn_sac_code", "hsn_sac", "hsn_code", "hsn")),
    ("model", ("model", "model_number")),
    ("series", ("series",)),
    ("unit", ("unit", "uom")),
    ("rack_number", ("rack_number", "rack")),
    ("current_stock", ("current_stock", "opening_stock", "stock")),
    ("min_stock_level", ("min_stock_level", "min_stock", "minimum_stock")),
    ("reorder_point", ("reorder_point", "reorder_level")),
)

REQUIRED_FIELDS = ("item_name", "product_category")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[\s\-]+")


def _validate_alias_table() -> None:
    seen: dict[str, str] = {}
    for field, aliases in HEADER_ALIASES:
        for alias in aliases:
            if alias in seen:
                raise RuntimeError(f"Header alias {alias!r} used by both {seen[alias]} and {field}")
            seen[alias] = field
    known = {field for field, _ in HEADER_ALIASES}
    missing = [f for f in REQUIRED_FIELDS if f not in known]
    if missing:
        raise RuntimeError(f"Required import fields without aliases: {missing}")


_validate_alias_table()


def normalize_header(header: Any) -> str:
    text = str(header or "").strip()
    text = text.rstrip("*").strip()
    text = _CAMEL_BOUNDARY.sub(r"_\1", text)
    text = _SEPARATORS.sub("_", text)
    return text.lower().strip("_")


def resolve_headers(headers: Iterable[Any]) -> dict[str, Any]:
    """
    Map canonical field -> original header for one file.

    Raises ValidationError when a required column is missing.
    """
    by_normalized: dict[str, Any] = {}
    for header in headers:
        normalized = normalize_header(header)
        if normalized and normalized not in by_normalized:
            by_normalized[normalized] = header

    mapping: dict[str, Any] = {}
    for field, aliases in HEADER_ALIASES:
        for alias in aliases:
            if alias in by_normalized:
                mapping[field] = by_normalized[alias]
                break

    missing = [f for f in REQUIRED_FIELDS if f not in mapping]
    if missing:
        raise ValidationError(
            f"Missing required columns: {', '.join(missing)}",
            details={"missing": missing, "headers": [str(h) for h in by_normalized.values()]},
        )
    return mapping


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _optional_int(value: Any, field: str) -> int | None:
    text = _text(value)
    if text is None:
        return None
    return coerce_int(text, field, minimum=0)


def _import_row(company_id: str, row: dict) -> dict:
    """Validate everything first; only then add category and SKU rows."""
    item_name = _text(row.get("item_name"))
    if not item_name:
        raise ValidationError("Item Name is required")
    product_category = _text(row.get("product_category"))
    if not product_category:
        raise ValidationError("Product Category is required")
    if _text(row.get("sub_category")) and not _text(row.get("item_category")):
        raise ValidationError("Sub Category requires an Item Category")

    vendor_id = None
    vendor_name = _text(row.get("vendor"))
    if vendor_name:
        vendor = find_by_name(Vendor, company_id=company_id, name=vendor_name)
        if not vendor:
            raise ValidationError(f'Vendor "{vendor_name}" not found')
        vendor_id = vendor.id

    brand_id = None
    brand_name = _text(row.get("brand"))
    if brand_name:
        brand = find_by_name(Brand, company_id=company_id, name=brand_name)
        if not brand:
            raise ValidationError(f'Brand "{brand_name}" not found')
        brand_id = brand.id

    min_stock_level = _optional_int(row.get("min_stock_level"), "Min Stock Level") or 0
    reorder_point = _optional_int(row.get("reorder_point"), "Reorder Point")
    opening_stock = _optional_int(row.get("current_stock"), "Current Stock")

    product, item, sub = resolve_category_path(
        company_id=company_id,
        product_category=product_category,
        item_category=_text(row.get("item_category")),
        sub_category=_text(row.get("sub_category")),
    )

    patch = {
        "item_name": item_name,
        "product_category_id": product.id,
        "item_category_id": item.id if item else None,
        "sub_category_id": sub.id if sub else None,
        "vendor_id": vendor_id,
        "brand_id": brand_id,
        "item_details": _text(row.get("item_details")),
        "vendor_item_code": _text(row.get("vendor_item_code")),
        "hsn_sac_code": _text(row.get("hsn_sac_code")),
        "model": _text(row.get("model")),
        "series": _text(row.get("series")),
        "unit": _text(row.get("unit")),
        "rack_number": _text(row.get("rack_number")),
        "min_stock_level": min_stock_level,
        "reorder_point": reorder_point,
    }

    sku = build_sku(company_id=company_id, patch=patch)
    if opening_stock:
        sku.current_stock = opening_stock
    return {"id": sku.id, "sku_code": sku.sku_code, "item_name": sku.item_name}


def import_skus(*, company_id: str, rows: list[dict]) -> dict:
    """
    Import SKU rows for one company and commit the successful ones.

    Row numbers in errors are 1-based spreadsheet rows (header is row 1).
    """
    if not isinstance(rows, list) or not rows:
        raise ValidationError("No rows to import")
    if not all(isinstance(r, dict) for r in rows):
        raise ValidationError("Each row must be an object")

    headers: list[Any] = []
    for raw in rows:
        for key in raw.keys():
            if key not in headers:
                headers.append(key)
    mapping = resolve_headers(headers)

    inserted: list[dict] = []
    errors: list[dict] = []

    for index, raw in enumerate(rows):
        row = {field: raw.get(header) for field, header in mapping.items()}
        if not any(_text(v) for v in row.values()):
            continue

        try:
            inserted.append(_import_row(company_id, row))
        except AppError as exc:
            errors.append({"row": index + 2, "error": exc.message})

    db.session.commit()
    current_app.logger.info(
        "SKU import for %s: %d inserted, %d failed", company_id, len(inserted), len(errors)
    )
    return {"inserted": inserted, "errors": errors, "total_rows": len(rows)}
