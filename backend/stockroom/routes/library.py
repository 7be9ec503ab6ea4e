# Overview: Flask API routes for library master data (vendors, brands, categories).

"""
Library Routes

SECURITY: All routes require authentication and a matching x-company-id.
Deleting vendors and brands requires an admin role.

Every record is scoped to the session's company.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_company, require_role
from ..services import catalog_service
from ..validation import optional_int_arg
from ..wire import from_wire, ok


library_bp = Blueprint("library", __name__, url_prefix="/api/library")

ADMIN_ROLES = ("super_admin", "admin")


# Vendors

@library_bp.get("/vendors")
@require_auth
@require_company
def list_vendors_route():
    """
    List active vendors.

    Query parameters:
    - search: substring match on name
    """
    vendors = catalog_service.list_vendors(company_id=g.company_id, search=request.args.get("search"))
    return ok([v.to_dict() for v in vendors])


@library_bp.post("/vendors")
@require_auth
@require_company
def create_vendor_route():
    """
    Create a vendor.

    Request body:
    {
        "name": "Vendor Name",      // required, unique within the company
        "contactPerson", "email", "phone", "gstNumber",
        "address", "city", "state", "pin"   // optional
    }
    """
    payload = from_wire(request.get_json(silent=True) or {})
    vendor = catalog_service.create_vendor(company_id=g.company_id, payload=payload)
    return ok(vendor.to_dict(), status=201, message="Vendor created successfully")


@library_bp.delete("/vendors/<int:vendor_id>")
@require_auth
@require_company
@require_role(*ADMIN_ROLES)
def delete_vendor_route(vendor_id: int):
    catalog_service.delete_vendor(company_id=g.company_id, vendor_id=vendor_id)
    return ok(message="Vendor deleted successfully")


# Brands

@library_bp.get("/brands")
@require_auth
@require_company
def list_brands_route():
    brands = catalog_service.list_brands(company_id=g.company_id)
    return ok([b.to_dict() for b in brands])


@library_bp.post("/brands")
@require_auth
@require_company
def create_brand_route():
    payload = from_wire(request.get_json(silent=True) or {})
    brand = catalog_service.create_brand(company_id=g.company_id, payload=payload)
    return ok(brand.to_dict(), status=201, message="Brand created successfully")


@library_bp.delete("/brands/<int:brand_id>")
@require_auth
@require_company
@require_role(*ADMIN_ROLES)
def delete_brand_route(brand_id: int):
    catalog_service.delete_brand(company_id=g.company_id, brand_id=brand_id)
    return ok(message="Brand deleted successfully")


# Categories

@library_bp.get("/product-categories")
@require_auth
@require_company
def list_product_categories_route():
    categories = catalog_service.list_product_categories(company_id=g.company_id)
    return ok([c.to_dict() for c in categories])


@library_bp.post("/product-categories")
@require_auth
@require_company
def create_product_category_route():
    payload = from_wire(request.get_json(silent=True) or {})
    category = catalog_service.create_product_category(company_id=g.company_id, payload=payload)
    return ok(category.to_dict(), status=201)


@library_bp.get("/item-categories")
@require_auth
@require_company
def list_item_categories_route():
    """Query parameters: productCategoryId (optional filter)."""
    categories = catalog_service.list_item_categories(
        company_id=g.company_id,
        product_category_id=optional_int_arg(request.args, "productCategoryId"),
    )
    return ok([c.to_dict() for c in categories])


@library_bp.post("/item-categories")
@require_auth
@require_company
def create_item_category_route():
    """Request body: {"name": "...", "productCategoryId": 1, "description"?: "..."}"""
    payload = from_wire(request.get_json(silent=True) or {})
    category = catalog_service.create_item_category(company_id=g.company_id, payload=payload)
    return ok(category.to_dict(), status=201)


@library_bp.get("/sub-categories")
@require_auth
@require_company
def list_sub_categories_route():
    """Query parameters: itemCategoryId (optional filter)."""
    categories = catalog_service.list_sub_categories(
        company_id=g.company_id,
        item_category_id=optional_int_arg(request.args, "itemCategoryId"),
    )
    return ok([c.to_dict() for c in categories])


@library_bp.post("/sub-categories")
@require_auth
@require_company
def create_sub_category_route():
    payload = from_wire(request.get_json(silent=True) or {})
    category = catalog_service.create_sub_category(company_id=g.company_id, payload=payload)
    return ok(category.to_dict(), status=201)
