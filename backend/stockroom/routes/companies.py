# Overview: Flask API routes for company registration and lookup.

"""
Company routes

Registration is public: it creates the tenant and its first super_admin
user in one transaction. Lookup requires a session for the same company.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_company
from ..errors import ForbiddenError
from ..services import company_service
from ..wire import from_wire, ok


companies_bp = Blueprint("companies", __name__, url_prefix="/api/companies")


@companies_bp.post("/register")
def register_company_route():
    """
    Register a company.

    Request body:
    {
        "companyName": "Acme Traders",      // required
        "gstNumber": "22AAAAA0000A1Z5",     // required, 15 chars, unique
        "email": "owner@acme.test",         // required, admin login
        "password": "...",                  // required, strength-checked
        "fullName": "Owner Name",
        "businessType", "address", "city", "state", "pincode",
        "phone", "adminPhone", "website"    // optional
    }

    Returns 201 with {company, user}. Duplicate GST or email -> 409.
    """
    data = from_wire(request.get_json(silent=True) or {})

    company, user = company_service.register_company(
        company_name=data.get("company_name"),
        gst_number=data.get("gst_number"),
        email=data.get("email"),
        password=data.get("password"),
        full_name=data.get("full_name"),
        business_type=data.get("business_type"),
        address=data.get("address"),
        city=data.get("city"),
        state=data.get("state"),
        pincode=data.get("pincode"),
        phone=data.get("phone"),
        admin_phone=data.get("admin_phone"),
        website=data.get("website"),
    )

    return ok(
        {"company": company.to_dict(), "user": user.to_dict()},
        status=201,
        message="Company registered successfully",
    )


@companies_bp.get("/<company_id>")
@require_auth
@require_company
def get_company_route(company_id: str):
    if company_id.strip().upper() != g.company_id:
        raise ForbiddenError("Company mismatch for this session")
    company = company_service.get_company(g.company_id)
    return ok(company.to_dict())
