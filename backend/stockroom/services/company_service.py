# Overview: Service-layer operations for companies; tenant registration and lookup.

"""
Company Service

Registration creates the tenant and its first super_admin user in one
transaction. Either both rows exist afterwards or neither does.

- gst_number is stored uppercase, globally unique
- admin email is stored lowercase, unique across companies
- company_id: 6 random uppercase letters, retried until unused
"""

import secrets
import string
from typing import Callable

from flask import current_app

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Company, User
from .auth_service import create_user, normalize_email, validate_password_strength


COMPANY_ID_LENGTH = 6
MAX_COMPANY_ID_ATTEMPTS = 100


def generate_company_id() -> str:
    return "".join(secrets.choice(string.ascii_uppercase) for _ in range(COMPANY_ID_LENGTH))


def generate_unique_company_id(generator: Callable[[], str] = generate_company_id) -> str:
    for _ in range(MAX_COMPANY_ID_ATTEMPTS):
        candidate = generator()
        taken = db.session.query(Company.id).filter_by(company_id=candidate).first()
        if not taken:
            return candidate
    raise ConflictError("Could not allocate a unique company id")


def register_company(
    *,
    company_name: str,
    gst_number: str,
    email: str,
    password: str,
    full_name: str | None = None,
    business_type: str | None = None,
    address: str | None = None,
    city: str | None = None,
    state: str | None = None,
    pincode: str | None = None,
    phone: str | None = None,
    admin_phone: str | None = None,
    website: str | None = None,
) -> tuple[Company, User]:
    """
    Create a company plus its super_admin and commit.

    Raises:
        ValidationError: missing fields or weak password
        ConflictError: GST number or admin email already registered
    """
    company_name = str(company_name or "").strip()
    gst_number = str(gst_number or "").strip().upper()
    email = normalize_email(email)

    if not company_name:
        raise ValidationError("companyName is required")
    if not gst_number:
        raise ValidationError("gstNumber is required")
    if len(gst_number) != 15:
        raise ValidationError("gstNumber must be 15 characters")
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    validate_password_strength(password)

    if db.session.query(Company.id).filter_by(gst_number=gst_number).first():
        raise ConflictError("Company with this GST number already exists")

    if db.session.query(Company.id).filter_by(email=email).first():
        raise ConflictError("Email address already registered")

    company = Company(
        company_id=generate_unique_company_id(),
        name=company_name,
        gst_number=gst_number,
        business_type=business_type,
        email=email,
        phone=phone,
        address=address,
        city=city,
        state=state,
        pincode=pincode,
        website=website,
        is_active=True,
    )
    db.session.add(company)
    db.session.flush()

    user = create_user(
        company_id=company.company_id,
        email=email,
        password=password,
        full_name=full_name,
        phone=admin_phone or phone,
        role="super_admin",
    )

    db.session.commit()
    current_app.logger.info("Registered company %s (%s)", company.company_id, company.name)
    return company, user


def get_company(company_id: str) -> Company:
    company = db.session.query(Company).filter_by(company_id=(company_id or "").strip().upper()).first()
    if not company:
        raise NotFoundError("Company not found")
    return company


def list_companies() -> list[Company]:
    return db.session.query(Company).order_by(Company.id.asc()).all()
