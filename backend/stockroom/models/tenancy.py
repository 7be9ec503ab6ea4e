from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class Company(db.Model):
    """
    Multi-tenant root: every tenant is a Company.

    The public identifier is company_id, six uppercase letters generated at
    registration. Every tenant-scoped table references it, and the
    x-company-id request header carries it.

    - gst_number is stored uppercase and is globally unique
    - email (the registering admin's address) is stored lowercase
    - Companies are never deleted
    """
    __tablename__ = "companies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.String(6), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    gst_number = db.Column(db.String(15), nullable=False, unique=True, index=True)
    business_type = db.Column(db.String(64), nullable=True)

    email = db.Column(db.String(255), nullable=False, unique=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(120), nullable=True)
    pincode = db.Column(db.String(12), nullable=True)
    website = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Company company_id={self.company_id!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "gst_number": self.gst_number,
            "business_type": self.business_type,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "website": self.website,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
