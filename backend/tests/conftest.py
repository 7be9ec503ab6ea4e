"""
Pytest fixtures for Stockroom backend tests.

Provides test database setup, two tenants with master data, and a test client.
"""


import pytest
from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Brand, Company, ProductCategory, SKU, User, Vendor
from stockroom.services import session_service
from stockroom.services.auth_service import hash_password


PASSWORD = "Passw0rd!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_ENGINE_OPTIONS': {},
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hash(app):
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(PASSWORD)


def _make_company(db_session, password_hash, *, code, name, gst, email):
    company = Company(company_id=code, name=name, gst_number=gst, email=email, is_active=True)
    db_session.add(company)
    db_session.flush()
    user = User(
        company_id=code,
        email=email,
        full_name=f"{name} Admin",
        password_hash=password_hash,
        role="super_admin",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return company, user


@pytest.fixture(scope='function')
def company_a(db_session, password_hash):
    """Company A (first tenant) with its super_admin."""
    return _make_company(
        db_session, password_hash,
        code="ACMEAA", name="Acme Traders", gst="22AAAAA0000A1Z5", email="owner@acme.test",
    )


@pytest.fixture(scope='function')
def company_b(db_session, password_hash):
    """Company B (second tenant) with its super_admin."""
    return _make_company(
        db_session, password_hash,
        code="BETABB", name="Beta Supplies", gst="27BBBBB1111B1Z6", email="owner@beta.test",
    )


@pytest.fixture(scope='function')
def plain_user_a(db_session, company_a, password_hash):
    """A non-admin user in Company A."""
    user = User(
        company_id="ACMEAA",
        email="clerk@acme.test",
        password_hash=password_hash,
        role="user",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


def _library(db_session, company_id, prefix):
    vendor = Vendor(company_id=company_id, name=f"{prefix} Vendor", is_active=True)
    brand = Brand(company_id=company_id, name=f"{prefix} Brand", is_active=True)
    category = ProductCategory(company_id=company_id, name=f"{prefix} Electronics", is_active=True)
    db_session.add_all([vendor, brand, category])
    db_session.flush()

    sku = SKU(
        company_id=company_id,
        sku_code=f"{company_id}SKU00001",
        product_category_id=category.id,
        vendor_id=vendor.id,
        brand_id=brand.id,
        item_name=f"{prefix} Widget",
        unit="Pcs",
        current_stock=0,
        min_stock_level=0,
        is_active=True,
    )
    db_session.add(sku)
    db_session.commit()
    return {"vendor": vendor, "brand": brand, "category": category, "sku": sku}


@pytest.fixture(scope='function')
def library_a(db_session, company_a):
    """Vendor, brand, product category and one SKU in Company A."""
    return _library(db_session, "ACMEAA", "Acme")


@pytest.fixture(scope='function')
def library_b(db_session, company_b):
    """Vendor, brand, product category and one SKU in Company B."""
    return _library(db_session, "BETABB", "Beta")


@pytest.fixture(scope='function')
def second_sku_a(db_session, library_a):
    sku = SKU(
        company_id="ACMEAA",
        sku_code="ACMEAASKU00002",
        product_category_id=library_a["category"].id,
        item_name="Acme Gadget",
        unit="Pcs",
        current_stock=0,
        min_stock_level=0,
        is_active=True,
    )
    db_session.add(sku)
    db_session.commit()
    return sku


def auth_headers(token: str, company_id: str) -> dict:
    """Helper to create Authorization + tenant headers."""
    return {'Authorization': f'Bearer {token}', 'x-company-id': company_id}


def token_for(user: User) -> str:
    _, token = session_service.create_session(user)
    return token


@pytest.fixture(scope='function')
def headers_a(company_a):
    _, user = company_a
    return auth_headers(token_for(user), "ACMEAA")


@pytest.fixture(scope='function')
def headers_b(company_b):
    _, user = company_b
    return auth_headers(token_for(user), "BETABB")


def incoming_body(library, *, items=None, invoice="INV-100", status=None) -> dict:
    """A valid camelCase create body for POST /api/inventory/incoming."""
    body = {
        "invoiceNumber": invoice,
        "invoiceDate": "2024-03-01",
        "receivingDate": "2024-03-02",
        "vendorId": library["vendor"].id,
        "brandId": library["brand"].id,
        "receivedBy": "Dock 1",
        "items": items if items is not None else [
            {
                "skuId": library["sku"].id,
                "totalQuantity": 100,
                "received": 90,
                "unitPrice": 12.5,
                "gstRate": 18,
            }
        ],
    }
    if status:
        body["status"] = status
    return body
