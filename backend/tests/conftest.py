"""
Pytest fixtures for marketplace backend tests.

Every test using `app` runs twice: against the in-memory repository and
against the SQL repository on an in-memory SQLite database.
"""

import pytest

from marketplace import create_app
from marketplace.extensions import db
from marketplace.models import Product, Vendor, ROLE_ADMIN, ROLE_USER, ROLE_VENDOR, VENDOR_ACTIVE, VENDOR_PENDING
from marketplace.services import auth_service, token_service
from marketplace.storage import VENDORS, get_repository

PASSWORD = "Password123"


@pytest.fixture(params=["memory", "sql"])
def app(request):
    """Create application for testing."""
    overrides = {
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "BCRYPT_ROUNDS": 4,
        "LOG_LEVEL": "WARNING",
        "STORAGE_BACKEND": request.param,
        "STORAGE_FALLBACK_TO_MEMORY": False,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
    }
    app = create_app(overrides)
    yield app

    if request.param == "sql":
        with app.app_context():
            db.session.remove()
            db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for(app):
    """Bearer headers for a user id, issued the same way login does."""
    def _headers(user_id: str) -> dict:
        with app.app_context():
            return auth_headers(token_service.issue_token(user_id))
    return _headers


@pytest.fixture
def load(app):
    """Re-read a record in a fresh app context."""
    def _load(model, doc_id):
        with app.app_context():
            return model.load(get_repository(), doc_id)
    return _load


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(name="Test User", email=None, role=ROLE_USER, password=PASSWORD):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        with app.app_context():
            return auth_service.create_user(name=name, email=email, password=password, role=role)
    return _make


@pytest.fixture
def make_vendor(app, make_user):
    """Create a vendor profile and its owner (role vendor once active)."""
    def _make(store_name="Acme Store", status=VENDOR_ACTIVE, category="electronics"):
        owner = make_user(
            name=f"{store_name} Owner",
            role=ROLE_VENDOR if status == VENDOR_ACTIVE else ROLE_USER,
        )
        with app.app_context():
            vendor = Vendor(
                user_id=owner.id,
                store_name=store_name,
                category=category,
                location="Pune",
                status=status,
            )
            return vendor.insert(get_repository())
    return _make


@pytest.fixture
def make_product(app):
    def _make(vendor, name="Widget", price_cents=1000, stock=10, category="electronics", **fields):
        with app.app_context():
            product = Product(
                vendor_id=vendor.id,
                name=name,
                price_cents=price_cents,
                stock=stock,
                category=category,
                images=[f"https://img.example.com/{name.lower()}.png"],
                **fields,
            )
            product.sync_stock_status()
            repository = get_repository()
            product = product.insert(repository)
            repository.increment(VENDORS, vendor.id, {"total_products": 1})
            return product
    return _make


@pytest.fixture
def customer(make_user):
    return make_user(name="Casey Customer", email="casey@example.com")


@pytest.fixture
def customer_headers(customer, headers_for):
    return headers_for(customer.id)


@pytest.fixture
def other_customer(make_user):
    return make_user(name="Olive Other", email="olive@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(name="Ada Admin", email="admin@example.com", role=ROLE_ADMIN)


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin.id)


@pytest.fixture
def vendor(make_vendor):
    return make_vendor("Acme Store")


@pytest.fixture
def vendor_headers(vendor, headers_for):
    return headers_for(vendor.user_id)


@pytest.fixture
def pending_vendor(make_vendor):
    return make_vendor("Pending Goods", status=VENDOR_PENDING)


@pytest.fixture
def product(make_product, vendor):
    return make_product(vendor, name="Headphones", price_cents=2500, stock=5)
