"""
Pytest fixtures for the Clamio backend tests.

Provides an in-memory database, the Flask test client, and one account per
role with helpers that build Basic auth headers.
"""

from decimal import Decimal

import pytest

from clamio import create_app
from clamio.extensions import db
from clamio.models import Order, Store, Carrier, Product
from clamio.services import user_service
from clamio.services.auth_service import encode_basic_auth
from clamio.services.rate_limit_service import auth_limiter


PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'PAYMENT_PROOF_FOLDER': str(tmp_path_factory.mktemp("proofs")),
        'ENVIRONMENT': 'test',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        auth_limiter.reset()

        yield db.session

        db.session.rollback()


def basic_headers(email: str, password: str = PASSWORD) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': encode_basic_auth(email, password)}


@pytest.fixture(scope='function')
def superadmin(db_session):
    return user_service.create_user(
        name="Super Admin", email="root@clamio.test", password=PASSWORD, role="superadmin",
    )


@pytest.fixture(scope='function')
def admin(db_session):
    return user_service.create_user(
        name="Asha Admin", email="admin@clamio.test", password=PASSWORD, role="admin",
        contact_number="+91 98765 43210",
    )


@pytest.fixture(scope='function')
def vendor(db_session):
    return user_service.create_user(
        name="Vikram Vendor", email="vendor@clamio.test", password=PASSWORD, role="vendor",
        warehouse_id="67311", phone="9876500001",
    )


@pytest.fixture(scope='function')
def other_vendor(db_session):
    return user_service.create_user(
        name="Other Vendor", email="vendor2@clamio.test", password=PASSWORD, role="vendor",
        warehouse_id="67312",
    )


@pytest.fixture
def superadmin_headers(superadmin):
    return basic_headers(superadmin.email)


@pytest.fixture
def admin_headers(admin):
    return basic_headers(admin.email)


@pytest.fixture
def vendor_headers(vendor):
    return basic_headers(vendor.email)


def make_order(unique_id: str, **fields) -> Order:
    defaults = {
        "order_id": unique_id.split("_")[0],
        "status": "unclaimed",
        "quantity": 1,
        "value": Decimal("100.00"),
        "product_name": "Club Jersey",
        "product_code": "JERSEY-M",
        "account_code": "STORE1",
        "is_in_new_order": True,
    }
    defaults.update(fields)
    order = Order(unique_id=unique_id, **defaults)
    db.session.add(order)
    db.session.commit()
    return order


@pytest.fixture
def store(db_session):
    store = Store(account_code="STORE1", store_name="Main Store")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture
def second_store(db_session):
    store = Store(account_code="STORE2", store_name="Outlet Store")
    db_session.add(store)
    db_session.commit()
    return store


def make_carrier(carrier_id: str, priority: int, account_code: str = "STORE1", **fields) -> Carrier:
    carrier = Carrier(
        carrier_id=carrier_id,
        account_code=account_code,
        carrier_name=fields.pop("carrier_name", f"Carrier {carrier_id}"),
        status=fields.pop("status", "active"),
        priority=priority,
        weight_in_kg=fields.pop("weight_in_kg", 0.5),
    )
    db.session.add(carrier)
    db.session.commit()
    return carrier


def make_product(sku_id: str, name: str, image: str | None = None) -> Product:
    product = Product(sku_id=sku_id, name=name, image=image)
    db.session.add(product)
    db.session.commit()
    return product
