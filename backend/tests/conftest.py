"""
Pytest fixtures for shopledger backend tests.

Provides an in-memory application, a per-test clean database, the seeded
reference data (locations and ledger accounts) and product factories.
"""

import pytest

from shopledger import create_app
from shopledger.extensions import db
from shopledger.models import LedgerAccount, Location, Party, Product
from shopledger.services.issuance import IssuanceContext
from shopledger.services.setup_service import seed_reference_data


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TX_RETRY_BACKOFF': 0,
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
        # Clear all data but keep schema (Core deletes bypass append-only guards)
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def reference_data(db_session):
    """Seed SHOP/WAREHOUSE/SERVICE and the CASH/BANK/BKASH/NAGAD accounts."""
    seed_reference_data(db_session)
    return db_session


@pytest.fixture(scope='function')
def shop(reference_data):
    return reference_data.query(Location).filter_by(code="SHOP").one()


@pytest.fixture(scope='function')
def warehouse(reference_data):
    return reference_data.query(Location).filter_by(code="WAREHOUSE").one()


@pytest.fixture(scope='function')
def cash_account(reference_data):
    return reference_data.query(LedgerAccount).filter_by(kind="CASH").one()


@pytest.fixture(scope='function')
def bkash_account(reference_data):
    return reference_data.query(LedgerAccount).filter_by(kind="BKASH").one()


@pytest.fixture(scope='function')
def customer(reference_data):
    party = Party(name="Rahim Traders", type="CUSTOMER", phone="01700000000")
    reference_data.add(party)
    reference_data.commit()
    return party


@pytest.fixture(scope='function')
def supplier(reference_data):
    party = Party(name="Dhaka Wholesale", type="SUPPLIER")
    reference_data.add(party)
    reference_data.commit()
    return party


@pytest.fixture(scope='function')
def make_product(reference_data):
    """Factory: create a product, optionally with opening stock at a location (SHOP by default)."""
    def _make(title="Ceiling Fan", price_cents=1000, stock=0, location=None, **kwargs):
        product = Product(title=title, price_cents=price_cents, stock=0, **kwargs)
        reference_data.add(product)
        reference_data.commit()
        if stock:
            put_stock(product, stock, location)
        return product
    return _make


def put_stock(product, quantity, location=None):
    """Post opening stock through the stock ledger (keeps totals and locations consistent)."""
    session = db.session
    if location is None:
        location = session.query(Location).filter_by(code="SHOP").one()
    ctx = IssuanceContext.default(session)
    ctx.post_stock(product.id, location.id, quantity, ref_type="OPENING", note="Opening stock")
    session.commit()


@pytest.fixture(scope='function')
def stock_of():
    """Read (product total, {location_code: quantity}) fresh from the database."""
    from shopledger.services import report_service

    def _read(product):
        db.session.expire_all()
        summary = report_service.stock_summary(db.session, product.id)
        return summary["stock"], {row["location_code"]: row["quantity"] for row in summary["locations"]}
    return _read


@pytest.fixture(scope='function')
def add_stock(reference_data):
    """put_stock as a fixture, for tests that need stock at a second location."""
    return put_stock
