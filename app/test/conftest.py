"""
Pytest configuration and fixtures for the procurement core
"""
import os
import tempfile

# Keep test runs from truncating the application's log files
os.environ.setdefault('LOG_DIR', os.path.join(tempfile.gettempdir(), 'procurement-test-logs'))

import pytest  # noqa: E402
from app import create_app  # noqa: E402
from app import db as _db  # noqa: E402
from app.buisness.procurement.dispatch_engine import DispatchEngine  # noqa: E402
from app.data.procurement import (  # noqa: E402
    PurchaseRequest,
    SupplierOrder,
    SupplierOrderLine,
    SupplierReference,
)


@pytest.fixture(scope='session')
def app():
    """Create Flask application for testing"""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'RATELIMIT_ENABLED': False,
    })

    with app.app_context():
        yield app


@pytest.fixture(autouse=True)
def db(app):
    """Fresh schema for every test"""
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture
def make_reference(db):
    """Create a supplier catalogue reference"""
    def _make(stock_item_id, supplier_id, supplier_ref, is_preferred=True, unit_price=None, lead_time_days=None):
        reference = SupplierReference(
            stock_item_id=stock_item_id,
            supplier_id=supplier_id,
            supplier_ref=supplier_ref,
            is_preferred=is_preferred,
            unit_price=unit_price,
            lead_time_days=lead_time_days,
        )
        db.session.add(reference)
        db.session.commit()
        return reference
    return _make


@pytest.fixture
def make_request(db):
    """Create a purchase request (open by default)"""
    def _make(stock_item_id, quantity=1.0, urgency='normal', status='open'):
        request = PurchaseRequest(
            stock_item_id=stock_item_id,
            quantity=quantity,
            urgency=urgency,
            status=status,
            requested_by='tech.test',
        )
        db.session.add(request)
        db.session.commit()
        return request
    return _make


@pytest.fixture
def dispatch():
    """Run one dispatch pass"""
    def _run(**kwargs):
        return DispatchEngine(**kwargs).run()
    return _run


@pytest.fixture
def open_order_for():
    """Look up the single OPEN basket of a supplier"""
    def _get(supplier_id):
        return SupplierOrder.query.filter_by(supplier_id=supplier_id, status='OPEN').one()
    return _get


@pytest.fixture
def line_for():
    """Look up the line of a basket for a stock item"""
    def _get(order, stock_item_id):
        return SupplierOrderLine.query.filter_by(supplier_order_id=order.id, stock_item_id=stock_item_id).one()
    return _get


@pytest.fixture
def file_app(tmp_path):
    """
    Application on a file-backed SQLite database, for tests that run callers
    in threads: every thread pushes its own app context and gets its own
    connection, which the in-memory database cannot provide.
    """
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'procurement.db'}",
        'RATELIMIT_ENABLED': False,
    })

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()
        _db.engine.dispose()
