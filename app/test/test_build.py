"""
Build and debug data tests
"""

from app.build import build_database
from app.buisness.procurement.dispatch_engine import DispatchEngine
from app.data.procurement import PurchaseRequest, SupplierOrder, SupplierReference
from app.debug.debug_data_manager import insert_debug_data


def test_build_loads_debug_data_once(app):
    first = build_database(enable_debug_data=True, app=app)
    second = build_database(enable_debug_data=True, app=app)

    assert first['procurement'] == {'status': 'inserted', 'references': 6, 'requests': 6}
    assert second['procurement'] == {'status': 'skipped', 'reason': 'data_present'}
    assert PurchaseRequest.query.count() == 6
    assert SupplierReference.query.count() == 6


def test_build_without_debug_data(app):
    build_database(enable_debug_data=False, app=app)

    assert PurchaseRequest.query.count() == 0


def test_disabled_debug_data_is_a_no_op():
    assert insert_debug_data(enabled=False) == {}


def test_debug_data_dispatches_into_baskets(app):
    build_database(enable_debug_data=True, app=app)

    result = DispatchEngine().run()

    assert result.dispatched == [1, 2, 3, 4]
    assert result.to_qualify == [5]
    assert result.errors == []
    assert sorted(o.supplier_id for o in SupplierOrder.query.all()) == ['ACME', 'HYDRAPRO']
    acme = SupplierOrder.query.filter_by(supplier_id='ACME').one()
    assert acme.lines_count == 2
