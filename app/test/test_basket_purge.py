"""
Tests for basket purge and line removal
"""

import pytest

from app.buisness.procurement.basket_purge import BasketPurgeManager
from app.buisness.procurement.errors import ProcurementNotFoundError, ProcurementStateError
from app.buisness.procurement.integrity import LineQuantityAuditor
from app.buisness.procurement.parallel_quote import ParallelQuoteManager
from app.buisness.procurement.supplier_order_context import SupplierOrderContext
from app.data.procurement import (
    PurchaseRequest,
    SupplierOrder,
    SupplierOrderLine,
    SupplierOrderLinePurchaseRequest,
)


@pytest.fixture
def acme_basket(make_reference, make_request, dispatch, open_order_for):
    """ACME basket with a BOLT-10 line (3 + 5) and a GASKET-7 line (2)"""
    make_reference('BOLT-10', 'ACME', 'B10X')
    make_reference('BOLT-10', 'FASTCO', 'FC-B10', is_preferred=False)
    make_reference('GASKET-7', 'ACME', 'G7')
    make_request('BOLT-10', 3)
    make_request('BOLT-10', 5)
    make_request('GASKET-7', 2)
    dispatch()
    return open_order_for('ACME')


def _status(request_id):
    return PurchaseRequest.query.filter_by(id=request_id).one().status


def test_purge_deletes_the_basket_and_reopens_its_demand(acme_basket):
    order_id = acme_basket.id

    result = BasketPurgeManager().purge_order(order_id)

    assert result.order_deleted is True
    assert len(result.removed_line_ids) == 2
    assert result.reset_request_ids == [1, 2, 3]
    assert result.skipped == []
    assert SupplierOrder.query.filter_by(id=order_id).count() == 0
    assert SupplierOrderLine.query.count() == 0
    assert SupplierOrderLinePurchaseRequest.query.count() == 0
    assert {r.status for r in PurchaseRequest.query.all()} == {'open'}


def test_purged_demand_is_dispatched_again(acme_basket, dispatch, open_order_for, line_for):
    BasketPurgeManager().purge_order(acme_basket.id)

    result = dispatch()

    assert result.dispatched == [1, 2, 3]
    basket = open_order_for('ACME')
    assert basket.id != acme_basket.id
    assert line_for(basket, 'BOLT-10').quantity == 8


def test_removing_a_line_keeps_the_rest_of_the_basket(acme_basket, line_for):
    gasket = line_for(acme_basket, 'GASKET-7')
    gasket_id = gasket.id

    result = BasketPurgeManager().remove_line(gasket_id)

    assert result.removed_line_ids == [gasket_id]
    assert result.reset_request_ids == [3]
    assert result.order_deleted is False
    assert _status(3) == 'open'
    assert _status(1) == 'in_progress'
    assert SupplierOrderLine.query.filter_by(id=gasket_id).count() == 0
    assert acme_basket.lines.count() == 1
    assert line_for(acme_basket, 'BOLT-10').quantity == 8
    assert LineQuantityAuditor.detect_mismatches() == []


def test_demand_quoted_elsewhere_keeps_its_status(acme_basket, open_order_for):
    ParallelQuoteManager().request_parallel_quote(1, 'FASTCO')
    fastco = open_order_for('FASTCO')

    result = BasketPurgeManager().purge_order(fastco.id)

    assert result.reset_request_ids == []
    assert result.skipped == [{'id': 1, 'reason': 'linked_to_active_basket'}]
    assert _status(1) == 'in_progress'
    assert PurchaseRequest.query.filter_by(id=1).one().line_links.count() == 1


def test_purge_releases_demand_left_behind_by_a_cancelled_basket(acme_basket, open_order_for):
    ParallelQuoteManager().request_parallel_quote(1, 'FASTCO')
    fastco = open_order_for('FASTCO')
    cancelled = SupplierOrderContext(acme_basket.id).transition('CANCELLED')
    assert {'id': 1, 'reason': 'linked_to_active_basket'} in cancelled.skipped

    result = BasketPurgeManager().purge_order(fastco.id)

    assert result.reset_request_ids == [1]
    assert _status(1) == 'open'
    assert _status(2) == 'cancelled'


@pytest.mark.parametrize('status', ['SENT', 'CANCELLED'])
def test_only_open_baskets_can_be_purged(acme_basket, line_for, status):
    line_id = line_for(acme_basket, 'BOLT-10').id
    SupplierOrderContext(acme_basket.id).transition(status)

    with pytest.raises(ProcurementStateError):
        BasketPurgeManager().purge_order(acme_basket.id)
    with pytest.raises(ProcurementStateError):
        BasketPurgeManager().remove_line(line_id)

    assert SupplierOrderLine.query.count() == 2


def test_unknown_basket_and_line_are_not_found():
    with pytest.raises(ProcurementNotFoundError):
        BasketPurgeManager().purge_order(404)
    with pytest.raises(ProcurementNotFoundError):
        BasketPurgeManager().remove_line(404)
