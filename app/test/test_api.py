"""
Tests for the procurement JSON API
"""

import pytest

from app.buisness.procurement.supplier_order_context import SupplierOrderContext
from app.data.procurement import PurchaseRequest, SupplierOrder


@pytest.fixture
def bolt_demand(make_reference, make_request):
    make_reference('BOLT-10', 'ACME', 'B10X', unit_price=0.4)
    make_reference('BOLT-10', 'FASTCO', 'FC-B10', is_preferred=False)
    first = make_request('BOLT-10', 3)
    second = make_request('BOLT-10', 5)
    return [first.id, second.id]


@pytest.fixture
def acme_basket(client, bolt_demand, open_order_for):
    client.post('/procurement/api/dispatch')
    return open_order_for('ACME')


def test_dispatch_returns_camel_case_summary(client, bolt_demand, make_request):
    orphan = make_request('UNKNOWN-1', 1)

    response = client.post('/procurement/api/dispatch')

    assert response.status_code == 200
    assert response.get_json() == {
        'dispatched': bolt_demand,
        'toQualify': [orphan.id],
        'errors': [],
    }


def test_responses_carry_security_headers(client):
    response = client.get('/procurement/api/orders')

    assert response.headers['X-Content-Type-Options'] == 'nosniff'
    assert response.headers['X-Frame-Options'] == 'SAMEORIGIN'


def test_order_detail(client, acme_basket):
    response = client.get(f'/procurement/api/orders/{acme_basket.id}')

    assert response.status_code == 200
    data = response.get_json()
    assert data['orderNumber'] == acme_basket.order_number
    assert data['supplierId'] == 'ACME'
    assert data['allowedTransitions'] == ['CANCELLED', 'SENT']
    assert data['isLocked'] is False
    assert data['linesCount'] == 1
    line = data['lines'][0]
    assert line['stockItemId'] == 'BOLT-10'
    assert line['quantity'] == 8
    assert line['linkedQuantity'] == 8
    assert line['supplierRefSnapshot'] == 'B10X'
    assert len(line['purchaseRequestIds']) == 2


def test_unknown_order_is_404(client):
    response = client.get('/procurement/api/orders/4242')

    assert response.status_code == 404
    assert response.get_json()['error'] == 'not_found'


def test_orders_list_filters(client, acme_basket):
    SupplierOrderContext(acme_basket.id).transition('SENT')

    assert len(client.get('/procurement/api/orders').get_json()) == 1
    assert client.get('/procurement/api/orders?status=sent').get_json()[0]['status'] == 'SENT'
    assert client.get('/procurement/api/orders?status=OPEN').get_json() == []
    assert client.get('/procurement/api/orders?supplier=FASTCO').get_json() == []


def test_orders_list_rejects_unknown_status(client):
    response = client.get('/procurement/api/orders?status=SHIPPED')

    assert response.status_code == 422
    assert response.get_json()['error'] == 'validation_error'


def test_transition_cascades_and_reports(client, acme_basket, bolt_demand):
    response = client.post(f'/procurement/api/orders/{acme_basket.id}/transition', json={'status': 'sent'})

    assert response.status_code == 200
    data = response.get_json()
    assert data['order']['status'] == 'SENT'
    assert data['order']['orderedAt'] is not None
    assert data['transition']['fromStatus'] == 'OPEN'
    assert data['transition']['toStatus'] == 'SENT'
    request_changes = [c for c in data['transition']['changes'] if c['entityType'] == 'purchase_request']
    assert sorted(c['entityId'] for c in request_changes) == bolt_demand
    assert {r.status for r in PurchaseRequest.query.all()} == {'ordered'}


def test_invalid_transition_is_409(client, acme_basket):
    response = client.post(f'/procurement/api/orders/{acme_basket.id}/transition', json={'status': 'CLOSED'})

    assert response.status_code == 409
    body = response.get_json()
    assert body['error'] == 'invalid_transition'
    assert body['details']['fromStatus'] == 'OPEN'


def test_transition_requires_status(client, acme_basket):
    response = client.post(f'/procurement/api/orders/{acme_basket.id}/transition', json={})

    assert response.status_code == 422


def test_receiving_without_amount_is_422(client, acme_basket):
    for status in ('SENT', 'ACK'):
        client.post(f'/procurement/api/orders/{acme_basket.id}/transition', json={'status': status})

    response = client.post(f'/procurement/api/orders/{acme_basket.id}/transition', json={'status': 'RECEIVED'})

    assert response.status_code == 422
    assert response.get_json()['error'] == 'missing_amount'


def test_amount_then_receive(client, acme_basket):
    for status in ('SENT', 'ACK'):
        client.post(f'/procurement/api/orders/{acme_basket.id}/transition', json={'status': status})

    response = client.patch(f'/procurement/api/orders/{acme_basket.id}/amount', json={'totalAmount': 120.5})
    assert response.status_code == 200
    assert response.get_json()['totalAmount'] == 120.5

    response = client.post(f'/procurement/api/orders/{acme_basket.id}/transition', json={'status': 'RECEIVED'})
    assert response.status_code == 200
    assert response.get_json()['order']['isLocked'] is True


def test_amount_requires_field(client, acme_basket):
    response = client.patch(f'/procurement/api/orders/{acme_basket.id}/amount', json={'amount': 3})

    assert response.status_code == 422


def test_selection_endpoint(client, acme_basket, line_for):
    line = line_for(acme_basket, 'BOLT-10')

    response = client.post(f'/procurement/api/lines/{line.id}/selection', json={'isSelected': True})

    assert response.status_code == 200
    assert response.get_json()['isSelected'] is True


@pytest.mark.parametrize('payload', [{}, {'isSelected': 'true'}, None])
def test_selection_endpoint_validates_payload(client, acme_basket, line_for, payload):
    line = line_for(acme_basket, 'BOLT-10')

    response = client.post(f'/procurement/api/lines/{line.id}/selection', json=payload)

    assert response.status_code == 422


def test_quote_endpoint_maps_camel_case_fields(client, acme_basket, line_for):
    line = line_for(acme_basket, 'BOLT-10')

    response = client.patch(f'/procurement/api/lines/{line.id}/quote', json={
        'quoteReceived': True,
        'quotePrice': 2.95,
        'leadTimeDays': 4,
        'manufacturerRef': 'DIN933-M10',
    })

    assert response.status_code == 200
    data = response.get_json()
    assert data['quoteReceived'] is True
    assert data['quoteReceivedAt'] is not None
    assert data['quotePrice'] == 2.95
    assert data['leadTimeDays'] == 4
    assert data['manufacturerRef'] == 'DIN933-M10'


def test_quote_endpoint_rejects_unknown_fields(client, acme_basket, line_for):
    line = line_for(acme_basket, 'BOLT-10')

    response = client.patch(f'/procurement/api/lines/{line.id}/quote', json={'quantity': 1})

    assert response.status_code == 422
    assert response.get_json()['details']['fields'] == ['quantity']


def test_locked_line_is_409(client, acme_basket, line_for):
    line = line_for(acme_basket, 'BOLT-10')
    order = SupplierOrderContext(acme_basket.id)
    order.transition('SENT')
    order.transition('ACK')
    order.set_total_amount(10)
    order.transition('RECEIVED')

    response = client.post(f'/procurement/api/lines/{line.id}/selection', json={'isSelected': True})

    assert response.status_code == 409
    assert response.get_json()['error'] == 'order_locked'


def test_parallel_quote_and_twin_endpoints(client, acme_basket, bolt_demand, line_for):
    response = client.post(f'/procurement/api/requests/{bolt_demand[0]}/parallel-quote', json={'supplierId': 'FASTCO'})

    assert response.status_code == 201
    fastco_line = response.get_json()
    assert fastco_line['quantity'] == 3
    assert fastco_line['purchaseRequestIds'] == [bolt_demand[0]]

    acme_line = line_for(acme_basket, 'BOLT-10')
    twins = client.get(f'/procurement/api/lines/{acme_line.id}/twins').get_json()
    assert set(twins) == {'lineId', 'twinLines', 'validationErrors', 'validationWarnings', 'isResolved'}
    assert twins['lineId'] == acme_line.id
    assert [t['lineId'] for t in twins['twinLines']] == [fastco_line['id']]
    assert [e['code'] for e in twins['validationErrors']] == ['status_incorrect']
    assert twins['isResolved'] is False

    order_twins = client.get(f'/procurement/api/orders/{acme_basket.id}/twins').get_json()
    assert [t['lineId'] for t in order_twins] == [acme_line.id]


def test_parallel_quote_conflict_is_409(client, acme_basket, bolt_demand):
    response = client.post(f'/procurement/api/requests/{bolt_demand[0]}/parallel-quote', json={'supplierId': 'ACME'})

    assert response.status_code == 409
    assert response.get_json()['error'] == 'conflict'


def test_parallel_quote_requires_supplier(client, acme_basket, bolt_demand):
    response = client.post(f'/procurement/api/requests/{bolt_demand[0]}/parallel-quote', json={'supplier': 'FASTCO'})

    assert response.status_code == 422


def test_twins_of_unknown_line_is_404(client):
    assert client.get('/procurement/api/lines/77/twins').status_code == 404
    assert client.get('/procurement/api/orders/77/twins').status_code == 404


def test_line_quantity_audit(client, acme_basket, line_for, db):
    assert client.get('/procurement/api/integrity/line-quantities').get_json() == {'mismatches': []}

    line = line_for(acme_basket, 'BOLT-10')
    line.quantity = 9
    db.session.commit()

    mismatches = client.get('/procurement/api/integrity/line-quantities').get_json()['mismatches']
    assert len(mismatches) == 1
    assert mismatches[0]['lineId'] == line.id
    assert mismatches[0]['difference'] == 1
    assert SupplierOrder.query.count() == 1


@pytest.mark.parametrize('body', ['{"leadTimeDays": Infinity}', '{"leadTimeDays": NaN}', '{"quotePrice": Infinity}'])
def test_quote_endpoint_rejects_non_finite_numbers(client, acme_basket, line_for, body):
    line = line_for(acme_basket, 'BOLT-10')

    response = client.patch(f'/procurement/api/lines/{line.id}/quote', data=body, content_type='application/json')

    assert response.status_code == 422
    assert response.get_json()['error'] == 'validation_error'


def test_amount_endpoint_rejects_infinity(client, acme_basket):
    response = client.patch(
        f'/procurement/api/orders/{acme_basket.id}/amount',
        data='{"totalAmount": Infinity}',
        content_type='application/json',
    )

    assert response.status_code == 422
    assert SupplierOrder.query.filter_by(id=acme_basket.id).one().total_amount is None


def test_purge_endpoint_returns_demand_to_dispatch(client, acme_basket, bolt_demand):
    response = client.delete(f'/procurement/api/orders/{acme_basket.id}')

    assert response.status_code == 200
    data = response.get_json()
    assert data['orderDeleted'] is True
    assert data['resetRequestIds'] == bolt_demand
    assert len(data['removedLineIds']) == 1
    assert client.get(f'/procurement/api/orders/{acme_basket.id}').status_code == 404
    assert {r.status for r in PurchaseRequest.query.all()} == {'open'}


def test_remove_line_endpoint(client, acme_basket, line_for):
    line_id = line_for(acme_basket, 'BOLT-10').id

    response = client.delete(f'/procurement/api/lines/{line_id}')

    assert response.status_code == 200
    assert response.get_json()['removedLineIds'] == [line_id]
    assert client.delete(f'/procurement/api/lines/{line_id}').status_code == 404


def test_purging_a_sent_basket_is_409(client, acme_basket):
    SupplierOrderContext(acme_basket.id).transition('SENT')

    response = client.delete(f'/procurement/api/orders/{acme_basket.id}')

    assert response.status_code == 409
    assert response.get_json()['error'] == 'state_error'
