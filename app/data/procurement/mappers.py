"""
Persistence edge: ORM rows -> canonical domain snapshots.

Any column naming quirk of the storage side is absorbed here so the
business layer never touches ORM attributes while planning or validating.
"""

from app.buisness.procurement.snapshots import LineSnapshot, ReferenceSnapshot, RequestSnapshot


def to_request_snapshot(request):
    return RequestSnapshot(
        id=request.id,
        stock_item_id=request.stock_item_id,
        quantity=float(request.quantity or 0.0),
        urgency=request.urgency,
    )


def to_reference_snapshot(reference):
    return ReferenceSnapshot(
        id=reference.id,
        stock_item_id=reference.stock_item_id,
        supplier_id=reference.supplier_id,
        supplier_ref=reference.supplier_ref,
        is_preferred=bool(reference.is_preferred),
        unit_price=reference.unit_price,
        lead_time_days=reference.lead_time_days,
    )


def to_line_snapshot(line):
    order = line.supplier_order
    return LineSnapshot(
        line_id=line.id,
        supplier_order_id=order.id,
        order_number=order.order_number,
        order_status=order.status,
        supplier_id=order.supplier_id,
        stock_item_id=line.stock_item_id,
        quantity=float(line.quantity or 0.0),
        is_selected=bool(line.is_selected),
        quote_received=bool(line.quote_received),
        supplier_ref_snapshot=line.supplier_ref_snapshot,
        unit_price=line.unit_price,
        quote_price=line.quote_price,
        lead_time_days=line.lead_time_days,
        purchase_request_ids=tuple(line.purchase_request_ids),
    )
