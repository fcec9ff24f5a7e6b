from flask import jsonify, request

from app import limiter
from app.buisness.procurement.basket_purge import BasketPurgeManager
from app.buisness.procurement.dispatch_engine import DispatchEngine
from app.buisness.procurement.errors import ProcurementValidationError
from app.buisness.procurement.integrity import LineQuantityAuditor
from app.buisness.procurement.parallel_quote import ParallelQuoteManager
from app.buisness.procurement.state_machine import SupplierOrderStateMachine
from app.buisness.procurement.supplier_order_context import SupplierOrderContext, line_to_dict
from app.buisness.procurement.supplier_order_line_context import SupplierOrderLineContext
from app.buisness.procurement.twin_lines import TwinLineService
from app.data.procurement.supplier_order import SupplierOrder
from app.logger import get_logger
from app.presentation.routes.procurement import procurement_bp
from app.presentation.routes.procurement import serializers

logger = get_logger("procurement.routes.procurement.api")


@procurement_bp.post('/api/dispatch')
@limiter.limit("10 per minute")
def api_dispatch():
    logger.info(f"Dispatch run requested from {request.remote_addr}")
    result = DispatchEngine().run()
    return jsonify(serializers.dispatch_response(result))


@procurement_bp.get('/api/orders')
def api_orders():
    status = request.args.get('status', type=str)
    supplier_id = request.args.get('supplier', type=str)

    query = SupplierOrder.query
    if status:
        status = status.upper()
        if status not in SupplierOrderStateMachine.STATUSES:
            raise ProcurementValidationError(f"Unknown status filter: {status}")
        query = query.filter(SupplierOrder.status == status)
    if supplier_id:
        query = query.filter(SupplierOrder.supplier_id == supplier_id)

    orders = query.order_by(SupplierOrder.id.desc()).limit(200).all()
    return jsonify([
        serializers.to_camel(SupplierOrderContext(order.id).to_dict(include_lines=False))
        for order in orders
    ])


@procurement_bp.get('/api/orders/<int:order_id>')
def api_order_detail(order_id):
    return jsonify(serializers.to_camel(SupplierOrderContext(order_id).to_dict()))


@procurement_bp.delete('/api/orders/<int:order_id>')
def api_order_purge(order_id):
    result = BasketPurgeManager().purge_order(order_id)
    return jsonify(serializers.to_camel(result.to_dict()))


@procurement_bp.post('/api/orders/<int:order_id>/transition')
def api_order_transition(order_id):
    new_status = serializers.parse_transition(request.get_json(silent=True))
    context = SupplierOrderContext(order_id)
    result = context.transition(new_status)
    return jsonify(serializers.transition_response(result, context.to_dict()))


@procurement_bp.patch('/api/orders/<int:order_id>/amount')
def api_order_amount(order_id):
    amount = serializers.parse_amount(request.get_json(silent=True))
    context = SupplierOrderContext(order_id)
    context.set_total_amount(amount)
    return jsonify(serializers.to_camel(context.to_dict(include_lines=False)))


@procurement_bp.get('/api/orders/<int:order_id>/twins')
def api_order_twins(order_id):
    # Unknown basket -> 404 rather than an empty list
    SupplierOrderContext(order_id).order
    return jsonify([
        serializers.twin_lines_response(validation)
        for validation in TwinLineService.validate_order(order_id)
    ])


@procurement_bp.post('/api/lines/<int:line_id>/selection')
def api_line_selection(line_id):
    selected = serializers.parse_selection(request.get_json(silent=True))
    line = SupplierOrderLineContext(line_id).toggle_selection(selected)
    return jsonify(serializers.to_camel(line_to_dict(line)))


@procurement_bp.patch('/api/lines/<int:line_id>/quote')
def api_line_quote(line_id):
    fields = serializers.parse_quote(request.get_json(silent=True))
    line = SupplierOrderLineContext(line_id).record_quote(**fields)
    return jsonify(serializers.to_camel(line_to_dict(line)))


@procurement_bp.delete('/api/lines/<int:line_id>')
def api_line_remove(line_id):
    result = BasketPurgeManager().remove_line(line_id)
    return jsonify(serializers.to_camel(result.to_dict()))


@procurement_bp.get('/api/lines/<int:line_id>/twins')
def api_line_twins(line_id):
    validation = TwinLineService.get_twin_lines(line_id)
    return jsonify(serializers.twin_lines_response(validation))


@procurement_bp.post('/api/requests/<int:request_id>/parallel-quote')
def api_parallel_quote(request_id):
    supplier_id = serializers.parse_parallel_quote(request.get_json(silent=True))
    line = ParallelQuoteManager().request_parallel_quote(request_id, supplier_id)
    return jsonify(serializers.to_camel(line_to_dict(line))), 201


@procurement_bp.get('/api/integrity/line-quantities')
def api_line_quantity_audit():
    mismatches = LineQuantityAuditor.detect_mismatches()
    return jsonify({
        'mismatches': [serializers.to_camel(m.to_dict()) for m in mismatches],
    })
