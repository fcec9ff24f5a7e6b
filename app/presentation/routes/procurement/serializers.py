"""
HTTP edge naming adaptation.

The JSON API speaks camelCase; the business layer only knows snake_case.
Every key translation in either direction happens here.
"""

from app.buisness.procurement.errors import ProcurementValidationError


# camelCase payload key -> quote field
QUOTE_FIELD_MAP = {
    'quoteReceived': 'quote_received',
    'quotePrice': 'quote_price',
    'unitPrice': 'unit_price',
    'leadTimeDays': 'lead_time_days',
    'manufacturer': 'manufacturer',
    'manufacturerRef': 'manufacturer_ref',
    'rejectedReason': 'rejected_reason',
}


def snake_to_camel(key):
    head, *tail = key.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in tail)


def to_camel(value):
    """Recursively rename dict keys to camelCase"""
    if isinstance(value, dict):
        return {snake_to_camel(k) if isinstance(k, str) else k: to_camel(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_camel(v) for v in value]
    return value


def _require_object(payload):
    if not isinstance(payload, dict):
        raise ProcurementValidationError("Request body must be a JSON object")
    return payload


# Responses

def dispatch_response(result):
    return {
        'dispatched': list(result.dispatched),
        'toQualify': list(result.to_qualify),
        'errors': [{'id': e['id'], 'error': e['error']} for e in result.errors],
    }


def twin_lines_response(validation):
    return {
        'lineId': validation.line.line_id,
        'twinLines': [to_camel(twin.to_dict()) for twin in validation.twins],
        'validationErrors': [to_camel(issue.to_dict()) for issue in validation.errors],
        'validationWarnings': [to_camel(issue.to_dict()) for issue in validation.warnings],
        'isResolved': validation.is_resolved,
    }


def transition_response(result, order_dict):
    return {
        'order': to_camel(order_dict),
        'transition': to_camel(result.to_dict()),
    }


def error_response(error):
    return to_camel(error.to_dict())


# Requests

def parse_transition(payload):
    payload = _require_object(payload)
    status = payload.get('status')
    if not isinstance(status, str) or not status:
        raise ProcurementValidationError("Field 'status' is required")
    return status.strip().upper()


def parse_selection(payload):
    payload = _require_object(payload)
    if 'isSelected' not in payload:
        raise ProcurementValidationError("Field 'isSelected' is required")
    selected = payload['isSelected']
    if not isinstance(selected, bool):
        raise ProcurementValidationError("Field 'isSelected' must be a boolean")
    return selected


def parse_amount(payload):
    payload = _require_object(payload)
    if 'totalAmount' not in payload:
        raise ProcurementValidationError("Field 'totalAmount' is required")
    return payload['totalAmount']


def parse_quote(payload):
    payload = _require_object(payload)
    unknown = sorted(set(payload) - set(QUOTE_FIELD_MAP))
    if unknown:
        raise ProcurementValidationError(f"Unknown quote fields: {', '.join(unknown)}", fields=unknown)
    if not payload:
        raise ProcurementValidationError("No quote fields given")
    return {QUOTE_FIELD_MAP[key]: value for key, value in payload.items()}


def parse_parallel_quote(payload):
    payload = _require_object(payload)
    supplier_id = payload.get('supplierId')
    if not isinstance(supplier_id, str) or not supplier_id.strip():
        raise ProcurementValidationError("Field 'supplierId' is required")
    return supplier_id.strip()
