"""
Domain exceptions for procurement business logic

These exceptions represent business rule violations and domain-specific errors.
They are raised by the business layer when invariants are violated; the API
layer maps `code` and `http_status` onto the JSON error response.
"""


class ProcurementDomainError(Exception):
    """Base exception for all procurement domain errors"""
    code = 'procurement_error'
    http_status = 400

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'error': self.code, 'message': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ProcurementValidationError(ProcurementDomainError):
    """Raised when input or business preconditions are not met"""
    code = 'validation_error'
    http_status = 422


class NoPreferredReferenceError(ProcurementValidationError):
    """Raised when a stock item has no preferred supplier reference"""
    code = 'no_preferred_reference'


class MissingAmountError(ProcurementValidationError):
    """Raised when a basket is confirmed without a positive total amount"""
    code = 'missing_amount'


class ProcurementStateError(ProcurementDomainError):
    """Raised when the current status forbids the operation"""
    code = 'state_error'
    http_status = 409


class InvalidTransitionError(ProcurementStateError):
    """Raised when a basket status transition is not allowed"""
    code = 'invalid_transition'


class OrderLockedError(ProcurementStateError):
    """Raised when mutating lines of a locked or merging basket"""
    code = 'order_locked'


class ProcurementConflictError(ProcurementDomainError):
    """Raised when concurrent writers collide (e.g., duplicate basket or line)"""
    code = 'conflict'
    http_status = 409


class ProcurementNotFoundError(ProcurementDomainError):
    """Raised when an order, line or request does not exist"""
    code = 'not_found'
    http_status = 404
