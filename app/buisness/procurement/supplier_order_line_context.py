from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.procurement.amounts import non_negative_integer, non_negative_number
from app.buisness.procurement.errors import (
    ProcurementDomainError,
    ProcurementNotFoundError,
    ProcurementValidationError,
)
from app.buisness.procurement.locks import basket_locks, order_key
from app.buisness.procurement.policies import LineMutationLockPolicy
from app.buisness.procurement.status_manager import ProcurementStatusManager
from app.data.core.record_base import utcnow
from app.data.procurement.supplier_order import SupplierOrder
from app.data.procurement.supplier_order_line import SupplierOrderLine
from app.logger import get_logger

logger = get_logger("procurement.buisness.supplier_order_line_context")

QUOTE_FIELDS = (
    'quote_received',
    'quote_price',
    'unit_price',
    'lead_time_days',
    'manufacturer',
    'manufacturer_ref',
    'rejected_reason',
)


class SupplierOrderLineContext:
    """
    Business wrapper around a supplier order line.

    Selection and quote fields are the only line attributes editable from
    outside; quantity follows the linked requests.

    Every write holds the basket's order lock and checks the lock policy
    against a fresh read of the basket, the same way a transition does.
    """

    def __init__(self, line_id: int):
        self.line_id = line_id

    @property
    def line(self) -> SupplierOrderLine:
        line = db.session.get(SupplierOrderLine, self.line_id)
        if line is None:
            raise ProcurementNotFoundError(f"Supplier order line {self.line_id} not found", line_id=self.line_id)
        return line

    @property
    def order(self) -> SupplierOrder:
        return self.line.supplier_order

    def _apply(self, action: str, mutate) -> SupplierOrderLine:
        order_id = self.line.supplier_order_id

        with basket_locks.hold(order_key(order_id)):
            try:
                order = ProcurementStatusManager.lock_order_row(order_id)
                LineMutationLockPolicy.check(order, action=action)
                line = self.line
                mutate(line)
                db.session.commit()
            except ProcurementDomainError:
                db.session.rollback()
                raise
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Error trying to {action} on line {self.line_id}: {str(e)}")
                raise
        return line

    def toggle_selection(self, selected: bool) -> SupplierOrderLine:
        """
        Set the line's selection flag. Twins are left as they are.

        Raises:
            OrderLockedError: If the basket is RECEIVED, CLOSED or mid-merge
        """
        if not isinstance(selected, bool):
            raise ProcurementValidationError("selected must be a boolean", line_id=self.line_id)

        def mutate(line):
            line.is_selected = selected

        line = self._apply('change selection', mutate)
        logger.info(f"Line {line.id} selection set to {selected}")
        return line

    def record_quote(self, **fields) -> SupplierOrderLine:
        """
        Update the quote fields of the line.

        Args:
            **fields: Any of quote_received, quote_price, unit_price,
                lead_time_days, manufacturer, manufacturer_ref, rejected_reason

        Raises:
            ProcurementValidationError: Unknown field or invalid value
            OrderLockedError: If the basket is RECEIVED, CLOSED or mid-merge
        """
        unknown = sorted(set(fields) - set(QUOTE_FIELDS))
        if unknown:
            raise ProcurementValidationError(f"Unknown quote fields: {', '.join(unknown)}", fields=unknown)
        values = self._clean_quote_fields(fields)

        def mutate(line):
            if 'quote_received' in values:
                if values['quote_received'] and not line.quote_received:
                    line.quote_received_at = utcnow()
                elif not values['quote_received']:
                    line.quote_received_at = None
            for key, value in values.items():
                setattr(line, key, value)

        line = self._apply('record quote', mutate)
        logger.info(f"Quote recorded on line {line.id}: {sorted(values)}")
        return line

    @staticmethod
    def _clean_quote_fields(fields: dict) -> dict:
        values = {}
        for key, value in fields.items():
            if key == 'quote_received':
                if not isinstance(value, bool):
                    raise ProcurementValidationError("quote_received must be a boolean", field=key)
            elif key in ('quote_price', 'unit_price') and value is not None:
                value = non_negative_number(value, key, field=key)
            elif key == 'lead_time_days' and value is not None:
                value = non_negative_integer(value, key, field=key)
            values[key] = value
        return values
