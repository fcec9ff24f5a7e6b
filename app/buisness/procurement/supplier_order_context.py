from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.procurement.amounts import non_negative_number
from app.buisness.procurement.errors import OrderLockedError, ProcurementDomainError, ProcurementNotFoundError
from app.buisness.procurement.locks import basket_locks, order_key
from app.buisness.procurement.state_machine import SupplierOrderStateMachine
from app.buisness.procurement.status_manager import ProcurementStatusManager, TransitionResult
from app.data.procurement.supplier_order import SupplierOrder
from app.data.procurement.supplier_order_line import SupplierOrderLine
from app.logger import get_logger

logger = get_logger("procurement.buisness.supplier_order_context")


class SupplierOrderContext:
    """
    Business wrapper around a supplier basket.

    Status changes go through ProcurementStatusManager; this class adds the
    amount commitment and a serialisable view of the basket.
    """

    def __init__(self, order_id: int, *, status_manager: ProcurementStatusManager | None = None):
        self.order_id = order_id
        self.status_manager = status_manager or ProcurementStatusManager()

    @property
    def order(self) -> SupplierOrder:
        order = db.session.get(SupplierOrder, self.order_id)
        if order is None:
            raise ProcurementNotFoundError(f"Supplier order {self.order_id} not found", order_id=self.order_id)
        return order

    @property
    def lines(self) -> list[SupplierOrderLine]:
        return list(self.order.lines)

    @property
    def status(self) -> str:
        return self.order.status

    @property
    def allowed_transitions(self) -> list[str]:
        return sorted(SupplierOrderStateMachine.get_allowed_transitions(self.order.status))

    @property
    def is_locked(self) -> bool:
        return SupplierOrderStateMachine.is_locked(self.order.status)

    def transition(self, new_status: str) -> TransitionResult:
        return self.status_manager.transition(self.order_id, new_status)

    def set_total_amount(self, amount: float | None) -> SupplierOrder:
        """
        Record the monetary commitment of the basket.

        Runs under the basket's order lock so it cannot interleave with a
        transition into a locked state.

        Raises:
            ProcurementValidationError: If the amount is negative or not a finite number
            OrderLockedError: If the basket is RECEIVED, CLOSED or CANCELLED
        """
        order_id = self.order.id
        if amount is not None:
            amount = non_negative_number(amount, "Amount", order_id=order_id)

        with basket_locks.hold(order_key(order_id)):
            try:
                order = self.status_manager.lock_order_row(order_id)
                if order.status in SupplierOrderStateMachine.LOCKED_STATES | SupplierOrderStateMachine.TERMINAL_STATES:
                    raise OrderLockedError(
                        f"Cannot change amount: basket {order.order_number} is in status '{order.status}'.",
                        order_id=order.id,
                        status=order.status,
                    )
                order.total_amount = amount
                db.session.commit()
            except ProcurementDomainError:
                db.session.rollback()
                raise
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Error setting amount on basket {order_id}: {str(e)}")
                raise

        logger.info(f"Basket {order.order_number} total amount set to {amount}")
        return order

    def to_dict(self, include_lines: bool = True) -> dict:
        order = self.order
        data = order.to_dict()
        data['allowed_transitions'] = sorted(SupplierOrderStateMachine.get_allowed_transitions(order.status))
        data['is_locked'] = SupplierOrderStateMachine.is_locked(order.status)
        data['lines_count'] = order.lines_count
        if include_lines:
            data['lines'] = [line_to_dict(line) for line in order.lines]
        return data


def line_to_dict(line: SupplierOrderLine) -> dict:
    data = line.to_dict()
    data['purchase_request_ids'] = line.purchase_request_ids
    data['linked_quantity'] = line.linked_quantity
    return data
