"""
Line Mutation Lock Policy

Freezes the lines of a basket once the order is confirmed (RECEIVED) or
closed, and while a dispatch run is merging demand into the basket.
"""

from typing import TYPE_CHECKING
from app.buisness.procurement.errors import OrderLockedError
from app.buisness.procurement.locks import basket_locks, merge_key
from app.buisness.procurement.state_machine import SupplierOrderStateMachine

if TYPE_CHECKING:
    from app.data.procurement.supplier_order import SupplierOrder


class LineMutationLockPolicy:
    """
    Guards quantity, selection and quote mutations on supplier order lines.

    Rules:
    1. RECEIVED and CLOSED baskets are immutable
    2. An OPEN basket whose supplier merge lock is held is mid-merge
    """

    @classmethod
    def is_mid_merge(cls, order: 'SupplierOrder') -> bool:
        return order.status == SupplierOrderStateMachine.OPEN and basket_locks.is_held(merge_key(order.supplier_id))

    @classmethod
    def check(cls, order: 'SupplierOrder', action: str = 'modify lines') -> None:
        """
        Raise if the basket's lines cannot be mutated.

        Args:
            order: Basket owning the lines
            action: Human readable description used in the error message

        Raises:
            OrderLockedError: If the basket is locked or mid-merge
        """
        if SupplierOrderStateMachine.is_locked(order.status):
            raise OrderLockedError(
                f"Cannot {action}: basket {order.order_number} is locked in status '{order.status}'.",
                order_id=order.id,
                status=order.status,
            )
        if cls.is_mid_merge(order):
            raise OrderLockedError(
                f"Cannot {action}: basket {order.order_number} is being merged by a dispatch run. Retry shortly.",
                order_id=order.id,
                status=order.status,
            )
