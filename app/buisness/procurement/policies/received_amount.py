"""
Received Amount Policy

A basket is only confirmed with the supplier (RECEIVED) once an explicit,
positive monetary commitment has been recorded on it.
"""

import math
from typing import TYPE_CHECKING

from app.buisness.procurement.errors import MissingAmountError
from app.buisness.procurement.state_machine import SupplierOrderStateMachine

if TYPE_CHECKING:
    from app.data.procurement.supplier_order import SupplierOrder


class ReceivedAmountPolicy:
    """Enforces a finite total_amount > 0 before entering RECEIVED"""

    @classmethod
    def check(cls, order: 'SupplierOrder', new_status: str) -> None:
        if new_status != SupplierOrderStateMachine.RECEIVED:
            return
        amount = order.total_amount
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise MissingAmountError(
                f"Amount required: basket {order.order_number} needs a total amount greater than 0 "
                f"before it can be marked {SupplierOrderStateMachine.RECEIVED}.",
                order_id=order.id,
                total_amount=amount if amount is not None and math.isfinite(amount) else None,
            )
