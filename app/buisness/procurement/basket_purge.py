"""
Basket purge and line removal

Undoes dispatch on an OPEN basket: the request links and lines are deleted
and the purchase requests they carried go back to `open` so the next
dispatch run routes them again. A request still linked to another
non-cancelled basket keeps its status.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.procurement.errors import (
    ProcurementDomainError,
    ProcurementNotFoundError,
    ProcurementStateError,
)
from app.buisness.procurement.locks import basket_locks, merge_key, order_key
from app.buisness.procurement.state_machine import PurchaseRequestStateMachine, SupplierOrderStateMachine
from app.buisness.procurement.status_manager import ProcurementStatusManager
from app.data.procurement.purchase_request import PurchaseRequest
from app.data.procurement.supplier_order import SupplierOrder
from app.data.procurement.supplier_order_line import SupplierOrderLine
from app.logger import get_logger

logger = get_logger("procurement.buisness.basket_purge")


@dataclass
class PurgeResult:
    order_id: int
    removed_line_ids: list[int] = field(default_factory=list)
    reset_request_ids: list[int] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)
    order_deleted: bool = False

    def to_dict(self) -> dict:
        return {
            'order_id': self.order_id,
            'removed_line_ids': list(self.removed_line_ids),
            'reset_request_ids': list(self.reset_request_ids),
            'skipped': [dict(s) for s in self.skipped],
            'order_deleted': self.order_deleted,
        }


class BasketPurgeManager:
    """
    Removes lines from OPEN baskets and releases their demand.

    Holds the supplier merge lock and the order lock, in that order, so no
    dispatch run or transition touches the basket meanwhile.
    """

    def purge_order(self, order_id: int) -> PurgeResult:
        """
        Delete every line of an OPEN basket, then the basket itself.

        Raises:
            ProcurementNotFoundError: Unknown basket
            ProcurementStateError: The basket is no longer OPEN
        """
        order = db.session.get(SupplierOrder, order_id)
        if order is None:
            raise ProcurementNotFoundError(f"Supplier order {order_id} not found", order_id=order_id)

        def purge(locked_order, result):
            self._release_lines(locked_order, locked_order.lines.all(), result)
            db.session.delete(locked_order)
            result.order_deleted = True

        result = self._run(order.supplier_id, order_id, 'purge basket', purge)
        logger.info(
            f"Basket {order_id} purged: {len(result.removed_line_ids)} line(s) removed, "
            f"{len(result.reset_request_ids)} request(s) back to open, {len(result.skipped)} kept"
        )
        return result

    def remove_line(self, line_id: int) -> PurgeResult:
        """
        Delete one line of an OPEN basket with its request links.

        Raises:
            ProcurementNotFoundError: Unknown line
            ProcurementStateError: The line's basket is no longer OPEN
        """
        line = db.session.get(SupplierOrderLine, line_id)
        if line is None:
            raise ProcurementNotFoundError(f"Supplier order line {line_id} not found", line_id=line_id)
        order_id = line.supplier_order_id

        def remove(locked_order, result):
            # Re-check: a purge of the basket may have won the lock first
            current = db.session.get(SupplierOrderLine, line_id)
            if current is None:
                raise ProcurementNotFoundError(f"Supplier order line {line_id} not found", line_id=line_id)
            self._release_lines(locked_order, [current], result)

        result = self._run(line.supplier_order.supplier_id, order_id, 'remove line', remove)
        logger.info(
            f"Line {line_id} removed from basket {order_id}; "
            f"{len(result.reset_request_ids)} request(s) back to open"
        )
        return result

    def _run(self, supplier_id: str, order_id: int, action: str, operation) -> PurgeResult:
        with basket_locks.hold(merge_key(supplier_id)), basket_locks.hold(order_key(order_id)):
            try:
                order = ProcurementStatusManager.lock_order_row(order_id)
                if order.status != SupplierOrderStateMachine.OPEN:
                    raise ProcurementStateError(
                        f"Cannot {action}: basket {order.order_number} is {order.status}; "
                        f"only {SupplierOrderStateMachine.OPEN} baskets can be changed",
                        order_id=order_id,
                        status=order.status,
                    )
                result = PurgeResult(order_id=order_id)
                operation(order, result)
                db.session.commit()
            except ProcurementDomainError:
                db.session.rollback()
                raise
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Error trying to {action} on basket {order_id}: {str(e)}")
                raise
        return result

    @staticmethod
    def _release_lines(order: SupplierOrder, lines: list[SupplierOrderLine], result: PurgeResult) -> None:
        request_ids = set()
        for line in lines:
            for link in line.request_links.all():
                request_ids.add(link.purchase_request_id)
                db.session.delete(link)
            result.removed_line_ids.append(line.id)
            db.session.delete(line)
        db.session.flush()

        requests = (
            PurchaseRequest.query
            .filter(PurchaseRequest.id.in_(request_ids))
            .order_by(PurchaseRequest.id)
            .all()
        )
        for request in requests:
            if ProcurementStatusManager.has_active_demand_elsewhere(request.id, order.id):
                result.skipped.append({'id': request.id, 'reason': 'linked_to_active_basket'})
                continue
            if not PurchaseRequestStateMachine.can_release(request.status):
                result.skipped.append({'id': request.id, 'reason': f'cannot release from {request.status}'})
                continue
            request.status = PurchaseRequestStateMachine.OPEN
            result.reset_request_ids.append(request.id)
