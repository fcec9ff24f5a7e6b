from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.procurement.errors import ProcurementDomainError, ProcurementNotFoundError
from app.buisness.procurement.locks import basket_locks, merge_key, order_key
from app.buisness.procurement.policies import ReceivedAmountPolicy
from app.buisness.procurement.state_machine import (
    REQUEST_STATUS_FOR_ORDER_STATUS,
    PurchaseRequestStateMachine,
    SupplierOrderStateMachine,
)
from app.data.core.record_base import utcnow
from app.data.procurement.line_request_link import SupplierOrderLinePurchaseRequest
from app.data.procurement.purchase_request import PurchaseRequest
from app.data.procurement.supplier_order import SupplierOrder
from app.data.procurement.supplier_order_line import SupplierOrderLine
from app.logger import get_logger

logger = get_logger("procurement.buisness.status_manager")


@dataclass(frozen=True)
class StatusChange:
    entity_type: str
    entity_id: int
    from_status: str | None
    to_status: str

    def to_dict(self) -> dict:
        return {
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'from_status': self.from_status,
            'to_status': self.to_status,
        }


@dataclass
class TransitionResult:
    order_id: int
    from_status: str
    to_status: str
    changes: list[StatusChange] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)

    @property
    def request_changes(self) -> list[StatusChange]:
        return [c for c in self.changes if c.entity_type == 'purchase_request']

    def to_dict(self) -> dict:
        return {
            'order_id': self.order_id,
            'from_status': self.from_status,
            'to_status': self.to_status,
            'changes': [c.to_dict() for c in self.changes],
            'skipped': [dict(s) for s in self.skipped],
            'failures': [dict(f) for f in self.failures],
        }


class ProcurementStatusManager:
    """
    Basket status manager.

    This class is responsible for:
    - validating basket transitions and the RECEIVED amount gate
    - stamping ordered_at / received_at, and quantity_received on the
      selected lines of a closed basket
    - cascading the mapped status to every linked purchase request, one
      savepoint per request so a failed update does not block the rest
    """

    @staticmethod
    def _get_order(order_id: int) -> SupplierOrder:
        order = db.session.get(SupplierOrder, order_id)
        if order is None:
            raise ProcurementNotFoundError(f"Supplier order {order_id} not found", order_id=order_id)
        return order

    @staticmethod
    def lock_order_row(order_id: int) -> SupplierOrder:
        """Re-read the basket, overwriting any stale copy held by the session"""
        # FOR UPDATE is dropped by dialects without row locks (SQLite)
        order = (
            SupplierOrder.query
            .filter_by(id=order_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if order is None:
            raise ProcurementNotFoundError(f"Supplier order {order_id} not found", order_id=order_id)
        return order

    @staticmethod
    def _merge_guard(order: SupplierOrder):
        # Only an OPEN basket can receive merges; baskets never return to OPEN
        if order.status == SupplierOrderStateMachine.OPEN:
            return basket_locks.hold(merge_key(order.supplier_id))
        return nullcontext()

    def transition(self, order_id: int, new_status: str) -> TransitionResult:
        with self._merge_guard(self._get_order(order_id)), basket_locks.hold(order_key(order_id)):
            try:
                order = self.lock_order_row(order_id)
                from_status = order.status

                SupplierOrderStateMachine.validate_transition(from_status, new_status)
                ReceivedAmountPolicy.check(order, new_status)

                order.status = new_status
                if new_status == SupplierOrderStateMachine.SENT:
                    order.ordered_at = utcnow()
                elif new_status == SupplierOrderStateMachine.CLOSED:
                    order.received_at = utcnow()
                    self._record_received_quantities(order)
                db.session.flush()

                result = TransitionResult(order_id=order.id, from_status=from_status, to_status=new_status)
                result.changes.append(StatusChange('supplier_order', order.id, from_status, new_status))
                self._cascade_to_requests(order, result)

                db.session.commit()
            except ProcurementDomainError:
                db.session.rollback()
                raise
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Error transitioning basket {order_id} to {new_status}: {str(e)}")
                raise

        logger.info(
            f"Basket {order_id} {result.from_status} -> {result.to_status}; "
            f"{len(result.request_changes)} request(s) updated, {len(result.skipped)} skipped, "
            f"{len(result.failures)} failed"
        )
        return result

    @staticmethod
    def _record_received_quantities(order: SupplierOrder) -> None:
        """Closing a basket means every selected line arrived in full"""
        received = 0
        for line in order.lines.filter(SupplierOrderLine.is_selected.is_(True)):
            line.quantity_received = line.quantity
            received += 1
        logger.debug(f"Basket {order.order_number}: quantity_received recorded on {received} selected line(s)")

    @staticmethod
    def linked_requests(order_id: int) -> list[PurchaseRequest]:
        return (
            PurchaseRequest.query
            .join(SupplierOrderLinePurchaseRequest,
                  SupplierOrderLinePurchaseRequest.purchase_request_id == PurchaseRequest.id)
            .join(SupplierOrderLine,
                  SupplierOrderLine.id == SupplierOrderLinePurchaseRequest.supplier_order_line_id)
            .filter(SupplierOrderLine.supplier_order_id == order_id)
            .distinct()
            .order_by(PurchaseRequest.id)
            .all()
        )

    @staticmethod
    def has_active_demand_elsewhere(request_id: int, order_id: int) -> bool:
        """True when the request is still linked to a line of another non-cancelled basket"""
        return (
            db.session.query(SupplierOrderLinePurchaseRequest.id)
            .join(SupplierOrderLine,
                  SupplierOrderLine.id == SupplierOrderLinePurchaseRequest.supplier_order_line_id)
            .join(SupplierOrder, SupplierOrder.id == SupplierOrderLine.supplier_order_id)
            .filter(SupplierOrderLinePurchaseRequest.purchase_request_id == request_id)
            .filter(SupplierOrder.id != order_id)
            .filter(SupplierOrder.status != SupplierOrderStateMachine.CANCELLED)
            .first()
        ) is not None

    def _cascade_to_requests(self, order: SupplierOrder, result: TransitionResult) -> None:
        target = REQUEST_STATUS_FOR_ORDER_STATUS[order.status]
        cancelling = order.status == SupplierOrderStateMachine.CANCELLED

        for request in self.linked_requests(order.id):
            old = request.status
            if old == target:
                continue
            if cancelling and self.has_active_demand_elsewhere(request.id, order.id):
                result.skipped.append({'id': request.id, 'reason': 'linked_to_active_basket'})
                continue
            if not PurchaseRequestStateMachine.can_transition(old, target):
                result.skipped.append({'id': request.id, 'reason': f'cannot move from {old} to {target}'})
                continue

            try:
                with db.session.begin_nested():
                    request.status = target
            except SQLAlchemyError as e:
                logger.error(f"Failed to cascade {target} to request {request.id}: {str(e)}", exc_info=True)
                result.failures.append({'id': request.id, 'error': str(e)})
                continue
            result.changes.append(StatusChange('purchase_request', request.id, old, target))
