"""
Dispatch Engine

Routes open purchase requests to their preferred suppliers and merges them
into per-supplier OPEN baskets. Planning is pure (see dispatch_planner);
this module applies one bucket per transaction so a failing bucket never
rolls back the others.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app import db
from app.buisness.procurement.dispatch_planner import BucketPlan, DispatchPlan, plan_dispatch
from app.buisness.procurement.errors import ProcurementConflictError, ProcurementDomainError
from app.buisness.procurement.locks import basket_locks, merge_key
from app.buisness.procurement.state_machine import PurchaseRequestStateMachine
from app.buisness.procurement.supplier_order_factory import SupplierOrderFactory
from app.buisness.procurement.supplier_resolver import StockItemSupplierResolver, SupplierReferenceResolver
from app.data.procurement.mappers import to_request_snapshot
from app.data.procurement.purchase_request import PurchaseRequest
from app.logger import get_logger

logger = get_logger("procurement.buisness.dispatch_engine")


@dataclass
class DispatchResult:
    dispatched: list[int] = field(default_factory=list)
    to_qualify: list[int] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    def add_errors(self, request_ids, message: str) -> None:
        for request_id in request_ids:
            self.errors.append({'id': request_id, 'error': message})

    def to_dict(self) -> dict:
        return {
            'dispatched': list(self.dispatched),
            'to_qualify': list(self.to_qualify),
            'errors': [dict(error) for error in self.errors],
        }


class DispatchEngine:
    """
    Applies a dispatch plan to storage.

    Per bucket:
    1. Hold the supplier merge lock
    2. Find or create the OPEN basket and the stock item line
    3. Link every still-open request, grow the line quantity, move the
       request to in_progress
    4. Commit; on IntegrityError roll back and retry the find-or-create
    """

    def __init__(self, resolver: SupplierReferenceResolver | None = None, max_retries: int | None = None):
        self.resolver = resolver or StockItemSupplierResolver()
        if max_retries is None:
            max_retries = current_app.config.get('PROCUREMENT_DISPATCH_MAX_RETRIES', 3)
        self.max_retries = max(1, int(max_retries))

    @staticmethod
    def load_open_requests() -> list:
        """Snapshot every dispatch-eligible request (open, with a stock item)"""
        rows = (
            PurchaseRequest.query
            .filter(PurchaseRequest.status == PurchaseRequestStateMachine.OPEN)
            .filter(PurchaseRequest.stock_item_id.isnot(None))
            .order_by(PurchaseRequest.id)
            .all()
        )
        return [to_request_snapshot(row) for row in rows]

    def plan(self) -> DispatchPlan:
        requests = self.load_open_requests()
        preferred = self.resolver.preferred_for_many(r.stock_item_id for r in requests)
        return plan_dispatch(requests, preferred)

    def run(self) -> DispatchResult:
        plan = self.plan()

        result = DispatchResult(to_qualify=list(plan.to_qualify))
        for request_id in plan.to_qualify:
            logger.warning(f"Request {request_id} has no preferred supplier reference; needs qualification")

        for bucket in plan.buckets:
            try:
                result.dispatched.extend(self.apply_bucket(bucket))
            except ProcurementDomainError as e:
                logger.warning(f"Bucket {bucket.key} not dispatched: {e.message}")
                result.add_errors(bucket.request_ids, e.message)
            except SQLAlchemyError as e:
                logger.error(f"Bucket {bucket.key} failed: {str(e)}", exc_info=True)
                result.add_errors(bucket.request_ids, str(e))

        logger.info(
            f"Dispatch run complete - dispatched: {len(result.dispatched)}, "
            f"to qualify: {len(result.to_qualify)}, errors: {len(result.errors)}, "
            f"buckets: {len(plan.buckets)}"
        )
        return result

    def apply_bucket(self, bucket: BucketPlan) -> list[int]:
        """
        Apply one bucket in its own transaction.

        Returns:
            Ids of the requests linked by this bucket

        Raises:
            ProcurementConflictError: If concurrent writers keep winning the
                find-or-create race after max_retries attempts
        """
        attempt = 0
        while True:
            attempt += 1
            with basket_locks.hold(merge_key(bucket.supplier_id)):
                try:
                    dispatched = self._apply_bucket_once(bucket)
                    db.session.commit()
                    return dispatched
                except IntegrityError as e:
                    db.session.rollback()
                    if attempt >= self.max_retries:
                        raise ProcurementConflictError(
                            f"Could not merge demand into basket of supplier {bucket.supplier_id} "
                            f"after {attempt} attempts",
                            supplier_id=bucket.supplier_id,
                            stock_item_id=bucket.stock_item_id,
                        ) from e
                    logger.warning(
                        f"Conflict merging bucket {bucket.key} (attempt {attempt}/{self.max_retries}); retrying"
                    )
                except Exception:
                    db.session.rollback()
                    raise

    def _apply_bucket_once(self, bucket: BucketPlan) -> list[int]:
        # Re-read inside the lock: a concurrent run may have taken some of them
        requests = (
            PurchaseRequest.query
            .filter(PurchaseRequest.id.in_(bucket.request_ids))
            .filter(PurchaseRequest.status == PurchaseRequestStateMachine.OPEN)
            .order_by(PurchaseRequest.id)
            .all()
        )
        if not requests:
            return []

        order, _ = SupplierOrderFactory.find_or_create_open_order(bucket.supplier_id)
        line, _ = SupplierOrderFactory.find_or_create_line(
            order,
            bucket.stock_item_id,
            supplier_ref=bucket.supplier_ref,
            unit_price=bucket.unit_price,
            urgency=bucket.urgency,
        )

        dispatched = []
        for request in requests:
            SupplierOrderFactory.add_link(line, request.id, float(request.quantity or 0.0))
            PurchaseRequestStateMachine.validate_transition(request.status, PurchaseRequestStateMachine.IN_PROGRESS)
            request.status = PurchaseRequestStateMachine.IN_PROGRESS
            dispatched.append(request.id)

        logger.info(
            f"Merged {len(dispatched)} request(s) into basket {order.order_number} line {line.id} "
            f"({bucket.stock_item_id}, qty now {line.quantity})"
        )
        return dispatched
