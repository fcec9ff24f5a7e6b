from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app import db
from app.buisness.procurement.errors import (
    ProcurementConflictError,
    ProcurementNotFoundError,
    ProcurementStateError,
    ProcurementValidationError,
)
from app.buisness.procurement.locks import basket_locks, merge_key
from app.buisness.procurement.state_machine import PurchaseRequestStateMachine, SupplierOrderStateMachine
from app.buisness.procurement.supplier_order_factory import SupplierOrderFactory
from app.buisness.procurement.supplier_resolver import StockItemSupplierResolver, SupplierReferenceResolver
from app.data.procurement.line_request_link import SupplierOrderLinePurchaseRequest
from app.data.procurement.purchase_request import PurchaseRequest
from app.data.procurement.supplier_order import SupplierOrder
from app.data.procurement.supplier_order_line import SupplierOrderLine
from app.logger import get_logger

logger = get_logger("procurement.buisness.parallel_quote")


class ParallelQuoteManager:
    """
    Asks a second supplier to quote demand that is already dispatched.

    The request is merged into that supplier's OPEN basket like a dispatch
    would do, which makes the new line a twin of the existing one.
    """

    def __init__(self, resolver: SupplierReferenceResolver | None = None):
        self.resolver = resolver or StockItemSupplierResolver()

    @staticmethod
    def is_linked_to_supplier(request_id: int, supplier_id: str) -> bool:
        return (
            db.session.query(SupplierOrderLinePurchaseRequest.id)
            .join(SupplierOrderLine,
                  SupplierOrderLine.id == SupplierOrderLinePurchaseRequest.supplier_order_line_id)
            .join(SupplierOrder, SupplierOrder.id == SupplierOrderLine.supplier_order_id)
            .filter(SupplierOrderLinePurchaseRequest.purchase_request_id == request_id)
            .filter(SupplierOrder.supplier_id == supplier_id)
            .filter(SupplierOrder.status != SupplierOrderStateMachine.CANCELLED)
            .first()
        ) is not None

    def request_parallel_quote(self, request_id: int, supplier_id: str) -> SupplierOrderLine:
        """
        Link an in-progress request to the OPEN basket of another supplier.

        Returns:
            The line of the supplier's basket now carrying the request

        Raises:
            ProcurementNotFoundError: Unknown request
            ProcurementStateError: Request is not in_progress
            ProcurementValidationError: Supplier has no reference for the stock item
            ProcurementConflictError: Request already linked to that supplier
        """
        request = db.session.get(PurchaseRequest, request_id)
        if request is None:
            raise ProcurementNotFoundError(f"Purchase request {request_id} not found", request_id=request_id)
        if request.status != PurchaseRequestStateMachine.IN_PROGRESS:
            raise ProcurementStateError(
                f"Only {PurchaseRequestStateMachine.IN_PROGRESS} requests can be quoted in parallel "
                f"(request {request_id} is {request.status})",
                request_id=request_id,
                status=request.status,
            )

        reference = self.resolver.reference_for_supplier(request.stock_item_id, supplier_id)
        if reference is None:
            raise ProcurementValidationError(
                f"Supplier {supplier_id} has no reference for stock item {request.stock_item_id}",
                request_id=request_id,
                supplier_id=supplier_id,
            )

        with basket_locks.hold(merge_key(supplier_id)):
            if self.is_linked_to_supplier(request_id, supplier_id):
                raise ProcurementConflictError(
                    f"Request {request_id} is already in a basket of supplier {supplier_id}",
                    request_id=request_id,
                    supplier_id=supplier_id,
                )
            try:
                order, _ = SupplierOrderFactory.find_or_create_open_order(supplier_id)
                line, _ = SupplierOrderFactory.find_or_create_line(
                    order,
                    request.stock_item_id,
                    supplier_ref=reference.supplier_ref,
                    unit_price=reference.unit_price,
                    urgency=request.urgency,
                )
                SupplierOrderFactory.add_link(line, request.id, float(request.quantity or 0.0))
                db.session.commit()
            except IntegrityError as e:
                db.session.rollback()
                raise ProcurementConflictError(
                    f"Concurrent update while adding request {request_id} to supplier {supplier_id}",
                    request_id=request_id,
                    supplier_id=supplier_id,
                ) from e
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Error requesting parallel quote for request {request_id}: {str(e)}")
                raise

        logger.info(
            f"Request {request_id} added to basket {order.order_number} (supplier {supplier_id}) "
            f"as line {line.id} for a parallel quote"
        )
        return line
