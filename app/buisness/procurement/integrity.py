from __future__ import annotations

from dataclasses import dataclass

from app import db
from app.data.procurement.line_request_link import SupplierOrderLinePurchaseRequest
from app.data.procurement.supplier_order_line import SupplierOrderLine
from app.logger import get_logger

logger = get_logger("procurement.buisness.integrity")

QUANTITY_TOLERANCE = 1e-9


@dataclass(frozen=True)
class QuantityMismatch:
    line_id: int
    supplier_order_id: int
    line_quantity: float
    linked_quantity: float

    @property
    def difference(self) -> float:
        return self.line_quantity - self.linked_quantity

    def to_dict(self) -> dict:
        return {
            'line_id': self.line_id,
            'supplier_order_id': self.supplier_order_id,
            'line_quantity': self.line_quantity,
            'linked_quantity': self.linked_quantity,
            'difference': self.difference,
        }


class LineQuantityAuditor:
    """
    Reports lines whose quantity drifted from the sum of their request links.

    Read-only: repairs are an operator decision.
    """

    @staticmethod
    def detect_mismatches(order_id: int | None = None) -> list[QuantityMismatch]:
        linked = (
            db.session.query(
                SupplierOrderLinePurchaseRequest.supplier_order_line_id.label('line_id'),
                db.func.sum(SupplierOrderLinePurchaseRequest.quantity).label('linked_quantity'),
            )
            .group_by(SupplierOrderLinePurchaseRequest.supplier_order_line_id)
            .subquery()
        )
        query = (
            db.session.query(SupplierOrderLine, linked.c.linked_quantity)
            .outerjoin(linked, linked.c.line_id == SupplierOrderLine.id)
            .order_by(SupplierOrderLine.id)
        )
        if order_id is not None:
            query = query.filter(SupplierOrderLine.supplier_order_id == order_id)

        mismatches = []
        for line, linked_quantity in query.all():
            line_quantity = float(line.quantity or 0.0)
            linked_quantity = float(linked_quantity or 0.0)
            if abs(line_quantity - linked_quantity) > QUANTITY_TOLERANCE:
                mismatches.append(QuantityMismatch(line.id, line.supplier_order_id, line_quantity, linked_quantity))

        if mismatches:
            logger.warning(f"Found {len(mismatches)} line(s) whose quantity differs from linked demand")
        return mismatches
