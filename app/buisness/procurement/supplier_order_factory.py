from __future__ import annotations

import secrets
from datetime import date

from flask import current_app

from app import db
from app.buisness.procurement.dispatch_planner import most_urgent
from app.buisness.procurement.state_machine import SupplierOrderStateMachine
from app.data.procurement.line_request_link import SupplierOrderLinePurchaseRequest
from app.data.procurement.supplier_order import SupplierOrder
from app.data.procurement.supplier_order_line import SupplierOrderLine
from app.logger import get_logger

logger = get_logger("procurement.buisness.supplier_order_factory")


class SupplierOrderFactory:
    """
    Finds or creates supplier baskets, their lines and request links.

    Callers own the transaction: everything here only adds and flushes, so a
    unique-index violation surfaces as IntegrityError at the flush.
    """

    DEFAULT_PREFIX = 'CMD'

    @classmethod
    def generate_order_number(cls, prefix: str | None = None) -> str:
        if prefix is None:
            prefix = current_app.config.get('PROCUREMENT_ORDER_NUMBER_PREFIX', cls.DEFAULT_PREFIX)
        return f"{prefix}-{date.today().strftime('%Y%m%d')}-{secrets.token_hex(3).upper()}"

    @staticmethod
    def find_open_order(supplier_id: str) -> SupplierOrder | None:
        return SupplierOrder.query.filter_by(
            supplier_id=supplier_id,
            status=SupplierOrderStateMachine.OPEN,
        ).first()

    @classmethod
    def find_or_create_open_order(cls, supplier_id: str) -> tuple[SupplierOrder, bool]:
        """
        Get the supplier's OPEN basket, creating it when none exists.

        Returns:
            Tuple of (order, created)
        """
        order = cls.find_open_order(supplier_id)
        if order is not None:
            return order, False

        order = SupplierOrder(
            order_number=cls.generate_order_number(),
            supplier_id=supplier_id,
            status=SupplierOrderStateMachine.OPEN,
        )
        db.session.add(order)
        db.session.flush()
        logger.info(f"Created basket - ID: {order.id}, Number: {order.order_number}, Supplier: {supplier_id}")
        return order, True

    @staticmethod
    def find_or_create_line(
        order: SupplierOrder,
        stock_item_id: str,
        *,
        supplier_ref: str | None = None,
        unit_price: float | None = None,
        urgency: str | None = None,
    ) -> tuple[SupplierOrderLine, bool]:
        """
        Get the basket line for a stock item, creating it with zero quantity.

        An existing line keeps its reference snapshot; its urgency is raised
        when the incoming urgency ranks higher.
        """
        line = SupplierOrderLine.query.filter_by(
            supplier_order_id=order.id,
            stock_item_id=stock_item_id,
        ).first()
        if line is not None:
            line.urgency = most_urgent(line.urgency, urgency)
            if line.unit_price is None and unit_price is not None:
                line.unit_price = unit_price
            return line, False

        line = SupplierOrderLine(
            supplier_order_id=order.id,
            stock_item_id=stock_item_id,
            supplier_ref_snapshot=supplier_ref,
            quantity=0.0,
            unit_price=unit_price,
            urgency=urgency,
            is_selected=False,
            quote_received=False,
        )
        db.session.add(line)
        db.session.flush()
        logger.info(f"Created line {line.id} on basket {order.order_number} for stock item {stock_item_id}")
        return line, True

    @staticmethod
    def add_link(line: SupplierOrderLine, purchase_request_id: int, quantity: float) -> SupplierOrderLinePurchaseRequest:
        """Link a request to the line and grow the line quantity by the same amount"""
        link = SupplierOrderLinePurchaseRequest(
            supplier_order_line_id=line.id,
            purchase_request_id=purchase_request_id,
            quantity=quantity,
        )
        db.session.add(link)
        line.quantity = (line.quantity or 0.0) + quantity
        db.session.flush()
        return link
