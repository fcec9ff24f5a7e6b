"""
Canonical domain snapshots used by the pure parts of the engine.

The planner and the twin-line validator only see these frozen records; the
ORM-to-snapshot mapping lives in app.data.procurement.mappers.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RequestSnapshot:
    id: int
    stock_item_id: str | None
    quantity: float
    urgency: str | None = None


@dataclass(frozen=True)
class ReferenceSnapshot:
    stock_item_id: str
    supplier_id: str
    supplier_ref: str
    is_preferred: bool
    unit_price: float | None = None
    lead_time_days: int | None = None
    id: int | None = None


@dataclass(frozen=True)
class LineSnapshot:
    """A supplier order line as seen by twin-line reconciliation"""
    line_id: int
    supplier_order_id: int
    order_number: str
    order_status: str
    supplier_id: str
    stock_item_id: str
    quantity: float
    is_selected: bool
    quote_received: bool
    supplier_ref_snapshot: str | None = None
    unit_price: float | None = None
    quote_price: float | None = None
    lead_time_days: int | None = None
    purchase_request_ids: tuple[int, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'line_id': self.line_id,
            'supplier_order_id': self.supplier_order_id,
            'order_number': self.order_number,
            'order_status': self.order_status,
            'supplier_id': self.supplier_id,
            'stock_item_id': self.stock_item_id,
            'quantity': self.quantity,
            'is_selected': self.is_selected,
            'quote_received': self.quote_received,
            'supplier_ref_snapshot': self.supplier_ref_snapshot,
            'unit_price': self.unit_price,
            'quote_price': self.quote_price,
            'lead_time_days': self.lead_time_days,
            'purchase_request_ids': list(self.purchase_request_ids),
        }
