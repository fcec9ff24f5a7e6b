"""
Dispatch planning - pure aggregation step of the dispatch run.

Given a snapshot of eligible requests and their preferred supplier
references, produce the list of intended mutations (basket/line upserts,
links, status changes) without touching storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from app.buisness.procurement.snapshots import ReferenceSnapshot, RequestSnapshot

URGENCY_RANK = {'high': 3, 'normal': 2, 'low': 1}


def most_urgent(*urgencies: str | None) -> str | None:
    """Highest urgency among the given values (unknown or missing ranks lowest)"""
    best = None
    for urgency in urgencies:
        if urgency is None:
            continue
        if best is None or URGENCY_RANK.get(urgency, 0) > URGENCY_RANK.get(best, 0):
            best = urgency
    return best


@dataclass(frozen=True)
class LinkPlan:
    purchase_request_id: int
    quantity: float


@dataclass
class BucketPlan:
    """All demand for one (supplier, stock item) pair"""
    supplier_id: str
    stock_item_id: str
    supplier_ref: str
    unit_price: float | None = None
    urgency: str | None = None
    links: list[LinkPlan] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.supplier_id, self.stock_item_id)

    @property
    def total_quantity(self) -> float:
        return sum(link.quantity for link in self.links)

    @property
    def request_ids(self) -> list[int]:
        return [link.purchase_request_id for link in self.links]


@dataclass
class DispatchPlan:
    buckets: list[BucketPlan] = field(default_factory=list)
    to_qualify: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.buckets and not self.to_qualify

    @property
    def request_count(self) -> int:
        return sum(len(bucket.links) for bucket in self.buckets)


def plan_dispatch(
    requests: Iterable[RequestSnapshot],
    preferred_by_item: Mapping[str, ReferenceSnapshot],
) -> DispatchPlan:
    """
    Group requests into (supplier, stock item) buckets.

    Args:
        requests: Open requests to route
        preferred_by_item: Preferred reference per stock item; items missing
            from the mapping have no preferred supplier

    Returns:
        DispatchPlan with buckets in first-seen order, the ids of requests
        needing supplier qualification, and ids skipped for lacking a stock item
    """
    plan = DispatchPlan()
    buckets: dict[tuple[str, str], BucketPlan] = {}

    for request in requests:
        if request.stock_item_id is None:
            plan.skipped.append(request.id)
            continue

        reference = preferred_by_item.get(request.stock_item_id)
        if reference is None:
            plan.to_qualify.append(request.id)
            continue

        key = (reference.supplier_id, request.stock_item_id)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = BucketPlan(
                supplier_id=reference.supplier_id,
                stock_item_id=request.stock_item_id,
                supplier_ref=reference.supplier_ref,
                unit_price=reference.unit_price,
            )
            buckets[key] = bucket
            plan.buckets.append(bucket)

        bucket.links.append(LinkPlan(purchase_request_id=request.id, quantity=request.quantity))
        bucket.urgency = most_urgent(bucket.urgency, request.urgency)

    return plan
