from __future__ import annotations

from typing import Iterable

from app.buisness.procurement.errors import NoPreferredReferenceError
from app.buisness.procurement.snapshots import ReferenceSnapshot
from app.logger import get_logger

logger = get_logger("procurement.buisness.supplier_resolver")


class SupplierReferenceResolver:
    """
    Supplies candidate supplier references for stock items.

    Subclasses implement `references_for`; preferred-reference selection is
    shared so every source applies the same tie-break.
    """

    def references_for(self, stock_item_id: str) -> list[ReferenceSnapshot]:
        raise NotImplementedError

    def references_for_many(self, stock_item_ids: Iterable[str]) -> dict[str, list[ReferenceSnapshot]]:
        return {stock_item_id: self.references_for(stock_item_id) for stock_item_id in set(stock_item_ids)}

    @staticmethod
    def pick_preferred(references: list[ReferenceSnapshot]) -> ReferenceSnapshot | None:
        preferred = [ref for ref in references if ref.is_preferred]
        if not preferred:
            return None
        if len(preferred) > 1:
            # Several preferred references for one item: lowest id wins
            preferred.sort(key=lambda ref: (ref.id is None, ref.id or 0, ref.supplier_id))
            logger.warning(
                f"Stock item {preferred[0].stock_item_id} has {len(preferred)} preferred references; "
                f"using supplier {preferred[0].supplier_id}"
            )
        return preferred[0]

    def preferred_for(self, stock_item_id: str) -> ReferenceSnapshot | None:
        return self.pick_preferred(self.references_for(stock_item_id))

    def preferred_for_many(self, stock_item_ids: Iterable[str]) -> dict[str, ReferenceSnapshot]:
        """Map each stock item to its preferred reference; items without one are omitted"""
        result = {}
        for stock_item_id, references in self.references_for_many(stock_item_ids).items():
            preferred = self.pick_preferred(references)
            if preferred is not None:
                result[stock_item_id] = preferred
        return result

    def require_preferred(self, stock_item_id: str) -> ReferenceSnapshot:
        preferred = self.preferred_for(stock_item_id)
        if preferred is None:
            raise NoPreferredReferenceError(
                f"No preferred supplier reference for stock item {stock_item_id}",
                stock_item_id=stock_item_id,
            )
        return preferred

    def reference_for_supplier(self, stock_item_id: str, supplier_id: str) -> ReferenceSnapshot | None:
        """Reference of a specific supplier for the item, preferred one first"""
        candidates = [ref for ref in self.references_for(stock_item_id) if ref.supplier_id == supplier_id]
        if not candidates:
            return None
        candidates.sort(key=lambda ref: (not ref.is_preferred, ref.id is None, ref.id or 0))
        return candidates[0]


class StockItemSupplierResolver(SupplierReferenceResolver):
    """Resolver backed by the stock_item_supplier relation"""

    def references_for(self, stock_item_id: str) -> list[ReferenceSnapshot]:
        return self.references_for_many([stock_item_id]).get(stock_item_id, [])

    def references_for_many(self, stock_item_ids: Iterable[str]) -> dict[str, list[ReferenceSnapshot]]:
        from app.data.procurement.mappers import to_reference_snapshot
        from app.data.procurement.supplier_reference import SupplierReference

        ids = sorted(set(stock_item_ids))
        result: dict[str, list[ReferenceSnapshot]] = {stock_item_id: [] for stock_item_id in ids}
        if not ids:
            return result
        rows = (
            SupplierReference.query
            .filter(SupplierReference.stock_item_id.in_(ids))
            .order_by(SupplierReference.id)
            .all()
        )
        for row in rows:
            result[row.stock_item_id].append(to_reference_snapshot(row))
        return result


class StaticSupplierReferenceResolver(SupplierReferenceResolver):
    """Resolver over an in-memory list of references (imports, batch jobs, tests)"""

    def __init__(self, references: Iterable[ReferenceSnapshot]):
        self._by_item: dict[str, list[ReferenceSnapshot]] = {}
        for ref in references:
            self._by_item.setdefault(ref.stock_item_id, []).append(ref)

    def references_for(self, stock_item_id: str) -> list[ReferenceSnapshot]:
        return list(self._by_item.get(stock_item_id, []))
