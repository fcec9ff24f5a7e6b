"""
Twin-line reconciliation

Twin lines are lines of different baskets that carry the same demand (they
share at least one linked purchase request). Before a basket is confirmed
exactly one of the competing quotes must be selected.

`validate_twin_set` is pure and works on LineSnapshot records; the service
class reads them from storage on every call so results are never stale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from app import db
from app.buisness.procurement.errors import ProcurementNotFoundError
from app.buisness.procurement.snapshots import LineSnapshot
from app.buisness.procurement.state_machine import SupplierOrderStateMachine
from app.data.procurement.line_request_link import SupplierOrderLinePurchaseRequest
from app.data.procurement.mappers import to_line_snapshot
from app.data.procurement.supplier_order_line import SupplierOrderLine
from app.logger import get_logger

logger = get_logger("procurement.buisness.twin_lines")

STATUS_INCORRECT = 'status_incorrect'
MULTIPLE_SELECTED = 'multiple_selected'
MISSING_QUOTES = 'missing_quotes'
NONE_SELECTED = 'none_selected'


@dataclass(frozen=True)
class TwinIssue:
    code: str
    message: str
    line_ids: tuple[int, ...] = ()

    def to_dict(self) -> dict:
        return {'code': self.code, 'message': self.message, 'line_ids': list(self.line_ids)}


@dataclass
class TwinValidation:
    line: LineSnapshot
    twins: list[LineSnapshot] = field(default_factory=list)
    errors: list[TwinIssue] = field(default_factory=list)
    warnings: list[TwinIssue] = field(default_factory=list)

    @property
    def has_twins(self) -> bool:
        return bool(self.twins)

    @property
    def is_resolved(self) -> bool:
        return not self.errors and not self.warnings

    def error_codes(self) -> list[str]:
        return [issue.code for issue in self.errors]

    def warning_codes(self) -> list[str]:
        return [issue.code for issue in self.warnings]

    def to_dict(self) -> dict:
        return {
            'line_id': self.line.line_id,
            'twin_lines': [twin.to_dict() for twin in self.twins],
            'validation_errors': [issue.to_dict() for issue in self.errors],
            'validation_warnings': [issue.to_dict() for issue in self.warnings],
            'is_resolved': self.is_resolved,
        }


def validate_twin_set(line: LineSnapshot, twins: Sequence[LineSnapshot]) -> TwinValidation:
    """
    Check a line against its twins.

    Errors:
    - status_incorrect: a line of the set sits in a basket that is not SENT
    - multiple_selected: more than one line of the set is selected
    Warnings:
    - missing_quotes: some quotes have not been received yet
    - none_selected: every quote is in but nothing is selected

    Twins whose basket is already settled (CLOSED or CANCELLED) no longer
    compete and are left out of the checks. A line without competing twins
    has nothing to reconcile.
    """
    result = TwinValidation(line=line, twins=list(twins))
    competing = [twin for twin in twins if twin.order_status not in SupplierOrderStateMachine.TERMINAL_STATES]
    if not competing:
        return result

    lines = [line, *competing]

    wrong_status = [ln for ln in lines if ln.order_status != SupplierOrderStateMachine.SENT]
    if wrong_status:
        described = ', '.join(f"line {ln.line_id} ({ln.order_number}: {ln.order_status})" for ln in wrong_status)
        result.errors.append(TwinIssue(
            code=STATUS_INCORRECT,
            message=f"Status incorrect: competing quotes must all be in {SupplierOrderStateMachine.SENT} "
                    f"baskets; found {described}",
            line_ids=tuple(ln.line_id for ln in wrong_status),
        ))

    selected = [ln for ln in lines if ln.is_selected]
    if len(selected) > 1:
        result.errors.append(TwinIssue(
            code=MULTIPLE_SELECTED,
            message=f"{len(selected)} competing lines are selected; keep exactly one",
            line_ids=tuple(ln.line_id for ln in selected),
        ))

    missing = [ln for ln in lines if not ln.quote_received]
    if missing:
        result.warnings.append(TwinIssue(
            code=MISSING_QUOTES,
            message=f"{len(missing)} of {len(lines)} quotes not received yet",
            line_ids=tuple(ln.line_id for ln in missing),
        ))
    elif not selected:
        result.warnings.append(TwinIssue(
            code=NONE_SELECTED,
            message="All quotes received but no line selected",
            line_ids=tuple(ln.line_id for ln in lines),
        ))

    return result


def detect_twins(line: SupplierOrderLine) -> list[SupplierOrderLine]:
    """Lines of other baskets sharing at least one purchase request with `line`"""
    request_ids = (
        db.select(SupplierOrderLinePurchaseRequest.purchase_request_id)
        .where(SupplierOrderLinePurchaseRequest.supplier_order_line_id == line.id)
    )
    return (
        SupplierOrderLine.query
        .join(SupplierOrderLinePurchaseRequest,
              SupplierOrderLinePurchaseRequest.supplier_order_line_id == SupplierOrderLine.id)
        .filter(SupplierOrderLinePurchaseRequest.purchase_request_id.in_(request_ids))
        .filter(SupplierOrderLine.supplier_order_id != line.supplier_order_id)
        .distinct()
        .order_by(SupplierOrderLine.id)
        .all()
    )


class TwinLineService:
    """Reads a line and its twins and validates the set"""

    @staticmethod
    def _get_line(line_id: int) -> SupplierOrderLine:
        line = db.session.get(SupplierOrderLine, line_id)
        if line is None:
            raise ProcurementNotFoundError(f"Supplier order line {line_id} not found", line_id=line_id)
        return line

    @classmethod
    def get_twin_lines(cls, line_id: int) -> TwinValidation:
        line = cls._get_line(line_id)
        twins = [to_line_snapshot(twin) for twin in detect_twins(line)]
        validation = validate_twin_set(to_line_snapshot(line), twins)
        if validation.errors:
            logger.debug(f"Line {line_id} twin validation errors: {validation.error_codes()}")
        return validation

    @classmethod
    def validate_order(cls, order_id: int) -> list[TwinValidation]:
        """Validation for every line of a basket that has twins"""
        lines = SupplierOrderLine.query.filter_by(supplier_order_id=order_id).order_by(SupplierOrderLine.id).all()
        results = []
        for line in lines:
            validation = cls.get_twin_lines(line.id)
            if validation.has_twins:
                results.append(validation)
        return results
