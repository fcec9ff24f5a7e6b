"""
State machines for supplier basket and purchase request lifecycles

Encodes valid transitions and the basket -> request status mapping.
Keeps "what is allowed" separate from "how persistence occurs".
"""

from typing import Dict, Set
from app.buisness.procurement.errors import InvalidTransitionError


class SupplierOrderStateMachine:
    """
    State machine for SupplierOrder status transitions.

    Baskets only move forward one step at a time:
    OPEN -> SENT -> ACK -> RECEIVED -> CLOSED.
    CANCELLED can be reached from every non-terminal state.
    """

    OPEN = 'OPEN'          # Pooling demand, accepts new lines
    SENT = 'SENT'          # Quote requested from the supplier
    ACK = 'ACK'            # Supplier answered (quote/confirmation)
    RECEIVED = 'RECEIVED'  # Order confirmed with the supplier
    CLOSED = 'CLOSED'      # Goods received, basket closed
    CANCELLED = 'CANCELLED'

    STATUSES = (OPEN, SENT, ACK, RECEIVED, CLOSED, CANCELLED)

    # Terminal states (cannot transition from these)
    TERMINAL_STATES = {CLOSED, CANCELLED}

    # Lines of baskets in these states are frozen
    LOCKED_STATES = {RECEIVED, CLOSED}

    # Immediate successor along the forward path
    FORWARD: Dict[str, str] = {
        OPEN: SENT,
        SENT: ACK,
        ACK: RECEIVED,
        RECEIVED: CLOSED,
    }

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        """Get set of allowed target statuses from current status"""
        if from_status in cls.TERMINAL_STATES:
            return set()
        allowed = {cls.CANCELLED}
        successor = cls.FORWARD.get(from_status)
        if successor:
            allowed.add(successor)
        return allowed

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if transition is valid.

        Staying in the same state is not a transition.
        """
        return to_status in cls.get_allowed_transitions(from_status)

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Validate transition and raise exception if invalid.

        Raises:
            InvalidTransitionError: If transition is not allowed
        """
        if to_status not in cls.STATUSES:
            raise InvalidTransitionError(
                f"Unknown supplier order status: {to_status}",
                from_status=from_status,
                to_status=to_status,
            )
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(
                f"Invalid supplier order status transition: {from_status} → {to_status}",
                from_status=from_status,
                to_status=to_status,
                allowed=sorted(cls.get_allowed_transitions(from_status)),
            )

    @classmethod
    def is_locked(cls, status: str) -> bool:
        return status in cls.LOCKED_STATES


class PurchaseRequestStateMachine:
    """
    State machine for PurchaseRequest status.

    Requests move forward along open -> in_progress -> ordered -> received,
    or to cancelled from any non-terminal state. Staying put is a no-op.
    """

    OPEN = 'open'
    IN_PROGRESS = 'in_progress'
    ORDERED = 'ordered'
    RECEIVED = 'received'
    CANCELLED = 'cancelled'

    TERMINAL_STATES = {RECEIVED, CANCELLED}

    TRANSITIONS: Dict[str, Set[str]] = {
        OPEN: {IN_PROGRESS, ORDERED, CANCELLED},
        IN_PROGRESS: {ORDERED, CANCELLED},
        ORDERED: {RECEIVED, CANCELLED},
        # RECEIVED and CANCELLED are terminal
    }

    # Purging an OPEN basket hands this demand back to dispatch; the only backwards move
    RELEASABLE_STATES = {IN_PROGRESS}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        if from_status == to_status:
            return True
        if from_status in cls.TERMINAL_STATES:
            return False
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def can_release(cls, status: str) -> bool:
        return status in cls.RELEASABLE_STATES

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(
                f"Invalid purchase request status transition: {from_status} → {to_status}",
                from_status=from_status,
                to_status=to_status,
            )


# Basket status -> status applied to every linked purchase request
REQUEST_STATUS_FOR_ORDER_STATUS: Dict[str, str] = {
    SupplierOrderStateMachine.OPEN: PurchaseRequestStateMachine.IN_PROGRESS,
    SupplierOrderStateMachine.SENT: PurchaseRequestStateMachine.ORDERED,
    SupplierOrderStateMachine.ACK: PurchaseRequestStateMachine.ORDERED,
    SupplierOrderStateMachine.RECEIVED: PurchaseRequestStateMachine.ORDERED,
    SupplierOrderStateMachine.CLOSED: PurchaseRequestStateMachine.RECEIVED,
    SupplierOrderStateMachine.CANCELLED: PurchaseRequestStateMachine.CANCELLED,
}
