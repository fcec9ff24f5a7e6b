"""
Policy classes for procurement business rules

Policies are composable validation rules that enforce business invariants.
They raise domain exceptions when violations are detected.
"""

from app.buisness.procurement.policies.line_lock import LineMutationLockPolicy
from app.buisness.procurement.policies.received_amount import ReceivedAmountPolicy

__all__ = [
    'LineMutationLockPolicy',
    'ReceivedAmountPolicy',
]
