import logging
from typing import List, Optional

from leaveflow.core.config import settings
from leaveflow.schemas.leave import LeaveBalance, LeaveType
from leaveflow.services.store import LeaveStore

logger = logging.getLogger(__name__)


class BalanceLedger:
    """
    Per-user, per-type remaining/maximum day counters.

    Only the lifecycle service mutates balances, once per status transition.
    Deductions are best-effort (clamped at zero) and restorations never
    credit beyond the maximum, so `0 <= remaining <= max` always holds.
    The ledger writes through the store but never commits.
    """

    def __init__(self, store: LeaveStore, allowance: Optional[int] = None):
        self.store = store
        self.allowance = allowance if allowance is not None else settings.leave_policy.allowance_per_type

    def find(self, user_id: str) -> Optional[LeaveBalance]:
        return next((b for b in self.store.load_balances() if b.user_id == user_id), None)

    def get_or_create(self, user_id: str) -> LeaveBalance:
        balances = self.store.load_balances()
        for balance in balances:
            if balance.user_id == user_id:
                return balance

        balance = LeaveBalance.fresh(user_id, self.allowance)
        balances.append(balance)
        self.store.save_balances(balances)
        logger.info(f"Initialized leave balance for user {user_id} ({self.allowance} days per type)")
        return balance

    def deduct(self, user_id: str, leave_type: LeaveType, days: int) -> LeaveBalance:
        return self._adjust(user_id, LeaveType(leave_type), -days)

    def restore(self, user_id: str, leave_type: LeaveType, days: int) -> LeaveBalance:
        return self._adjust(user_id, LeaveType(leave_type), days)

    def _adjust(self, user_id: str, leave_type: LeaveType, delta: int) -> LeaveBalance:
        balances = self.store.load_balances()
        index = _index_of(balances, user_id)
        if index is None:
            balances.append(LeaveBalance.fresh(user_id, self.allowance))
            index = len(balances) - 1

        balance = balances[index]
        before = balance.remaining(leave_type)
        after = min(max(before + delta, 0), balance.maximum(leave_type))
        balances[index] = balance.model_copy(update={leave_type.value: after})
        self.store.save_balances(balances)

        logger.info(
            f"Balance {leave_type.value} for user {user_id}: {before} -> {after}",
            extra={"user_id": user_id, "leave_type": leave_type.value, "delta": delta},
        )
        return balances[index]


def _index_of(balances: List[LeaveBalance], user_id: str) -> Optional[int]:
    for i, balance in enumerate(balances):
        if balance.user_id == user_id:
            return i
    return None
