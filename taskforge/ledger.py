"""
Reward-point ledger.

Per-owner point balances. Balances never go below zero or above the
configured ceiling; a change that would do either is rejected and leaves
the balance untouched.
"""
from typing import Dict, Iterable, Optional, Tuple

from taskforge.config_manager import config
from taskforge.exceptions import OperationError, ValidationError
from taskforge.logger import get_logger
from taskforge.store import InMemoryKeyValueStore, KeyValueStore

logger = get_logger("ledger")


def _require_account(owner_id: str) -> None:
    if not owner_id:
        raise ValidationError("Account", "Account ID cannot be empty")


class RewardLedger:
    """Point balances keyed by owner id; missing owners hold 0."""

    def __init__(self, store: Optional[KeyValueStore[int]] = None, ceiling: Optional[int] = None):
        self._balances: KeyValueStore[int] = store if store is not None else InMemoryKeyValueStore()
        self.ceiling = config.POINTS_CEILING if ceiling is None else ceiling

    def balance(self, owner_id: str) -> int:
        _require_account(owner_id)
        value = self._balances.get(owner_id)
        return value if value is not None else 0

    def preview(self, owner_id: str, delta: int) -> int:
        """Return the balance after applying `delta`, without writing it."""
        current = self.balance(owner_id)

        if delta > 0:
            new_balance = current + delta
            if new_balance > self.ceiling:
                raise OperationError("Points addition would overflow")
            return new_balance

        needed = -delta
        if current < needed:
            raise OperationError(f"Insufficient points: has {current}, needs {needed}")
        return current - needed

    def add_points(self, owner_id: str, delta: int) -> int:
        """
        Apply a signed change to an owner's balance and return the new one.

        Positive deltas credit, zero or negative deltas debit.
        """
        new_balance = self.preview(owner_id, delta)
        self._balances.insert(owner_id, new_balance)
        logger.debug(f"Ledger {owner_id}: {delta:+d} -> {new_balance}")
        return new_balance

    def check_credits(self, credits: Iterable[Tuple[str, int]]) -> Dict[str, int]:
        """
        Verify a batch of credits as if applied in order.

        Returns the resulting balance per owner. Nothing is written.
        """
        totals: Dict[str, int] = {}
        for owner_id, points in credits:
            totals[owner_id] = totals.get(owner_id, 0) + points

        return {owner_id: self.preview(owner_id, total) for owner_id, total in totals.items()}
