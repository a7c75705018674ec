"""
External collaborators consumed by the engine.

Defines the ports for caller identity, wall clock and the balance oracle,
plus simple default implementations. Tests swap in their own.
"""
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from taskforge.config_manager import config


class IdentityProvider(ABC):
    """Supplies the id of the caller of the current operation."""

    @abstractmethod
    def caller_id(self) -> str:
        pass


class Clock(ABC):
    """Supplies the current time."""

    @abstractmethod
    def now(self) -> int:
        """Return the current time as a nanosecond timestamp."""
        pass


class BalanceOracle(ABC):
    """Supplies the spendable balance and per-byte storage cost."""

    @abstractmethod
    def available_balance(self) -> int:
        pass

    @abstractmethod
    def cost_per_byte(self) -> int:
        pass


class StaticIdentity(IdentityProvider):
    """Identity fixed at construction; use act_as() to change callers."""

    def __init__(self, owner_id: str):
        self.owner_id = owner_id

    def act_as(self, owner_id: str) -> None:
        self.owner_id = owner_id

    def caller_id(self) -> str:
        return self.owner_id


class SystemClock(Clock):
    def now(self) -> int:
        return time.time_ns()


class StaticBalanceOracle(BalanceOracle):
    """Constant balance and cost, defaulting to the configured values."""

    def __init__(self, available: Optional[int] = None, cost_per_byte: Optional[int] = None):
        self.available = config.DEFAULT_AVAILABLE_BALANCE if available is None else available
        self.cost = config.DEFAULT_COST_PER_BYTE if cost_per_byte is None else cost_per_byte

    def available_balance(self) -> int:
        return self.available

    def cost_per_byte(self) -> int:
        return self.cost


@dataclass
class EngineContext:
    """Bundle of collaborators handed to the engine explicitly."""
    identity: IdentityProvider
    clock: Clock = field(default_factory=SystemClock)
    balance: BalanceOracle = field(default_factory=StaticBalanceOracle)
