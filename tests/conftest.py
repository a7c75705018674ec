import os
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep log files out of the working tree during tests.
os.environ.setdefault("TASKFORGE_DATA_DIR", str(PROJECT_ROOT / ".pytest_data"))

from taskforge.config_manager import NANOS_PER_DAY
from taskforge.engine import TaskforgeEngine
from taskforge.providers import BalanceOracle, Clock, EngineContext, StaticIdentity

# 2023-11-14 22:13:20 UTC, a Tuesday
NOW = 1_700_000_000 * 1_000_000_000
TOMORROW = NOW + NANOS_PER_DAY


class FakeClock(Clock):
    def __init__(self, now: int = NOW):
        self.current = now

    def now(self) -> int:
        return self.current

    def advance(self, nanos: int) -> int:
        self.current += nanos
        return self.current


class FakeBalance(BalanceOracle):
    def __init__(self, available: int = 10**24, cost_per_byte: int = 10**19):
        self.available = available
        self.cost = cost_per_byte

    def available_balance(self) -> int:
        return self.available

    def cost_per_byte(self) -> int:
        return self.cost


@pytest.fixture
def identity():
    return StaticIdentity("alice")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def balance():
    return FakeBalance()


@pytest.fixture
def context(identity, clock, balance):
    return EngineContext(identity=identity, clock=clock, balance=balance)


@pytest.fixture
def engine(context):
    return TaskforgeEngine(context)
