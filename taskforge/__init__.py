# TaskForge: tasks, habits, rewards and calendar time slots with a point ledger.

from taskforge.engine import TaskforgeEngine
from taskforge.exceptions import (
    AccessError,
    ErrorKind,
    NotFoundError,
    OperationError,
    StateError,
    StorageError,
    TaskforgeError,
    ValidationError,
)
from taskforge.logger import get_logger, setup_logging
from taskforge.providers import EngineContext, StaticBalanceOracle, StaticIdentity, SystemClock

__all__ = [
    "AccessError",
    "EngineContext",
    "ErrorKind",
    "NotFoundError",
    "OperationError",
    "StateError",
    "StaticBalanceOracle",
    "StaticIdentity",
    "StorageError",
    "SystemClock",
    "TaskforgeEngine",
    "TaskforgeError",
    "ValidationError",
    "get_logger",
    "setup_logging",
]
