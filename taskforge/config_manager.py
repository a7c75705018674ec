"""
Configuration Manager for TaskForge.

Collects every engine constant in one place. Values can be overridden
through a YAML file without touching code.

Usage:
    from taskforge.config_manager import config
    limit = config.MAX_TITLE_LENGTH
"""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml


CONFIG_DIR = Path(__file__).parent.parent / "config"
RUNTIME_CONFIG_PATH = CONFIG_DIR / "runtime.yaml"

NANOS_PER_SECOND = 1_000_000_000
SECONDS_PER_DAY = 24 * 60 * 60
NANOS_PER_DAY = SECONDS_PER_DAY * NANOS_PER_SECOND
NANOS_PER_MINUTE = 60 * NANOS_PER_SECOND


@dataclass
class SystemConfig:
    """
    Engine runtime constants.

    Storage budgets are in bytes, times in minutes/days as named.
    """

    # === Storage budgets ===

    TASK_BASE_STORAGE: int = 256
    TASK_MAX_STORAGE: int = 4096
    REWARD_BASE_STORAGE: int = 128
    REWARD_MAX_STORAGE: int = 2048
    TIME_SLOT_BASE_STORAGE: int = 128
    TIME_SLOT_MAX_STORAGE: int = 2048
    HABIT_BASE_STORAGE: int = 128
    HABIT_MAX_STORAGE: int = 2048

    # === Text limits (shared by tasks and rewards) ===

    MAX_TITLE_LENGTH: int = 256
    MAX_DESCRIPTION_LENGTH: int = 1024

    # === Time ===

    # Minutes in a day; estimated_time and slot boundaries must stay below it
    MAX_MINUTES: int = 24 * 60

    # Deadlines further out than this are rejected
    MAX_FUTURE_DAYS: int = 365

    # Custom habits lose their streak after this many idle days
    CUSTOM_STREAK_WINDOW_DAYS: int = 7

    # === Points ===

    # Largest balance the ledger can hold (unsigned 32-bit)
    POINTS_CEILING: int = 2**32 - 1

    # Minutes of estimated work per base reward point
    MINUTES_PER_POINT: int = 30

    # === Quota oracle defaults (used by StaticBalanceOracle) ===

    DEFAULT_AVAILABLE_BALANCE: int = 10**24
    DEFAULT_COST_PER_BYTE: int = 10**19

    # === Logging ===

    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 3

    @property
    def max_future_nanos(self) -> int:
        return self.MAX_FUTURE_DAYS * NANOS_PER_DAY


def _config_path() -> Path:
    raw = os.getenv("TASKFORGE_CONFIG", "").strip()
    if raw:
        return Path(raw).expanduser()
    return RUNTIME_CONFIG_PATH


def _load_runtime_config(path: Path) -> Dict[str, Any]:
    """Load runtime overrides (if present)."""
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError):
        return {}

    return data if isinstance(data, dict) else {}


def get_config(path: Path = None) -> SystemConfig:
    """
    Build the system configuration.

    Priority: YAML overrides > defaults. Unknown keys are ignored.
    """
    base = SystemConfig()
    overrides = _load_runtime_config(path or _config_path())

    known = {f.name for f in fields(SystemConfig)}
    for key, value in overrides.items():
        if key in known:
            setattr(base, key, value)

    return base


# Global instance
config = get_config()
