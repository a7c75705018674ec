"""
Recurrence patterns shared by time slots and habits.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from taskforge.exceptions import ValidationError


class Frequency(Enum):
    DAILY = "Daily"
    CUSTOM = "Custom"


class DayOfWeek(Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @property
    def index(self) -> int:
        """Monday = 0 ... Sunday = 6."""
        return WEEKDAYS.index(self)

    @classmethod
    def from_index(cls, index: int) -> "DayOfWeek":
        return WEEKDAYS[index % 7]


WEEKDAYS: Tuple[DayOfWeek, ...] = tuple(DayOfWeek)


class RecurrenceIssue(Enum):
    EMPTY_DAYS = "EmptyDays"
    INVALID_PATTERN = "InvalidPattern"


@dataclass
class RecurrencePattern:
    """
    How often something repeats.

    Daily patterns carry an interval in days; Custom patterns carry a sorted,
    deduplicated list of weekdays. Use daily() / custom() to build valid ones.
    """
    frequency: Frequency
    interval: Optional[int] = None
    specific_days: Optional[List[DayOfWeek]] = None

    @classmethod
    def daily(cls, interval: int = 1) -> "RecurrencePattern":
        return cls(frequency=Frequency.DAILY, interval=interval, specific_days=None)

    @classmethod
    def custom(cls, days: Iterable[DayOfWeek]) -> "RecurrencePattern":
        unique_days = sorted(set(days), key=lambda d: d.index)
        if not unique_days:
            raise ValueError("Must specify at least one day")
        return cls(frequency=Frequency.CUSTOM, interval=None, specific_days=unique_days)

    @property
    def interval_days(self) -> int:
        return self.interval if self.interval is not None else 1

    def is_valid(self) -> bool:
        if self.frequency == Frequency.CUSTOM:
            if not self.specific_days or self.interval is not None:
                return False
            canonical = sorted(set(self.specific_days), key=lambda d: d.index)
            return list(self.specific_days) == canonical
        return (
            self.interval is not None
            and self.interval > 0
            and self.specific_days is None
        )

    def validate(self, entity: str) -> None:
        if self.frequency == Frequency.CUSTOM and not self.specific_days:
            raise ValidationError(
                entity,
                f"Recurrence error: {RecurrenceIssue.EMPTY_DAYS.value}",
                field="recurrence",
                reason=RecurrenceIssue.EMPTY_DAYS,
            )
        if not self.is_valid():
            raise ValidationError(
                entity,
                f"Recurrence error: {RecurrenceIssue.INVALID_PATTERN.value}",
                field="recurrence",
                reason=RecurrenceIssue.INVALID_PATTERN,
            )

    def includes(self, day: DayOfWeek) -> bool:
        return day in (self.specific_days or [])
