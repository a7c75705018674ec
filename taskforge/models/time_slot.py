"""
Calendar time slots (breaks and working hours) and the overlap rules.

Times are minutes from midnight in [0, 1440). A slot whose end is before its
start wraps past midnight, e.g. 22:00-02:00 is (1320, 120).
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from taskforge.config_manager import config
from taskforge.exceptions import ValidationError
from taskforge.models.ids import new_id
from taskforge.models.recurrence import RecurrencePattern
from taskforge.validation import Ownable, Storable, ValidationContext, byte_len

ENTITY = "TimeSlot"

DAY_STORAGE_BYTES = 1


class SlotType(Enum):
    BREAK = "Break"
    WORKING_HOURS = "WorkingHours"


class TimeOfDayIssue(Enum):
    INVALID_TIME_OF_DAY = "InvalidTimeOfDay"


def wraps_midnight(start_minutes: int, end_minutes: int) -> bool:
    return start_minutes >= end_minutes


def slot_duration(start_minutes: int, end_minutes: int) -> int:
    minutes_per_day = config.MAX_MINUTES
    return (end_minutes - start_minutes) % minutes_per_day


def check_minute_range(start_minutes: int, end_minutes: int) -> None:
    """Both ends inside the day and distinct; equal ends would mean the whole day."""
    limit = config.MAX_MINUTES
    if (
        not 0 <= start_minutes < limit
        or not 0 <= end_minutes < limit
        or start_minutes == end_minutes
    ):
        raise ValidationError(
            ENTITY,
            f"Timing error: {TimeOfDayIssue.INVALID_TIME_OF_DAY.value} "
            f"(start: {start_minutes}, end: {end_minutes})",
            field="minutes",
            reason=TimeOfDayIssue.INVALID_TIME_OF_DAY,
        )


def minute_ranges_intersect(
    a_start: int, a_end: int, b_start: int, b_end: int
) -> bool:
    """Intersection test for two time-of-day ranges, either of which may wrap."""
    a_wraps = wraps_midnight(a_start, a_end)
    b_wraps = wraps_midnight(b_start, b_end)

    if not a_wraps and not b_wraps:
        return a_start < b_end and a_end > b_start
    if a_wraps and not b_wraps:
        return a_start < b_end or a_end > b_start
    if b_wraps and not a_wraps:
        return b_start < a_end or b_end > a_start
    # Both contain midnight
    return True


@dataclass
class TimeSlot(Storable, Ownable):
    id: str
    start_minutes: int
    end_minutes: int
    recurrence: RecurrencePattern
    owner_id: str
    slot_type: SlotType = SlotType.WORKING_HOURS

    BASE_STORAGE: ClassVar[int] = config.TIME_SLOT_BASE_STORAGE
    MAX_STORAGE: ClassVar[int] = config.TIME_SLOT_MAX_STORAGE

    @classmethod
    def create(
        cls,
        ctx: ValidationContext,
        *,
        start_minutes: int,
        end_minutes: int,
        slot_type: SlotType,
        recurrence: RecurrencePattern,
        owner_id: str,
    ) -> "TimeSlot":
        slot = cls(
            id=new_id("slot"),
            start_minutes=start_minutes,
            end_minutes=end_minutes,
            recurrence=recurrence,
            owner_id=owner_id,
            slot_type=slot_type,
        )
        slot.validate(ctx)
        return slot

    @property
    def duration(self) -> int:
        return slot_duration(self.start_minutes, self.end_minutes)

    @property
    def wraps_midnight(self) -> bool:
        return wraps_midnight(self.start_minutes, self.end_minutes)

    def validate(self, ctx: ValidationContext) -> None:
        self.validate_time_of_day()
        self.recurrence.validate(ENTITY)
        self.validate_storage(ctx.balance)

    def validate_time_of_day(self) -> None:
        check_minute_range(self.start_minutes, self.end_minutes)

    def intersects_range(self, start_minutes: int, end_minutes: int) -> bool:
        return minute_ranges_intersect(
            self.start_minutes, self.end_minutes, start_minutes, end_minutes
        )

    def overlaps_with(self, other: "TimeSlot") -> bool:
        """Same-type slots sharing any minute. Breaks may sit inside working hours."""
        if self.slot_type != other.slot_type:
            return False
        return self.intersects_range(other.start_minutes, other.end_minutes)

    def reschedule(self, start_minutes: int, end_minutes: int, recurrence: RecurrencePattern) -> None:
        self.start_minutes = start_minutes
        self.end_minutes = end_minutes
        self.recurrence = recurrence

    def dynamic_storage_size(self) -> int:
        days = self.recurrence.specific_days or []
        return (
            byte_len(self.id)
            + byte_len(self.owner_id)
            + len(days) * DAY_STORAGE_BYTES
        )
