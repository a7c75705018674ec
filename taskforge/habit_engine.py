"""
Habit recurrence engine.

Pure functions deciding whether a completion keeps a streak alive and when
the next occurrence of a recurring task is due. All timestamps are
nanoseconds since the Unix epoch.
"""
from taskforge.config_manager import NANOS_PER_DAY, NANOS_PER_SECOND, SECONDS_PER_DAY, config
from taskforge.models.habit import Habit
from taskforge.models.recurrence import DayOfWeek, Frequency, RecurrencePattern

# 1970-01-01 was a Thursday; Monday is index 0
EPOCH_WEEKDAY_OFFSET = 3


def day_number(timestamp: int) -> int:
    """Whole days since the epoch."""
    return (timestamp // NANOS_PER_SECOND) // SECONDS_PER_DAY


def weekday_of(timestamp: int) -> DayOfWeek:
    return DayOfWeek.from_index((day_number(timestamp) + EPOCH_WEEKDAY_OFFSET) % 7)


def verify_streak_continuity(now: int, last_completed: int, recurrence: RecurrencePattern) -> bool:
    """
    Whether a completion at `now` continues the streak.

    - never completed: always continuous
    - Daily: at most interval days since the last completion
    - Custom: today is a scheduled weekday and the last completion was at
      most a week of calendar days ago
    """
    if last_completed == 0:
        return True

    if recurrence.frequency == Frequency.DAILY:
        allowed = recurrence.interval_days * NANOS_PER_DAY
        return now - last_completed <= allowed

    if not recurrence.specific_days:
        return False

    elapsed_days = day_number(now) - day_number(last_completed)
    return (
        recurrence.includes(weekday_of(now))
        and elapsed_days <= config.CUSTOM_STREAK_WINDOW_DAYS
    )


def days_until_next(now: int, recurrence: RecurrencePattern) -> int:
    """Days from `now` to the next scheduled occurrence (1..7)."""
    if recurrence.frequency == Frequency.DAILY:
        return recurrence.interval_days

    if recurrence.specific_days:
        today = weekday_of(now).index
        for offset in range(1, 8):
            if recurrence.includes(DayOfWeek.from_index(today + offset)):
                return offset
    return 7


def next_deadline(now: int, recurrence: RecurrencePattern) -> int:
    return now + days_until_next(now, recurrence) * NANOS_PER_DAY


def apply_completion(habit: Habit, now: int) -> int:
    """
    Update the habit for a completion at `now` and return the next deadline.
    """
    continuous = verify_streak_continuity(now, habit.last_completed, habit.recurrence)
    habit.record_completion(now, continuous)
    return next_deadline(now, habit.recurrence)
