from conftest import NOW
from taskforge.config_manager import NANOS_PER_DAY
from taskforge.habit_engine import (
    apply_completion,
    day_number,
    days_until_next,
    next_deadline,
    verify_streak_continuity,
    weekday_of,
)
from taskforge.models.habit import Habit
from taskforge.models.recurrence import DayOfWeek, RecurrencePattern


def _habit(recurrence, streak=0, last_completed=0) -> Habit:
    return Habit(
        id="habit_1",
        task_id="task_1",
        recurrence=recurrence,
        owner_id="alice",
        streak=streak,
        last_completed=last_completed,
    )


def test_weekday_arithmetic():
    assert weekday_of(0) == DayOfWeek.THURSDAY
    assert weekday_of(NOW) == DayOfWeek.TUESDAY
    assert weekday_of(NOW + NANOS_PER_DAY) == DayOfWeek.WEDNESDAY
    assert day_number(NOW + NANOS_PER_DAY) - day_number(NOW) == 1


def test_first_completion_is_always_continuous():
    assert verify_streak_continuity(NOW, 0, RecurrencePattern.daily())
    assert verify_streak_continuity(NOW, 0, RecurrencePattern.custom([DayOfWeek.SUNDAY]))


def test_daily_continuity_window():
    daily = RecurrencePattern.daily()
    assert verify_streak_continuity(NOW + NANOS_PER_DAY, NOW, daily)
    assert not verify_streak_continuity(NOW + NANOS_PER_DAY + 1, NOW, daily)

    every_other_day = RecurrencePattern.daily(2)
    assert verify_streak_continuity(NOW + 2 * NANOS_PER_DAY, NOW, every_other_day)
    assert not verify_streak_continuity(NOW + 3 * NANOS_PER_DAY, NOW, every_other_day)


def test_custom_continuity_needs_scheduled_day_and_recent_completion():
    tuesdays = RecurrencePattern.custom([DayOfWeek.TUESDAY])

    assert verify_streak_continuity(NOW, NOW - 7 * NANOS_PER_DAY, tuesdays)
    assert not verify_streak_continuity(NOW, NOW - 8 * NANOS_PER_DAY, tuesdays)

    mondays = RecurrencePattern.custom([DayOfWeek.MONDAY])
    assert not verify_streak_continuity(NOW, NOW - NANOS_PER_DAY, mondays)


def test_days_until_next():
    assert days_until_next(NOW, RecurrencePattern.daily(3)) == 3
    assert days_until_next(NOW, RecurrencePattern.custom([DayOfWeek.TUESDAY])) == 7
    assert days_until_next(NOW, RecurrencePattern.custom([DayOfWeek.MONDAY])) == 6
    assert (
        days_until_next(NOW, RecurrencePattern.custom([DayOfWeek.FRIDAY, DayOfWeek.WEDNESDAY]))
        == 1
    )


def test_next_deadline_adds_whole_days():
    assert next_deadline(NOW, RecurrencePattern.daily()) == NOW + NANOS_PER_DAY
    weekend = RecurrencePattern.custom([DayOfWeek.SATURDAY, DayOfWeek.SUNDAY])
    assert next_deadline(NOW, weekend) == NOW + 4 * NANOS_PER_DAY


def test_apply_completion_updates_streak():
    habit = _habit(RecurrencePattern.daily(), streak=4, last_completed=NOW - NANOS_PER_DAY // 2)

    deadline = apply_completion(habit, NOW)

    assert habit.streak == 5
    assert habit.last_completed == NOW
    assert deadline == NOW + NANOS_PER_DAY


def test_apply_completion_resets_broken_streak():
    habit = _habit(RecurrencePattern.daily(), streak=4, last_completed=NOW - 2 * NANOS_PER_DAY)

    apply_completion(habit, NOW)

    assert habit.streak == 0
    assert habit.last_completed == NOW
    assert not habit.never_completed


def test_habit_storage_counts_custom_days():
    daily = _habit(RecurrencePattern.daily())
    custom = _habit(RecurrencePattern.custom([DayOfWeek.MONDAY, DayOfWeek.FRIDAY]))

    assert custom.dynamic_storage_size() - daily.dynamic_storage_size() == 2
