# Entity models: tasks, habits, rewards, calendar time slots and recurrence patterns.

from taskforge.models.habit import Habit
from taskforge.models.recurrence import DayOfWeek, Frequency, RecurrencePattern
from taskforge.models.reward import Reward, RewardState
from taskforge.models.task import (
    Priority,
    Task,
    TaskState,
    TaskTimeSlot,
    calculate_reward_points,
)
from taskforge.models.time_slot import SlotType, TimeSlot

__all__ = [
    "DayOfWeek",
    "Frequency",
    "Habit",
    "Priority",
    "RecurrencePattern",
    "Reward",
    "RewardState",
    "SlotType",
    "Task",
    "TaskState",
    "TaskTimeSlot",
    "TimeSlot",
    "calculate_reward_points",
]
