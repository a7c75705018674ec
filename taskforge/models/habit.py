"""
Habit: the recurrence record of a repeating task.
"""
from dataclasses import dataclass
from typing import ClassVar

from taskforge.config_manager import config
from taskforge.models.ids import new_id
from taskforge.models.recurrence import RecurrencePattern
from taskforge.validation import Ownable, Storable, ValidationContext, byte_len

ENTITY = "Habit"

# One byte per weekday entry
DAY_STORAGE_BYTES = 1


@dataclass
class Habit(Storable, Ownable):
    id: str
    task_id: str
    recurrence: RecurrencePattern
    owner_id: str
    streak: int = 0
    last_completed: int = 0  # 0 means never

    BASE_STORAGE: ClassVar[int] = config.HABIT_BASE_STORAGE
    MAX_STORAGE: ClassVar[int] = config.HABIT_MAX_STORAGE

    @classmethod
    def create(
        cls,
        ctx: ValidationContext,
        *,
        task_id: str,
        recurrence: RecurrencePattern,
        owner_id: str,
    ) -> "Habit":
        habit = cls(
            id=new_id("habit"),
            task_id=task_id,
            recurrence=recurrence,
            owner_id=owner_id,
        )
        habit.validate(ctx)
        return habit

    @property
    def never_completed(self) -> bool:
        return self.last_completed == 0

    def validate(self, ctx: ValidationContext) -> None:
        self.recurrence.validate(ENTITY)
        self.validate_storage(ctx.balance)

    def increment_streak(self, now: int) -> int:
        self.streak += 1
        self.last_completed = now
        return self.streak

    def reset_streak(self, now: int) -> None:
        self.streak = 0
        self.last_completed = now

    def record_completion(self, now: int, continuous: bool) -> int:
        if continuous:
            return self.increment_streak(now)
        self.reset_streak(now)
        return self.streak

    def rebind(self, task_id: str) -> None:
        self.task_id = task_id

    def dynamic_storage_size(self) -> int:
        days = self.recurrence.specific_days or []
        return (
            byte_len(self.id)
            + byte_len(self.task_id)
            + byte_len(self.owner_id)
            + len(days) * DAY_STORAGE_BYTES
        )
