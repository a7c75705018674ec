"""
Task entity and its state machine.

A task is time-boxed work with a deadline. Subtasks point to their parent by
id and the parent lists them in subtask_ids; both links are plain ids.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional

from taskforge.config_manager import NANOS_PER_MINUTE, config
from taskforge.exceptions import StateError, ValidationError
from taskforge.models.ids import new_id
from taskforge.validation import (
    Ownable,
    Storable,
    ValidationContext,
    byte_len,
    check_description,
    check_title,
    total_byte_len,
)

ENTITY = "Task"


class Priority(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def multiplier(self) -> int:
        return _PRIORITY_MULTIPLIERS[self]


_PRIORITY_MULTIPLIERS = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.CRITICAL: 4,
}


class TaskState(Enum):
    CREATED = "Created"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"


class TaskAction(Enum):
    START = "Start"
    COMPLETE = "Complete"
    UPDATE = "Update"
    DELETE = "Delete"


class DeadlineIssue(Enum):
    PAST_DEADLINE = "PastDeadline"
    TOO_FAR_IN_FUTURE = "TooFarInFuture"
    BEFORE_END_TIME = "BeforeEndTime"


class EstimatedTimeIssue(Enum):
    ZERO = "Zero"
    TOO_LONG = "TooLong"


class TimingIssue(Enum):
    END_BEFORE_START = "EndBeforeStart"
    OVERLAPPING_SLOTS = "OverlappingSlots"


class SubtaskIssue(Enum):
    DUPLICATE_ID = "DuplicateId"
    CIRCULAR_DEPENDENCY = "CircularDependency"


@dataclass
class TaskTimeSlot:
    """Half-open [start_time, end_time) interval in nanoseconds."""
    start_time: int
    end_time: int

    def overlaps(self, other: "TaskTimeSlot") -> bool:
        return self.start_time < other.end_time and self.end_time > other.start_time


def calculate_reward_points(estimated_time: int, priority: Priority) -> int:
    """
    Points earned for finishing a task.

    One base point per 30 minutes, rounding up from a 15 minute remainder,
    scaled by priority.
    """
    step = config.MINUTES_PER_POINT
    base_points = estimated_time // step
    if estimated_time % step >= step // 2:
        base_points += 1
    return base_points * priority.multiplier


def _timing_error(issue: TimingIssue, provided_time: int) -> ValidationError:
    return ValidationError(
        ENTITY,
        f"Timing validation error: {issue.value} (time: {provided_time})",
        field="time_slots",
        reason=issue,
    )


def _subtask_error(issue: SubtaskIssue, count: int) -> ValidationError:
    return ValidationError(
        ENTITY,
        f"Subtasks validation error: {issue.value} (count: {count})",
        field="subtask_ids",
        reason=issue,
    )


@dataclass
class Task(Storable, Ownable):
    id: str
    title: str
    description: str
    priority: Priority
    deadline: int
    estimated_time: int
    owner_id: str
    reward_points: int = 0
    time_slots: List[TaskTimeSlot] = field(default_factory=list)
    state: TaskState = TaskState.CREATED
    parent_task_id: Optional[str] = None
    subtask_ids: List[str] = field(default_factory=list)

    BASE_STORAGE: ClassVar[int] = config.TASK_BASE_STORAGE
    MAX_STORAGE: ClassVar[int] = config.TASK_MAX_STORAGE

    @classmethod
    def create(
        cls,
        ctx: ValidationContext,
        *,
        title: str,
        description: str,
        priority: Priority,
        deadline: int,
        estimated_time: int,
        owner_id: str,
        time_slots: Optional[List[TaskTimeSlot]] = None,
        parent_task_id: Optional[str] = None,
    ) -> "Task":
        """Build a new task in Created state; raises if it fails validation."""
        task = cls(
            id=new_id("task"),
            title=title,
            description=description,
            priority=priority,
            deadline=deadline,
            estimated_time=estimated_time,
            owner_id=owner_id,
            reward_points=calculate_reward_points(estimated_time, priority),
            time_slots=list(time_slots or []),
            parent_task_id=parent_task_id,
        )
        task.validate(ctx)
        return task

    @property
    def is_subtask(self) -> bool:
        return self.parent_task_id is not None

    def recompute_reward_points(self) -> int:
        self.reward_points = calculate_reward_points(self.estimated_time, self.priority)
        return self.reward_points

    def latest_slot_end(self) -> Optional[int]:
        if not self.time_slots:
            return None
        return max(slot.end_time for slot in self.time_slots)

    # ------------------------------------------------------------------
    # Validation pipeline
    # ------------------------------------------------------------------
    def validate(self, ctx: ValidationContext) -> None:
        """Run every check in order; trims title and description."""
        self.title = check_title(ENTITY, self.title)
        self.description = check_description(ENTITY, self.description)
        self.validate_deadline(ctx.now)
        self.validate_estimated_time()
        self.validate_timing()
        self.validate_subtasks()
        self.validate_storage(ctx.balance)

    def validate_deadline(self, now: int) -> None:
        if self.state == TaskState.OVERDUE:
            return

        issue = None
        if self.deadline <= now:
            issue = DeadlineIssue.PAST_DEADLINE
        elif self.deadline >= now + config.max_future_nanos:
            issue = DeadlineIssue.TOO_FAR_IN_FUTURE
        else:
            latest_end = self.latest_slot_end()
            if latest_end is not None and self.deadline <= latest_end:
                issue = DeadlineIssue.BEFORE_END_TIME

        if issue is not None:
            raise ValidationError(
                ENTITY,
                f"Deadline validation error: {issue.value} (time: {self.deadline})",
                field="deadline",
                reason=issue,
            )

    def validate_estimated_time(self) -> None:
        issue = None
        if self.estimated_time >= config.MAX_MINUTES:
            issue = EstimatedTimeIssue.TOO_LONG
        elif self.estimated_time <= 0:
            issue = EstimatedTimeIssue.ZERO

        if issue is not None:
            raise ValidationError(
                ENTITY,
                f"Estimated time validation error: {issue.value} (time: {self.estimated_time})",
                field="estimated_time",
                reason=issue,
            )

    def validate_timing(self) -> None:
        for slot in self.time_slots:
            if slot.end_time <= slot.start_time:
                raise _timing_error(TimingIssue.END_BEFORE_START, slot.end_time)

        for i, first in enumerate(self.time_slots):
            for second in self.time_slots[i + 1:]:
                if first.overlaps(second):
                    raise _timing_error(TimingIssue.OVERLAPPING_SLOTS, second.start_time)

    def validate_subtasks(self) -> None:
        seen = set()
        for subtask_id in self.subtask_ids:
            if subtask_id in seen:
                raise _subtask_error(SubtaskIssue.DUPLICATE_ID, len(self.subtask_ids))
            seen.add(subtask_id)

        if self.id in seen or (self.parent_task_id is not None and self.parent_task_id in seen):
            raise _subtask_error(SubtaskIssue.CIRCULAR_DEPENDENCY, len(self.subtask_ids))

    def validate_state_for_action(self, action: TaskAction) -> None:
        if self.state == TaskState.COMPLETED and action == TaskAction.UPDATE:
            raise StateError(
                ENTITY,
                self.state.value,
                action.value,
                "Invalid action for current state",
            )

    def dynamic_storage_size(self) -> int:
        return (
            byte_len(self.id)
            + byte_len(self.title)
            + byte_len(self.description)
            + byte_len(self.owner_id)
            + (byte_len(self.parent_task_id) if self.parent_task_id else 0)
            + total_byte_len(self.subtask_ids)
        )

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    def can_transition_to(self, new_state: TaskState, now: int) -> bool:
        if new_state == TaskState.COMPLETED and self.is_subtask:
            return True

        current = self.state
        if (current, new_state) in (
            (TaskState.CREATED, TaskState.IN_PROGRESS),
            (TaskState.IN_PROGRESS, TaskState.COMPLETED),
            (TaskState.OVERDUE, TaskState.COMPLETED),
        ):
            return True
        if current in (TaskState.CREATED, TaskState.IN_PROGRESS) and new_state == TaskState.OVERDUE:
            return now > self.deadline
        return False

    def transition_to(self, new_state: TaskState, now: int) -> None:
        if not self.can_transition_to(new_state, now):
            raise StateError(
                ENTITY,
                self.state.value,
                f"transition to {new_state.value}",
                "Invalid state transition",
            )
        self.state = new_state

    # ------------------------------------------------------------------
    # Scheduling helpers
    # ------------------------------------------------------------------
    def add_subtask(self, subtask_id: str) -> None:
        if subtask_id in self.subtask_ids:
            raise _subtask_error(SubtaskIssue.DUPLICATE_ID, len(self.subtask_ids))
        self.subtask_ids.append(subtask_id)

    def remove_subtask(self, subtask_id: str) -> None:
        if subtask_id in self.subtask_ids:
            self.subtask_ids.remove(subtask_id)

    def schedule_from(self, start_time: int) -> TaskTimeSlot:
        """Append a slot of estimated_time minutes starting at start_time."""
        slot = TaskTimeSlot(
            start_time=start_time,
            end_time=start_time + self.estimated_time * NANOS_PER_MINUTE,
        )
        self.time_slots.append(slot)
        return slot

    def split_at(self, split_times: List[int]) -> None:
        """Replace the slots with contiguous pieces between sorted split points."""
        ordered = sorted(split_times)
        self.time_slots = [
            TaskTimeSlot(start_time=start, end_time=end)
            for start, end in zip(ordered, ordered[1:])
        ]
