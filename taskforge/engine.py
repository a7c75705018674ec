"""
TaskForge engine: the public operations over tasks, habits, rewards and
calendar time slots.

Every operation reads the caller and the current time from the
EngineContext, checks ownership, runs the entity's validation pipeline on a
working copy and only then writes to the stores. A failing operation leaves
the stores untouched.
"""
import functools
from typing import List, Optional

from taskforge.exceptions import OperationError, TaskforgeError, ValidationError
from taskforge.habit_engine import apply_completion
from taskforge.ledger import RewardLedger
from taskforge.logger import get_logger
from taskforge.models.habit import Habit
from taskforge.models.recurrence import RecurrencePattern
from taskforge.models.reward import Reward, RewardAction, RewardState
from taskforge.models.task import Priority, Task, TaskAction, TaskState, TaskTimeSlot
from taskforge.models.time_slot import SlotType, TimeSlot, check_minute_range
from taskforge.providers import EngineContext
from taskforge.store import InMemoryKeyValueStore, KeyValueStore, OwnedCollection
from taskforge.validation import ValidationContext

logger = get_logger("engine")


def _logged(func):
    """Log rejected operations before re-raising."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except TaskforgeError as e:
            logger.warning(f"{func.__name__} rejected: {e.message}")
            raise

    return wrapper


class TaskforgeEngine:
    """Application service over the owner-indexed collections and the ledger."""

    def __init__(
        self,
        context: EngineContext,
        tasks: Optional[OwnedCollection[Task]] = None,
        habits: Optional[OwnedCollection[Habit]] = None,
        rewards: Optional[OwnedCollection[Reward]] = None,
        time_slots: Optional[OwnedCollection[TimeSlot]] = None,
        ledger: Optional[RewardLedger] = None,
        completions: Optional[KeyValueStore[List[int]]] = None,
    ):
        self.context = context
        self.tasks = tasks or OwnedCollection("Task")
        self.habits = habits or OwnedCollection("Habit")
        self.rewards = rewards or OwnedCollection("Reward")
        self.time_slots = time_slots or OwnedCollection("TimeSlot")
        self.ledger = ledger or RewardLedger()
        self._completions: KeyValueStore[List[int]] = (
            completions if completions is not None else InMemoryKeyValueStore()
        )

    # ---------------------------------------------------------------------
    # Context helpers
    # ---------------------------------------------------------------------
    def _caller(self) -> str:
        return self.context.identity.caller_id()

    def _now(self) -> int:
        return self.context.clock.now()

    def _validation_context(self, now: int) -> ValidationContext:
        return ValidationContext(now=now, balance=self.context.balance)

    def _owned_task(self, task_id: str, caller: str) -> Task:
        task = self.tasks.require(task_id)
        task.ensure_owner(caller)
        return task

    def _owned_reward(self, reward_id: str, caller: str) -> Reward:
        reward = self.rewards.require(reward_id)
        reward.ensure_owner(caller)
        return reward

    def _owned_slot(self, slot_id: str, caller: str) -> TimeSlot:
        slot = self.time_slots.require(slot_id)
        slot.ensure_owner(caller)
        return slot

    def _owned_habit(self, habit_id: str, caller: str) -> Habit:
        habit = self.habits.require(habit_id)
        habit.ensure_owner(caller)
        return habit

    def _habit_for_task(self, task: Task) -> Optional[Habit]:
        return self.habits.find_for(task.owner_id, lambda h: h.task_id == task.id)

    def _drop_task_records(self, task: Task) -> None:
        """Remove a task with its habits and completion history."""
        for habit in self.habits.list_for(task.owner_id, lambda h: h.task_id == task.id):
            self.habits.remove(habit)
        self._completions.remove(task.id)
        self.tasks.remove(task)

    # ---------------------------------------------------------------------
    # Tasks
    # ---------------------------------------------------------------------
    @_logged
    def add_task(
        self,
        title: str,
        description: str,
        priority: Priority,
        deadline: int,
        estimated_time: int,
        time_slots: Optional[List[TaskTimeSlot]] = None,
        parent_task_id: Optional[str] = None,
        recurrence: Optional[RecurrencePattern] = None,
    ) -> str:
        """
        Create a task owned by the caller.

        With parent_task_id the task becomes a subtask of that (caller-owned)
        task; with recurrence a Habit is created and linked to it.
        """
        caller = self._caller()
        now = self._now()
        ctx = self._validation_context(now)

        parent = None
        if parent_task_id is not None:
            parent = self.tasks.require(parent_task_id, "Parent Task")
            parent.ensure_owner(caller)

        task = Task.create(
            ctx,
            title=title,
            description=description,
            priority=priority,
            deadline=deadline,
            estimated_time=estimated_time,
            owner_id=caller,
            time_slots=time_slots,
            parent_task_id=parent_task_id,
        )

        habit = None
        if recurrence is not None:
            habit = Habit.create(ctx, task_id=task.id, recurrence=recurrence, owner_id=caller)

        if parent is not None:
            parent.add_subtask(task.id)
            parent.validate_subtasks()
            parent.validate_storage(ctx.balance)

        self.tasks.insert(task)
        if habit is not None:
            self.habits.insert(habit)
        if parent is not None:
            self.tasks.replace(parent)

        logger.info(
            f"Task added id={task.id} owner={caller} points={task.reward_points} "
            f"parent={parent_task_id} habit={habit.id if habit else None}"
        )
        return task.id

    @_logged
    def update_task(
        self,
        task_id: str,
        title: str,
        description: str,
        priority: Priority,
        deadline: int,
        estimated_time: int,
        time_slots: Optional[List[TaskTimeSlot]] = None,
    ) -> str:
        """Overwrite a task's editable fields; time_slots=None keeps the current slots."""
        caller = self._caller()
        now = self._now()
        task = self._owned_task(task_id, caller)
        task.validate_state_for_action(TaskAction.UPDATE)

        task.title = title
        task.description = description
        task.priority = priority
        task.deadline = deadline
        task.estimated_time = estimated_time
        if time_slots is not None:
            task.time_slots = list(time_slots)
        task.recompute_reward_points()

        task.validate(self._validation_context(now))

        self.tasks.replace(task)
        logger.info(f"Task updated id={task_id} points={task.reward_points}")
        return task_id

    @_logged
    def start_task(self, task_id: str, start_time: int) -> str:
        """Schedule the task from start_time for its estimated duration and start it."""
        caller = self._caller()
        now = self._now()
        task = self._owned_task(task_id, caller)

        task.schedule_from(start_time)
        task.validate(self._validation_context(now))
        task.transition_to(TaskState.IN_PROGRESS, now)

        self.tasks.replace(task)
        logger.info(f"Task started id={task_id} start={start_time}")
        return task_id

    @_logged
    def split_task(self, task_id: str, split_times: List[int]) -> str:
        """Reschedule the task as contiguous pieces between the split points."""
        if len(split_times) < 2:
            raise ValidationError(
                "Task",
                "Need at least two split points to split a task",
                field="split_times",
            )

        caller = self._caller()
        now = self._now()
        task = self._owned_task(task_id, caller)

        task.split_at(split_times)
        task.validate(self._validation_context(now))

        if task.state == TaskState.CREATED:
            task.transition_to(TaskState.IN_PROGRESS, now)

        self.tasks.replace(task)
        logger.info(f"Task split id={task_id} pieces={len(task.time_slots)}")
        return task_id

    @_logged
    def complete_task(self, task_id: str) -> str:
        """
        Complete a task and pay out its points.

        Direct subtasks are force-completed and credited first. A task linked
        to a habit updates the streak and comes back as Created with the next
        deadline. Every step is checked before anything is written.
        """
        caller = self._caller()
        now = self._now()
        task = self._owned_task(task_id, caller)

        completed_subtasks: List[Task] = []
        credits = []
        for subtask_id in task.subtask_ids:
            subtask = self.tasks.require(subtask_id, "Subtask")
            subtask.transition_to(TaskState.COMPLETED, now)
            completed_subtasks.append(subtask)
            credits.append((subtask.owner_id, subtask.reward_points))

        task.transition_to(TaskState.COMPLETED, now)
        task.time_slots.clear()

        history = self._completions.get(task_id) or []
        history.append(now)

        habit = self._habit_for_task(task)
        if habit is not None:
            task.deadline = apply_completion(habit, now)
            task.state = TaskState.CREATED
            task.time_slots.clear()
            habit.rebind(task.id)

        credits.append((task.owner_id, task.reward_points))
        self.ledger.check_credits(credits)

        for subtask in completed_subtasks:
            self.tasks.replace(subtask)
            self.ledger.add_points(subtask.owner_id, subtask.reward_points)
        self._completions.insert(task_id, history)
        if habit is not None:
            self.habits.replace(habit)
        self.ledger.add_points(task.owner_id, task.reward_points)
        self.tasks.replace(task)

        logger.info(
            f"Task completed id={task_id} subtasks={len(completed_subtasks)} "
            f"points={task.reward_points} recurring={habit is not None}"
        )
        return task_id

    @_logged
    def mark_task_overdue(self, task_id: str) -> str:
        caller = self._caller()
        now = self._now()
        task = self._owned_task(task_id, caller)

        if now <= task.deadline:
            raise ValidationError("Task", "Cannot mark as overdue before deadline", field="deadline")

        task.transition_to(TaskState.OVERDUE, now)
        task.time_slots.clear()

        self.tasks.replace(task)
        logger.info(f"Task marked overdue id={task_id}")
        return task_id

    @_logged
    def delete_task(self, task_id: str) -> str:
        """
        Delete a task and its direct subtasks.

        Subtasks go with the parent's authorization, without their own
        ownership check. The task is also detached from its own parent.
        """
        caller = self._caller()
        task = self._owned_task(task_id, caller)

        for subtask_id in task.subtask_ids:
            subtask = self.tasks.get(subtask_id)
            if subtask is not None:
                self._drop_task_records(subtask)

        if task.parent_task_id is not None:
            parent = self.tasks.get(task.parent_task_id)
            if parent is not None:
                parent.remove_subtask(task.id)
                self.tasks.replace(parent)

        self._drop_task_records(task)
        logger.info(f"Task deleted id={task_id} subtasks={len(task.subtask_ids)}")
        return task_id

    def get_task(self, task_id: str) -> Task:
        return self.tasks.require(task_id)

    def get_tasks_by_owner(self, owner_id: str) -> List[Task]:
        return self.tasks.list_for(owner_id)

    def get_incomplete_tasks(self, owner_id: str) -> List[Task]:
        return self.tasks.list_for(owner_id, lambda t: t.state != TaskState.COMPLETED)

    def get_completed_tasks(self, owner_id: str) -> List[Task]:
        return self.tasks.list_for(owner_id, lambda t: t.state == TaskState.COMPLETED)

    def get_task_completion_history(self, task_id: str) -> List[int]:
        self._owned_task(task_id, self._caller())
        return self._completions.get(task_id) or []

    # ---------------------------------------------------------------------
    # Habits
    # ---------------------------------------------------------------------
    def get_habits_by_owner(self, owner_id: str) -> List[Habit]:
        return self.habits.list_for(owner_id)

    def get_habit_streak(self, habit_id: str) -> int:
        return self._owned_habit(habit_id, self._caller()).streak

    def get_habit_task(self, habit_id: str) -> Task:
        """Follow a habit's link to its current task."""
        habit = self._owned_habit(habit_id, self._caller())
        return self.tasks.require(habit.task_id)

    # ---------------------------------------------------------------------
    # Rewards and points
    # ---------------------------------------------------------------------
    def get_reward_points(self, owner_id: str) -> int:
        return self.ledger.balance(owner_id)

    @_logged
    def add_reward(self, title: str, description: str, cost: int) -> str:
        caller = self._caller()
        reward = Reward.create(
            self._validation_context(self._now()),
            title=title,
            description=description,
            cost=cost,
            owner_id=caller,
        )
        self.rewards.insert(reward)
        logger.info(f"Reward added id={reward.id} owner={caller} cost={cost}")
        return reward.id

    @_logged
    def update_reward(self, reward_id: str, title: str, description: str, cost: int) -> str:
        caller = self._caller()
        reward = self._owned_reward(reward_id, caller)
        reward.validate_state_for_action(RewardAction.UPDATE)

        reward.title = title
        reward.description = description
        reward.cost = cost
        reward.validate(self._validation_context(self._now()))

        self.rewards.replace(reward)
        logger.info(f"Reward updated id={reward_id} cost={cost}")
        return reward_id

    @_logged
    def delete_reward(self, reward_id: str) -> str:
        reward = self._owned_reward(reward_id, self._caller())
        self.rewards.remove(reward)
        logger.info(f"Reward deleted id={reward_id}")
        return reward_id

    @_logged
    def redeem_reward(self, reward_id: str) -> str:
        """Spend the reward's cost from the owner's points and mark it Completed."""
        caller = self._caller()
        reward = self._owned_reward(reward_id, caller)
        reward.validate_state_for_action(RewardAction.COMPLETE)

        available = self.ledger.balance(reward.owner_id)
        if not reward.is_affordable(available):
            raise OperationError(
                f"Insufficient points for redemption: available {available}, required {reward.cost}"
            )

        reward.transition_to(RewardState.COMPLETED)
        self.ledger.add_points(reward.owner_id, -reward.cost)
        self.rewards.replace(reward)

        logger.info(f"Reward redeemed id={reward_id} cost={reward.cost}")
        return reward_id

    def get_rewards_by_owner(self, owner_id: str) -> List[Reward]:
        return self.rewards.list_for(owner_id, lambda r: r.state == RewardState.ACTIVE)

    def get_retrieved_rewards(self, owner_id: str) -> List[Reward]:
        return self.rewards.list_for(owner_id, lambda r: r.state == RewardState.COMPLETED)

    # ---------------------------------------------------------------------
    # Calendar time slots
    # ---------------------------------------------------------------------
    def _ensure_no_overlap(self, candidate: TimeSlot) -> None:
        neighbours = self.get_time_slots_by_timeframe(
            candidate.owner_id,
            candidate.start_minutes,
            candidate.end_minutes,
            candidate.slot_type,
        )
        for existing in neighbours:
            if existing.id != candidate.id and existing.overlaps_with(candidate):
                raise OperationError(f"Time slot overlaps with existing slot {existing.id}")

    @_logged
    def add_time_slot(
        self,
        start_minutes: int,
        end_minutes: int,
        slot_type: SlotType,
        recurrence: RecurrencePattern,
    ) -> str:
        caller = self._caller()
        slot = TimeSlot.create(
            self._validation_context(self._now()),
            start_minutes=start_minutes,
            end_minutes=end_minutes,
            slot_type=slot_type,
            recurrence=recurrence,
            owner_id=caller,
        )
        self._ensure_no_overlap(slot)

        self.time_slots.insert(slot)
        logger.info(
            f"Time slot added id={slot.id} owner={caller} "
            f"{start_minutes}-{end_minutes} type={slot_type.value}"
        )
        return slot.id

    @_logged
    def update_time_slot(
        self,
        slot_id: str,
        start_minutes: int,
        end_minutes: int,
        recurrence: RecurrencePattern,
    ) -> str:
        caller = self._caller()
        slot = self._owned_slot(slot_id, caller)

        slot.reschedule(start_minutes, end_minutes, recurrence)
        slot.validate(self._validation_context(self._now()))
        self._ensure_no_overlap(slot)

        self.time_slots.replace(slot)
        logger.info(f"Time slot updated id={slot_id} {start_minutes}-{end_minutes}")
        return slot_id

    @_logged
    def delete_time_slot(self, slot_id: str) -> str:
        slot = self._owned_slot(slot_id, self._caller())
        self.time_slots.remove(slot)
        logger.info(f"Time slot deleted id={slot_id}")
        return slot_id

    def get_time_slots_by_owner(self, owner_id: str) -> List[TimeSlot]:
        return self.time_slots.list_for(owner_id)

    def get_time_slots_by_timeframe(
        self,
        owner_id: str,
        start_minutes: int,
        end_minutes: int,
        slot_type: Optional[SlotType] = None,
    ) -> List[TimeSlot]:
        """
        Owner's slots sharing any minute with the range, which may wrap midnight.

        The range must lie inside the day with start != end.
        """
        check_minute_range(start_minutes, end_minutes)
        return self.time_slots.list_for(
            owner_id,
            lambda s: s.intersects_range(start_minutes, end_minutes)
            and (slot_type is None or s.slot_type == slot_type),
        )
