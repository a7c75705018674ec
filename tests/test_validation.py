import pytest

from conftest import NOW, TOMORROW, FakeBalance
from taskforge.config_manager import NANOS_PER_DAY, config
from taskforge.exceptions import ErrorKind, StorageError, StorageErrorKind, ValidationError
from taskforge.models.recurrence import DayOfWeek, Frequency, RecurrenceIssue, RecurrencePattern
from taskforge.models.reward import CostIssue, Reward
from taskforge.models.task import (
    DeadlineIssue,
    EstimatedTimeIssue,
    Priority,
    SubtaskIssue,
    Task,
    TaskTimeSlot,
    TimingIssue,
    calculate_reward_points,
)
from taskforge.validation import (
    DescriptionIssue,
    TitleIssue,
    ValidationContext,
    check_description,
    check_title,
)


def _ctx(balance=None) -> ValidationContext:
    return ValidationContext(now=NOW, balance=balance or FakeBalance())


def _task(**overrides) -> Task:
    fields = dict(
        id="task_000000000001",
        title="Write report",
        description="Quarterly numbers",
        priority=Priority.MEDIUM,
        deadline=TOMORROW,
        estimated_time=45,
        owner_id="alice",
    )
    fields.update(overrides)
    return Task(**fields)


def test_reward_points_examples():
    assert calculate_reward_points(29, Priority.LOW) == 0
    assert calculate_reward_points(30, Priority.LOW) == 1
    assert calculate_reward_points(45, Priority.MEDIUM) == 4
    assert calculate_reward_points(15, Priority.CRITICAL) == 4
    assert calculate_reward_points(74, Priority.HIGH) == 6


def test_title_rules_in_order():
    with pytest.raises(ValidationError) as exc:
        check_title("Task", "   ")
    assert exc.value.reason == TitleIssue.EMPTY

    with pytest.raises(ValidationError) as exc:
        check_title("Task", "x" * (config.MAX_TITLE_LENGTH + 1))
    assert exc.value.reason == TitleIssue.TOO_LONG

    with pytest.raises(ValidationError) as exc:
        check_title("Task", "bell\x07")
    assert exc.value.reason == TitleIssue.INVALID_CHARACTERS
    assert exc.value.field == "title"


def test_title_allows_tab_and_newlines_and_is_trimmed():
    assert check_title("Task", "  a\tb\r\nc  ") == "a\tb\r\nc"
    assert check_title("Task", "x" * config.MAX_TITLE_LENGTH) == "x" * config.MAX_TITLE_LENGTH


def test_description_rules():
    assert check_description("Reward", "") == ""
    assert check_description("Reward", " spaced ") == "spaced"

    with pytest.raises(ValidationError) as exc:
        check_description("Reward", "d" * (config.MAX_DESCRIPTION_LENGTH + 1))
    assert exc.value.reason == DescriptionIssue.TOO_LONG

    with pytest.raises(ValidationError) as exc:
        check_description("Reward", "del\x7f")
    assert exc.value.reason == DescriptionIssue.INVALID_CHARACTERS


def test_validation_error_message_names_entity():
    with pytest.raises(ValidationError) as exc:
        check_title("Reward", "")
    assert str(exc.value).startswith("Reward validation error: Title validation error: Empty")
    assert exc.value.kind == ErrorKind.VALIDATION


def test_task_validate_is_idempotent():
    task = _task(title="  Write report  ", description=" notes ")
    task.validate(_ctx())
    snapshot = (task.title, task.description, task.reward_points, list(task.time_slots))

    task.validate(_ctx())

    assert (task.title, task.description, task.reward_points, list(task.time_slots)) == snapshot
    assert task.title == "Write report"


def test_deadline_bounds():
    with pytest.raises(ValidationError) as exc:
        _task(deadline=NOW).validate(_ctx())
    assert exc.value.reason == DeadlineIssue.PAST_DEADLINE

    with pytest.raises(ValidationError) as exc:
        _task(deadline=NOW + config.MAX_FUTURE_DAYS * NANOS_PER_DAY).validate(_ctx())
    assert exc.value.reason == DeadlineIssue.TOO_FAR_IN_FUTURE

    _task(deadline=NOW + config.MAX_FUTURE_DAYS * NANOS_PER_DAY - 1).validate(_ctx())

    slot = TaskTimeSlot(start_time=NOW + 10, end_time=TOMORROW)
    with pytest.raises(ValidationError) as exc:
        _task(time_slots=[slot]).validate(_ctx())
    assert exc.value.reason == DeadlineIssue.BEFORE_END_TIME


def test_estimated_time_bounds():
    with pytest.raises(ValidationError) as exc:
        _task(estimated_time=0).validate(_ctx())
    assert exc.value.reason == EstimatedTimeIssue.ZERO

    with pytest.raises(ValidationError) as exc:
        _task(estimated_time=config.MAX_MINUTES).validate(_ctx())
    assert exc.value.reason == EstimatedTimeIssue.TOO_LONG

    _task(estimated_time=config.MAX_MINUTES - 1).validate(_ctx())


def test_timing_rules():
    backwards = TaskTimeSlot(start_time=NOW + 200, end_time=NOW + 100)
    with pytest.raises(ValidationError) as exc:
        _task(time_slots=[backwards]).validate(_ctx())
    assert exc.value.reason == TimingIssue.END_BEFORE_START

    first = TaskTimeSlot(start_time=NOW + 100, end_time=NOW + 300)
    second = TaskTimeSlot(start_time=NOW + 200, end_time=NOW + 400)
    with pytest.raises(ValidationError) as exc:
        _task(time_slots=[first, second]).validate(_ctx())
    assert exc.value.reason == TimingIssue.OVERLAPPING_SLOTS

    touching = TaskTimeSlot(start_time=NOW + 300, end_time=NOW + 400)
    _task(time_slots=[first, touching]).validate(_ctx())


def test_subtask_rules():
    with pytest.raises(ValidationError) as exc:
        _task(subtask_ids=["task_a", "task_a"]).validate(_ctx())
    assert exc.value.reason == SubtaskIssue.DUPLICATE_ID

    with pytest.raises(ValidationError) as exc:
        _task(subtask_ids=["task_000000000001"]).validate(_ctx())
    assert exc.value.reason == SubtaskIssue.CIRCULAR_DEPENDENCY

    with pytest.raises(ValidationError) as exc:
        _task(parent_task_id="task_parent", subtask_ids=["task_parent"]).validate(_ctx())
    assert exc.value.reason == SubtaskIssue.CIRCULAR_DEPENDENCY


def test_validation_order_title_before_deadline():
    with pytest.raises(ValidationError) as exc:
        _task(title="", deadline=NOW, estimated_time=0).validate(_ctx())
    assert exc.value.reason == TitleIssue.EMPTY


def test_storage_metrics_for_reward():
    reward = Reward(id="reward_1", title="Coffee", description="", cost=5, owner_id="alice")

    metrics = reward.storage_metrics(cost_per_byte=2)

    assert metrics.base_size == config.REWARD_BASE_STORAGE
    assert metrics.dynamic_size == len("reward_1") + len("Coffee") + len("alice")
    assert metrics.total_bytes == metrics.base_size + metrics.dynamic_size
    assert metrics.total_cost == metrics.total_bytes * 2


def test_storage_counts_utf8_bytes():
    reward = Reward(id="r", title="café", description="", cost=1, owner_id="a")
    assert reward.dynamic_storage_size() == 1 + 5 + 1


def test_storage_rejects_oversized_task():
    subtasks = [f"task_{i:012x}" for i in range(250)]
    task = _task(subtask_ids=subtasks)

    with pytest.raises(StorageError) as exc:
        task.validate(_ctx())

    assert exc.value.storage_kind == StorageErrorKind.EXCEEDS_MAX_SIZE
    assert exc.value.max_allowed == config.TASK_MAX_STORAGE
    assert exc.value.size > config.TASK_MAX_STORAGE


def test_storage_rejects_insufficient_balance():
    with pytest.raises(StorageError) as exc:
        Reward.create(
            _ctx(FakeBalance(available=0, cost_per_byte=1)),
            title="Movie night",
            description="",
            cost=10,
            owner_id="alice",
        )

    error = exc.value
    assert error.storage_kind == StorageErrorKind.INSUFFICIENT_BALANCE
    assert error.available == 0
    assert error.required > 0
    assert error.to_payload()["kind"] == "storage"
    assert "Hint:" in error.get_user_message()


def test_reward_cost_bounds():
    ctx = _ctx()
    Reward.create(ctx, title="Free", description="", cost=0, owner_id="alice")

    for cost in (-1, config.POINTS_CEILING):
        with pytest.raises(ValidationError) as exc:
            Reward.create(ctx, title="Bad", description="", cost=cost, owner_id="alice")
        assert exc.value.reason == CostIssue.INVALID


def test_recurrence_constructors():
    pattern = RecurrencePattern.custom(
        [DayOfWeek.FRIDAY, DayOfWeek.MONDAY, DayOfWeek.FRIDAY]
    )
    assert pattern.frequency == Frequency.CUSTOM
    assert pattern.specific_days == [DayOfWeek.MONDAY, DayOfWeek.FRIDAY]
    assert pattern.is_valid()

    assert RecurrencePattern.daily().interval == 1

    with pytest.raises(ValueError):
        RecurrencePattern.custom([])


def test_recurrence_validation_reasons():
    empty = RecurrencePattern(frequency=Frequency.CUSTOM, specific_days=[])
    with pytest.raises(ValidationError) as exc:
        empty.validate("Habit")
    assert exc.value.reason == RecurrenceIssue.EMPTY_DAYS

    unsorted = RecurrencePattern(
        frequency=Frequency.CUSTOM,
        specific_days=[DayOfWeek.FRIDAY, DayOfWeek.MONDAY],
    )
    zero_interval = RecurrencePattern.daily(0)
    mixed = RecurrencePattern(frequency=Frequency.DAILY, interval=1, specific_days=[DayOfWeek.MONDAY])

    for pattern in (unsorted, zero_interval, mixed):
        with pytest.raises(ValidationError) as exc:
            pattern.validate("Habit")
        assert exc.value.reason == RecurrenceIssue.INVALID_PATTERN
