"""
Shared validation rules.

Text checks used by tasks and rewards, storage metrics and the quota check
that runs as the last stage of every entity's validate(), and the ownership
guard.
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable

from taskforge.config_manager import config
from taskforge.exceptions import AccessError, StorageError, ValidationError
from taskforge.providers import BalanceOracle


class TitleIssue(Enum):
    EMPTY = "Empty"
    TOO_LONG = "TooLong"
    INVALID_CHARACTERS = "InvalidCharacters"


class DescriptionIssue(Enum):
    TOO_LONG = "TooLong"
    INVALID_CHARACTERS = "InvalidCharacters"


@dataclass
class ValidationContext:
    """Per-call inputs a validation pipeline needs besides the entity."""
    now: int
    balance: BalanceOracle


@dataclass
class StorageMetrics:
    base_size: int
    dynamic_size: int
    total_bytes: int
    cost_per_byte: int
    total_cost: int


def is_forbidden_char(ch: str) -> bool:
    """Control characters other than tab, LF and CR."""
    code = ord(ch)
    return (
        code <= 0x08
        or 0x0B <= code <= 0x0C
        or 0x0E <= code <= 0x1F
        or code == 0x7F
    )


def has_forbidden_chars(text: str) -> bool:
    return any(is_forbidden_char(ch) for ch in text)


def check_title(entity: str, title: str) -> str:
    """Validate a title and return it trimmed."""
    if not title or not title.strip():
        raise ValidationError(
            entity,
            f"Title validation error: {TitleIssue.EMPTY.value} (length: 0)",
            field="title",
            reason=TitleIssue.EMPTY,
        )
    if len(title) > config.MAX_TITLE_LENGTH:
        raise ValidationError(
            entity,
            f"Title validation error: {TitleIssue.TOO_LONG.value} (length: {len(title)})",
            field="title",
            reason=TitleIssue.TOO_LONG,
        )
    if has_forbidden_chars(title):
        raise ValidationError(
            entity,
            f"Title validation error: {TitleIssue.INVALID_CHARACTERS.value} (length: {len(title)})",
            field="title",
            reason=TitleIssue.INVALID_CHARACTERS,
        )
    return title.strip()


def check_description(entity: str, description: str) -> str:
    """Validate a description and return it trimmed. Empty is fine."""
    if len(description) > config.MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            entity,
            f"Description validation error: {DescriptionIssue.TOO_LONG.value} "
            f"(length: {len(description)})",
            field="description",
            reason=DescriptionIssue.TOO_LONG,
        )
    if has_forbidden_chars(description):
        raise ValidationError(
            entity,
            f"Description validation error: {DescriptionIssue.INVALID_CHARACTERS.value} "
            f"(length: {len(description)})",
            field="description",
            reason=DescriptionIssue.INVALID_CHARACTERS,
        )
    return description.strip()


def byte_len(value: str) -> int:
    return len(value.encode("utf-8"))


def total_byte_len(values: Iterable[str]) -> int:
    return sum(byte_len(v) for v in values)


class Storable:
    """
    Mixin for entities subject to the storage quota.

    Subclasses set BASE_STORAGE / MAX_STORAGE and implement
    dynamic_storage_size().
    """

    BASE_STORAGE: ClassVar[int] = 0
    MAX_STORAGE: ClassVar[int] = 0

    def dynamic_storage_size(self) -> int:
        raise NotImplementedError

    def storage_metrics(self, cost_per_byte: int) -> StorageMetrics:
        dynamic_size = self.dynamic_storage_size()
        total_bytes = self.BASE_STORAGE + dynamic_size
        return StorageMetrics(
            base_size=self.BASE_STORAGE,
            dynamic_size=dynamic_size,
            total_bytes=total_bytes,
            cost_per_byte=cost_per_byte,
            total_cost=cost_per_byte * total_bytes,
        )

    def validate_storage(self, balance: BalanceOracle) -> StorageMetrics:
        metrics = self.storage_metrics(balance.cost_per_byte())

        if metrics.total_bytes > self.MAX_STORAGE:
            raise StorageError.exceeds_max_size(metrics.total_bytes, self.MAX_STORAGE)

        available = balance.available_balance()
        if available < metrics.total_cost:
            raise StorageError.insufficient_balance(metrics.total_cost, available)

        return metrics


class Ownable:
    """Mixin for entities with an exclusive writer."""

    owner_id: str

    def is_owned_by(self, caller_id: str) -> bool:
        return self.owner_id == caller_id

    def ensure_owner(self, caller_id: str) -> None:
        if not self.is_owned_by(caller_id):
            raise AccessError()
