"""
TaskForge error definitions.

Every expected failure of a public operation is one of a closed set of
exceptions, each a direct subclass of TaskforgeError and tagged with an
ErrorKind:
- ValidationError: malformed or out-of-range input
- StorageError: quota rejection (size or balance)
- AccessError: caller is not the owner
- StateError: illegal state transition or action
- NotFoundError: referenced entity is missing
- OperationError: conflicts and ledger under/overflow
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    STORAGE = "storage"
    ACCESS = "access"
    STATE = "state"
    NOT_FOUND = "not_found"
    OPERATION = "operation"


class TaskforgeError(Exception):
    """Base class for all known engine errors.

    Catching it handles every expected failure of a public operation.
    """

    kind: ErrorKind = ErrorKind.OPERATION

    def __init__(self, message: str, hint: Optional[str] = None):
        """
        Args:
            message: error description
            hint: suggestion for the caller
        """
        super().__init__(message)
        self.message = message
        self.hint = hint

    def get_user_message(self) -> str:
        """Return a caller-friendly message."""
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message

    def details(self) -> Dict[str, Any]:
        return {}

    def to_payload(self) -> Dict[str, Any]:
        """Tagged representation for a call boundary."""
        payload = {"kind": self.kind.value, "message": self.message}
        payload.update(self.details())
        return payload


class ValidationError(TaskforgeError):
    """Input failed a structural or semantic check."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        entity: str,
        message: str,
        detail: Optional[str] = None,
        field: Optional[str] = None,
        reason: Optional[Enum] = None,
    ):
        text = f"{entity} validation error: {message}"
        if detail:
            text = f"{text} ({detail})"
        super().__init__(text)
        self.entity = entity
        self.reason_message = message
        self.detail = detail
        self.field = field
        self.reason = reason

    def details(self) -> Dict[str, Any]:
        return {
            "entity": self.entity,
            "field": self.field,
            "reason": self.reason.value if self.reason is not None else None,
            "detail": self.detail,
        }


class StorageErrorKind(str, Enum):
    INSUFFICIENT_BALANCE = "insufficient_balance"
    EXCEEDS_MAX_SIZE = "exceeds_max_size"


class StorageError(TaskforgeError):
    """Entity rejected by the storage quota.

    Build it with insufficient_balance() or exceeds_max_size().
    """

    kind = ErrorKind.STORAGE

    def __init__(
        self,
        storage_kind: StorageErrorKind,
        message: str,
        *,
        required: Optional[int] = None,
        available: Optional[int] = None,
        size: Optional[int] = None,
        max_allowed: Optional[int] = None,
    ):
        super().__init__(f"Storage error: {message}")
        self.storage_kind = storage_kind
        self.required = required
        self.available = available
        self.size = size
        self.max_allowed = max_allowed

    @classmethod
    def insufficient_balance(cls, required: int, available: int) -> "StorageError":
        error = cls(
            StorageErrorKind.INSUFFICIENT_BALANCE,
            f"Insufficient balance: required {required}, available {available}",
            required=required,
            available=available,
        )
        error.hint = "Top up the account balance or shorten the entity"
        return error

    @classmethod
    def exceeds_max_size(cls, size: int, max_allowed: int) -> "StorageError":
        return cls(
            StorageErrorKind.EXCEEDS_MAX_SIZE,
            f"Exceeds max size: size {size}, max allowed {max_allowed}",
            size=size,
            max_allowed=max_allowed,
        )

    def details(self) -> Dict[str, Any]:
        if self.storage_kind == StorageErrorKind.INSUFFICIENT_BALANCE:
            return {
                "storage_kind": self.storage_kind.value,
                "required": self.required,
                "available": self.available,
            }
        return {
            "storage_kind": self.storage_kind.value,
            "size": self.size,
            "max_allowed": self.max_allowed,
        }


class AccessReason(str, Enum):
    NOT_OWNER = "not_owner"


class AccessError(TaskforgeError):
    """Caller is not allowed to touch the entity."""

    kind = ErrorKind.ACCESS

    def __init__(self, reason: AccessReason = AccessReason.NOT_OWNER):
        super().__init__("Access error: Operation can only be performed by the owner")
        self.reason = reason

    def details(self) -> Dict[str, Any]:
        return {"reason": self.reason.value}


class StateError(TaskforgeError):
    """Operation is not legal in the entity's current state."""

    kind = ErrorKind.STATE

    def __init__(self, entity: str, current_state: str, attempted_action: str, message: str):
        super().__init__(
            f"{entity} state error: {message} "
            f"(current state: {current_state}, attempted: {attempted_action})"
        )
        self.entity = entity
        self.current_state = current_state
        self.attempted_action = attempted_action
        self.reason_message = message

    def details(self) -> Dict[str, Any]:
        return {
            "entity": self.entity,
            "current_state": self.current_state,
            "attempted_action": self.attempted_action,
        }


class NotFoundError(TaskforgeError):
    """A referenced entity does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id

    def details(self) -> Dict[str, Any]:
        return {"entity": self.entity, "id": self.entity_id}


class OperationError(TaskforgeError):
    """Catch-all for conflicts and ledger arithmetic failures."""

    kind = ErrorKind.OPERATION

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(f"Operation error: {message}", hint)
        self.reason_message = message
