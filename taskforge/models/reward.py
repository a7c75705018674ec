"""
Reward entity: something an owner buys with earned points.
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from taskforge.config_manager import config
from taskforge.exceptions import StateError, ValidationError
from taskforge.models.ids import new_id
from taskforge.validation import (
    Ownable,
    Storable,
    ValidationContext,
    byte_len,
    check_description,
    check_title,
)

ENTITY = "Reward"


class RewardState(Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"


class RewardAction(Enum):
    COMPLETE = "Complete"
    UPDATE = "Update"
    DELETE = "Delete"
    VIEW = "View"


class CostIssue(Enum):
    INVALID = "Invalid"


@dataclass
class Reward(Storable, Ownable):
    id: str
    title: str
    description: str
    cost: int
    owner_id: str
    state: RewardState = RewardState.ACTIVE

    BASE_STORAGE: ClassVar[int] = config.REWARD_BASE_STORAGE
    MAX_STORAGE: ClassVar[int] = config.REWARD_MAX_STORAGE

    @classmethod
    def create(
        cls,
        ctx: ValidationContext,
        *,
        title: str,
        description: str,
        cost: int,
        owner_id: str,
    ) -> "Reward":
        reward = cls(
            id=new_id("reward"),
            title=title,
            description=description,
            cost=cost,
            owner_id=owner_id,
        )
        reward.validate(ctx)
        return reward

    def validate(self, ctx: ValidationContext) -> None:
        self.title = check_title(ENTITY, self.title)
        self.description = check_description(ENTITY, self.description)
        self.validate_cost()
        self.validate_storage(ctx.balance)

    def validate_cost(self) -> None:
        if self.cost < 0 or self.cost >= config.POINTS_CEILING:
            raise ValidationError(
                ENTITY,
                f"Cost error: {CostIssue.INVALID.value} (cost: {self.cost})",
                field="cost",
                reason=CostIssue.INVALID,
            )

    def validate_state_for_action(self, action: RewardAction) -> None:
        if self.state == RewardState.COMPLETED:
            raise StateError(
                ENTITY,
                self.state.value,
                action.value,
                "Invalid action for current state",
            )

    def transition_to(self, new_state: RewardState) -> None:
        if not (self.state == RewardState.ACTIVE and new_state == RewardState.COMPLETED):
            raise StateError(
                ENTITY,
                self.state.value,
                f"transition to {new_state.value}",
                "Invalid state transition",
            )
        self.state = new_state

    def is_affordable(self, available_points: int) -> bool:
        return available_points >= self.cost

    def dynamic_storage_size(self) -> int:
        return (
            byte_len(self.id)
            + byte_len(self.title)
            + byte_len(self.description)
            + byte_len(self.owner_id)
        )
