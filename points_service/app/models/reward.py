"""리워드 카탈로그와 교환 기록 도메인 모델."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..exceptions import UnknownRewardError


class RewardType(StrEnum):
    COUPON = "coupon"
    BADGE = "badge"


class DiscountType(StrEnum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class Reward(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    cost: int = Field(gt=0)
    type: RewardType
    discount_type: DiscountType | None = None
    value: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _coupon_requires_discount(self) -> "Reward":
        if self.type == RewardType.COUPON and (
            self.discount_type is None or self.value is None
        ):
            raise ValueError(f"coupon reward {self.id} needs discount_type and value")
        if self.discount_type == DiscountType.PERCENTAGE and (self.value or 0) > 100:
            raise ValueError(f"percentage reward {self.id} cannot exceed 100")
        return self


class RewardCatalog:
    """배포 시점에 고정되는 리워드 목록. 재고나 동적 가격은 없다."""

    def __init__(self, rewards: Iterable[Reward]) -> None:
        self._rewards: dict[str, Reward] = {}
        for reward in rewards:
            if reward.id in self._rewards:
                raise ValueError(f"duplicate reward id: {reward.id}")
            self._rewards[reward.id] = reward

    def list(self) -> list[Reward]:
        return list(self._rewards.values())

    def get(self, reward_id: str) -> Reward:
        reward = self._rewards.get(reward_id)
        if reward is None:
            raise UnknownRewardError(reward_id)
        return reward

    def __contains__(self, reward: object) -> bool:
        if not isinstance(reward, Reward):
            return False
        return self._rewards.get(reward.id) == reward

    def __iter__(self) -> Iterator[Reward]:
        return iter(self._rewards.values())

    def __len__(self) -> int:
        return len(self._rewards)


REWARD_CATALOG = RewardCatalog(
    [
        Reward(
            id="coupon-fixed-5",
            label="₱5 Off Coupon",
            cost=100,
            type=RewardType.COUPON,
            discount_type=DiscountType.FIXED,
            value=5,
        ),
        Reward(
            id="coupon-fixed-25",
            label="₱25 Off Coupon",
            cost=350,
            type=RewardType.COUPON,
            discount_type=DiscountType.FIXED,
            value=25,
        ),
        Reward(
            id="coupon-percent-10",
            label="10% Off Coupon",
            cost=500,
            type=RewardType.COUPON,
            discount_type=DiscountType.PERCENTAGE,
            value=10,
        ),
        Reward(
            id="coupon-fixed-50",
            label="₱50 Off Coupon",
            cost=600,
            type=RewardType.COUPON,
            discount_type=DiscountType.FIXED,
            value=50,
        ),
        Reward(
            id="coupon-percent-15",
            label="15% Off Coupon",
            cost=800,
            type=RewardType.COUPON,
            discount_type=DiscountType.PERCENTAGE,
            value=15,
        ),
        Reward(
            id="priority-support",
            label="Priority Support Badge",
            cost=900,
            type=RewardType.BADGE,
        ),
    ]
)


class RewardRedemption(BaseModel):
    """리워드 교환 기록 (append-only)."""

    id: str | None = None
    user_id: str
    reward_id: str
    label: str
    cost: int
    new_total: int
    coupon_code: str | None = None
    created_at: datetime
    updated_at: datetime
