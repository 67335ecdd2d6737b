from __future__ import annotations

from pydantic import BaseModel

from ...models.coupon import Coupon
from ...models.reward import Reward, RewardRedemption
from .common import UtcDateTime


class RewardResponse(BaseModel):
    id: str
    label: str
    cost: int
    type: str
    discount_type: str | None
    value: int | None

    @classmethod
    def from_domain(cls, reward: Reward) -> "RewardResponse":
        return cls(
            id=reward.id,
            label=reward.label,
            cost=reward.cost,
            type=str(reward.type),
            discount_type=str(reward.discount_type) if reward.discount_type else None,
            value=reward.value,
        )


class RedeemRequest(BaseModel):
    reward_id: str


class CouponResponse(BaseModel):
    id: str | None
    code: str
    discount_type: str
    discount_value: int
    user_id: str
    max_uses: int
    used_count: int
    status: str
    expires_at: UtcDateTime
    created_at: UtcDateTime

    @classmethod
    def from_domain(cls, coupon: Coupon) -> "CouponResponse":
        return cls(
            id=coupon.id,
            code=coupon.code,
            discount_type=str(coupon.discount_type),
            discount_value=coupon.discount_value,
            user_id=coupon.user_id,
            max_uses=coupon.max_uses,
            used_count=coupon.used_count,
            status=str(coupon.status),
            expires_at=coupon.expires_at,
            created_at=coupon.created_at,
        )


class RedeemResponse(BaseModel):
    new_total: int
    coupon: CouponResponse | None


class RedemptionResponse(BaseModel):
    id: str | None
    reward_id: str
    label: str
    cost: int
    new_total: int
    coupon_code: str | None
    created_at: UtcDateTime

    @classmethod
    def from_domain(cls, record: RewardRedemption) -> "RedemptionResponse":
        return cls(
            id=record.id,
            reward_id=record.reward_id,
            label=record.label,
            cost=record.cost,
            new_total=record.new_total,
            coupon_code=record.coupon_code,
            created_at=record.created_at,
        )
