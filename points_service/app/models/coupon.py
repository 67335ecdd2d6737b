from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from .reward import DiscountType


class CouponStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Coupon(BaseModel):
    """리워드 교환으로 발급되는 할인 쿠폰.

    used_count 는 max_uses 를 넘지 않으며, max_uses 에 도달하면 소비하는 쪽에서
    status 를 inactive 로 바꾼다.
    """

    id: str | None = None
    code: str
    discount_type: DiscountType
    discount_value: int
    host_id: str
    user_id: str
    reward_id: str | None = None
    max_uses: int = Field(default=1, ge=1)
    used_count: int = Field(default=0, ge=0)
    expires_at: datetime
    status: CouponStatus = CouponStatus.ACTIVE
    created_at: datetime
    updated_at: datetime

    @property
    def is_exhausted(self) -> bool:
        return self.used_count >= self.max_uses

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
