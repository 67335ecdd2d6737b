from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.reward import RewardRedemption


class RewardRedemptionDocument(BaseDocument):
    """MongoDB reward_redemptions 컬렉션 도큐먼트 모델."""

    user_id: str
    reward_id: str
    label: str
    cost: int
    new_total: int
    coupon_code: str | None = None

    @classmethod
    def from_domain(cls, record: RewardRedemption) -> "RewardRedemptionDocument":
        return cls.model_validate(build_document_data_from_domain(record))

    def to_domain(self) -> RewardRedemption:
        return RewardRedemption(
            id=from_object_id(self.id),
            user_id=self.user_id,
            reward_id=self.reward_id,
            label=self.label,
            cost=self.cost,
            new_total=self.new_total,
            coupon_code=self.coupon_code,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
