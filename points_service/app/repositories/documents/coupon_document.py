from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.coupon import Coupon


class CouponDocument(BaseDocument):
    """MongoDB coupons 컬렉션 도큐먼트 모델."""

    code: str
    discount_type: str
    discount_value: int
    host_id: str
    user_id: str
    reward_id: str | None = None
    max_uses: int
    used_count: int
    expires_at: MongoDateTime
    status: str

    @classmethod
    def from_domain(cls, coupon: Coupon) -> "CouponDocument":
        data = build_document_data_from_domain(coupon)
        data["discount_type"] = str(coupon.discount_type)
        data["status"] = str(coupon.status)
        return cls.model_validate(data)

    def to_domain(self) -> Coupon:
        return Coupon.model_validate(
            {
                "id": from_object_id(self.id),
                "code": self.code,
                "discount_type": self.discount_type,
                "discount_value": self.discount_value,
                "host_id": self.host_id,
                "user_id": self.user_id,
                "reward_id": self.reward_id,
                "max_uses": self.max_uses,
                "used_count": self.used_count,
                "expires_at": self.expires_at,
                "status": self.status,
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )
