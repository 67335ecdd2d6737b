"""포인트 원장 MongoDB 도큐먼트.

points_accounts 는 user_id 당 한 건, point_transactions 는 변동마다 한 건씩 쌓인다.
"""

from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.points import PointsAccount, PointTransaction


class PointsAccountDocument(BaseDocument):
    """MongoDB points_accounts 컬렉션 도큐먼트 모델."""

    user_id: str
    total: int
    tier: str

    @classmethod
    def from_domain(cls, account: PointsAccount) -> "PointsAccountDocument":
        return cls.model_validate(build_document_data_from_domain(account))

    def to_domain(self) -> PointsAccount:
        return PointsAccount(
            id=from_object_id(self.id),
            user_id=self.user_id,
            total=self.total,
            tier=self.tier,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class PointTransactionDocument(BaseDocument):
    """MongoDB point_transactions 컬렉션 도큐먼트 모델."""

    user_id: str
    amount: int
    source: str
    meta: dict | None = None
    total_after: int
    tier_after: str

    @classmethod
    def from_domain(cls, tx: PointTransaction) -> "PointTransactionDocument":
        data = build_document_data_from_domain(tx)
        data["source"] = str(tx.source)
        return cls.model_validate(data)

    def to_domain(self) -> PointTransaction:
        # meta 는 source 태그로 구분되는 union 으로 다시 검증된다.
        return PointTransaction.model_validate(
            {
                "id": from_object_id(self.id),
                "user_id": self.user_id,
                "amount": self.amount,
                "source": self.source,
                "meta": self.meta,
                "total_after": self.total_after,
                "tier_after": self.tier_after,
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )
