from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ...models.points import PointMeta, PointsAccount, PointSource, PointTransaction
from ...models.service_fee import ServiceFeePayment
from ...models.tier import Tier, TierProgress
from .common import UtcDateTime


class TierResponse(BaseModel):
    id: str
    name: str
    min: int
    multiplier: float
    color: str

    @classmethod
    def from_domain(cls, tier: Tier) -> "TierResponse":
        return cls(
            id=tier.id,
            name=tier.name,
            min=tier.min,
            multiplier=tier.multiplier,
            color=tier.color,
        )


class TierProgressResponse(BaseModel):
    current: TierResponse
    next: TierResponse | None
    points_in_tier: int
    points_span: int | None
    percent: float

    @classmethod
    def from_domain(cls, progress: TierProgress) -> "TierProgressResponse":
        return cls(
            current=TierResponse.from_domain(progress.current),
            next=TierResponse.from_domain(progress.next) if progress.next else None,
            points_in_tier=progress.points_in_tier,
            points_span=progress.points_span,
            percent=round(progress.percent, 2),
        )


class PointsAccountResponse(BaseModel):
    user_id: str
    total: int
    tier: str
    updated_at: UtcDateTime
    progress: TierProgressResponse

    @classmethod
    def from_domain(
        cls, account: PointsAccount, progress: TierProgress
    ) -> "PointsAccountResponse":
        return cls(
            user_id=account.user_id,
            total=account.total,
            tier=account.tier,
            updated_at=account.updated_at,
            progress=TierProgressResponse.from_domain(progress),
        )


class ApplyDeltaRequest(BaseModel):
    """수동/관리자 포인트 변동 요청. meta 는 source 와 같은 태그여야 한다."""

    amount: int
    source: PointSource = PointSource.MANUAL
    meta: PointMeta | None = None


class ApplyDeltaResponse(BaseModel):
    applied: bool
    total: int | None


class ActivityRequest(BaseModel):
    """예약/리뷰 흐름에서 호출하는 적립 요청. 포인트 양은 서버 규칙을 따른다."""

    activity: Literal["booking", "review_received", "review_deleted"]
    booking_id: str | None = None
    listing_id: str | None = None
    listing_name: str | None = None
    booking_amount: float | None = None
    guest_id: str | None = None
    guest_name: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)


class PointTransactionResponse(BaseModel):
    id: str | None
    amount: int
    source: str
    label: str
    description: str
    meta: dict | None
    total_after: int
    tier_after: str
    created_at: UtcDateTime

    @classmethod
    def from_domain(cls, tx: PointTransaction) -> "PointTransactionResponse":
        return cls(
            id=tx.id,
            amount=tx.amount,
            source=str(tx.source),
            label=tx.label,
            description=tx.describe(),
            meta=tx.meta.model_dump() if tx.meta is not None else None,
            total_after=tx.total_after,
            tier_after=tx.tier_after,
            created_at=tx.created_at,
        )


class ServiceFeeRequest(BaseModel):
    plan: str
    amount: int = Field(gt=0)


class ServiceFeeResponse(BaseModel):
    id: str | None
    host_id: str
    plan: str
    amount: int
    status: str
    new_total: int | None = None
    created_at: UtcDateTime

    @classmethod
    def from_domain(
        cls, payment: ServiceFeePayment, new_total: int | None = None
    ) -> "ServiceFeeResponse":
        return cls(
            id=payment.id,
            host_id=payment.host_id,
            plan=payment.plan,
            amount=payment.amount,
            status=payment.status,
            new_total=new_total,
            created_at=payment.created_at,
        )
