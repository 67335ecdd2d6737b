"""포인트 원장 도메인 모델.

유저당 하나의 PointsAccount 가 잔액과 티어를 들고 있고, 잔액이 바뀔 때마다
PointTransaction 이 변경 직후 스냅샷과 함께 한 건씩 쌓인다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class PointSource(StrEnum):
    BOOKING = "booking"
    REVIEW_RECEIVED = "review_received"
    REVIEW_DELETED = "review_deleted"
    SERVICE_FEE_PAYMENT = "service_fee_payment"
    REDEEM = "redeem"
    MANUAL = "manual"

    @property
    def label(self) -> str:
        return SOURCE_LABELS[self]


SOURCE_LABELS: dict[PointSource, str] = {
    PointSource.BOOKING: "Booking Completed",
    PointSource.REVIEW_RECEIVED: "Review Received",
    PointSource.REVIEW_DELETED: "Review Removed",
    PointSource.SERVICE_FEE_PAYMENT: "Service Fee Payment",
    PointSource.REDEEM: "Reward Redeemed",
    PointSource.MANUAL: "Manual Award",
}


# -------- source 별 meta --------


class _Meta(BaseModel):
    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        return ""


class BookingMeta(_Meta):
    source: Literal["booking"] = "booking"
    booking_id: str | None = None
    listing_title: str | None = None
    booking_amount: float | None = None

    def describe(self) -> str:
        return f'"{self.listing_title}"' if self.listing_title else ""


class ReviewReceivedMeta(_Meta):
    source: Literal["review_received"] = "review_received"
    listing_id: str | None = None
    listing_name: str | None = None
    guest_id: str | None = None
    guest_name: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)

    def describe(self) -> str:
        if not self.listing_name:
            return ""
        if self.rating is None:
            return f'review on "{self.listing_name}"'
        return f'{self.rating}-star review on "{self.listing_name}"'


class ReviewDeletedMeta(_Meta):
    source: Literal["review_deleted"] = "review_deleted"
    listing_id: str | None = None
    listing_name: str | None = None
    guest_id: str | None = None

    def describe(self) -> str:
        return f'Review removed from "{self.listing_name}"' if self.listing_name else ""


class ServiceFeePaymentMeta(_Meta):
    source: Literal["service_fee_payment"] = "service_fee_payment"
    plan: str | None = None
    booking_id: str | None = None

    def describe(self) -> str:
        if self.booking_id:
            return f"Booking ID: {self.booking_id[:8]}..."
        return f"Plan: {self.plan}" if self.plan else ""


class RedeemMeta(_Meta):
    source: Literal["redeem"] = "redeem"
    reward_id: str
    coupon: str | None = None

    def describe(self) -> str:
        return f"Coupon {self.coupon}" if self.coupon else self.reward_id


class ManualMeta(_Meta):
    source: Literal["manual"] = "manual"
    note: str | None = None

    def describe(self) -> str:
        return self.note or ""


PointMeta = Annotated[
    Union[
        BookingMeta,
        ReviewReceivedMeta,
        ReviewDeletedMeta,
        ServiceFeePaymentMeta,
        RedeemMeta,
        ManualMeta,
    ],
    Field(discriminator="source"),
]


# -------- 원장 --------


class PointsAccount(BaseModel):
    """유저별 포인트 잔액. tier 는 항상 total 로부터 계산된 값이다."""

    id: str | None = None
    user_id: str
    total: int = Field(ge=0)
    tier: str
    created_at: datetime
    updated_at: datetime


class PointTransaction(BaseModel):
    """포인트 변동 로그. 한 번 기록되면 수정하지 않는다."""

    id: str | None = None
    user_id: str
    amount: int  # 부호 있는 변동량 (클램프 전 요청값)
    source: PointSource
    meta: PointMeta | None = None
    total_after: int
    tier_after: str
    created_at: datetime
    updated_at: datetime

    @property
    def label(self) -> str:
        return self.source.label

    def describe(self) -> str:
        return self.meta.describe() if self.meta is not None else ""
