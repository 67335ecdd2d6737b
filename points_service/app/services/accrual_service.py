from __future__ import annotations

from fastapi import Depends

from ..config import AccrualConfig, AppConfig, get_app_config
from ..models.points import BookingMeta, PointSource, ReviewDeletedMeta, ReviewReceivedMeta
from .ledger_service import PointsLedgerService, get_ledger_service


class AccrualService:
    """예약 완료/리뷰 작성/리뷰 삭제 시 호스트에게 주는 고정 포인트.

    배율(tier multiplier)은 적용하지 않는다.
    """

    def __init__(self, ledger: PointsLedgerService, rules: AccrualConfig | None = None) -> None:
        self._ledger = ledger
        self._rules = rules or AccrualConfig()

    def award_booking(
        self,
        host_id: str,
        booking_id: str | None = None,
        listing_title: str | None = None,
        booking_amount: float | None = None,
    ) -> int | None:
        return self._ledger.apply_delta(
            host_id,
            self._rules.booking,
            PointSource.BOOKING,
            BookingMeta(
                booking_id=booking_id,
                listing_title=listing_title,
                booking_amount=booking_amount,
            ),
        )

    def award_review(
        self,
        host_id: str,
        listing_id: str | None = None,
        listing_name: str | None = None,
        guest_id: str | None = None,
        guest_name: str | None = None,
        rating: int | None = None,
    ) -> int | None:
        return self._ledger.apply_delta(
            host_id,
            self._rules.review_received,
            PointSource.REVIEW_RECEIVED,
            ReviewReceivedMeta(
                listing_id=listing_id,
                listing_name=listing_name,
                guest_id=guest_id,
                guest_name=guest_name,
                rating=rating,
            ),
        )

    def revoke_review(
        self,
        host_id: str,
        listing_id: str | None = None,
        listing_name: str | None = None,
        guest_id: str | None = None,
    ) -> int | None:
        return self._ledger.apply_delta(
            host_id,
            self._rules.review_deleted,
            PointSource.REVIEW_DELETED,
            ReviewDeletedMeta(
                listing_id=listing_id,
                listing_name=listing_name,
                guest_id=guest_id,
            ),
        )


def get_accrual_service(
    ledger: PointsLedgerService = Depends(get_ledger_service),
    config: AppConfig = Depends(get_app_config),
) -> AccrualService:
    """FastAPI DI용 AccrualService 팩토리."""
    return AccrualService(ledger, config.accrual)
