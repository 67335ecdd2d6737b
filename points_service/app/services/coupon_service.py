from __future__ import annotations

import logging
from datetime import datetime

from fastapi import Depends

from ..config import AppConfig, get_app_config
from ..exceptions import (
    CouponExhaustedError,
    CouponExpiredError,
    CouponInactiveError,
    CouponNotFoundError,
)
from ..models.coupon import Coupon, CouponStatus
from ..repositories.interfaces import PointsStoreInterface, PointsUnitOfWork
from .ledger_service import Clock, get_points_store, utc_now


logger = logging.getLogger(__name__)


class CouponService:
    """체크아웃 쪽에서 쿠폰을 검증하고 사용 처리한다.

    - 교환으로 발급된 쿠폰은 1회용이며, 사용 횟수가 max_uses 에 닿으면 inactive 가 된다.
    """

    def __init__(
        self,
        store: PointsStoreInterface,
        *,
        timeout: float | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._timeout = timeout
        self._clock = clock or utc_now

    def validate(self, code: str, host_id: str | None = None) -> Coupon:
        """사용 가능한 쿠폰이면 반환하고, 아니면 사유별 CouponError 를 던진다."""
        now = self._clock()
        return self._store.run(
            lambda unit: self._find_usable(unit, code, host_id, now),
            timeout=self._timeout,
        )

    def consume(self, code: str, host_id: str | None = None) -> Coupon:
        """쿠폰을 1회 사용 처리하고 갱신된 쿠폰을 반환한다."""
        now = self._clock()
        coupon = self._store.run_in_transaction(
            lambda unit: self._consume_in(unit, code, host_id, now),
            timeout=self._timeout,
        )
        logger.info(
            "consumed coupon",
            extra={"coupon_code": coupon.code, "user_id": coupon.user_id},
        )
        return coupon

    def list_for_user(self, user_id: str) -> list[Coupon]:
        return self._store.run(
            lambda unit: unit.coupons.list_by_user(user_id),
            timeout=self._timeout,
        )

    def _consume_in(
        self, unit: PointsUnitOfWork, code: str, host_id: str | None, now: datetime
    ) -> Coupon:
        coupon = self._find_usable(unit, code, host_id, now)
        assert coupon.id is not None

        used_count = coupon.used_count + 1
        status = CouponStatus.INACTIVE if used_count >= coupon.max_uses else coupon.status
        unit.coupons.update_usage(coupon.id, used_count, status, now)
        return coupon.model_copy(
            update={"used_count": used_count, "status": status, "updated_at": now}
        )

    @staticmethod
    def _find_usable(
        unit: PointsUnitOfWork, code: str, host_id: str | None, now: datetime
    ) -> Coupon:
        normalized = code.strip().upper()
        coupon = unit.coupons.find_by_code(normalized)
        # 다른 호스트의 쿠폰은 존재 여부도 드러내지 않는다.
        if coupon is None or (host_id is not None and coupon.host_id != host_id):
            raise CouponNotFoundError(normalized)
        if coupon.status != CouponStatus.ACTIVE:
            raise CouponInactiveError(normalized)
        if coupon.is_exhausted:
            raise CouponExhaustedError(normalized)
        if coupon.is_expired(now):
            raise CouponExpiredError(normalized)
        return coupon


def get_coupon_service(
    store: PointsStoreInterface = Depends(get_points_store),
    config: AppConfig = Depends(get_app_config),
) -> CouponService:
    """FastAPI DI용 CouponService 팩토리."""
    return CouponService(store, timeout=config.store.timeout_seconds)
