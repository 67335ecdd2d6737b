from __future__ import annotations

import pytest

from points_service.app.exceptions import (
    CouponExhaustedError,
    CouponExpiredError,
    CouponInactiveError,
    CouponNotFoundError,
)
from points_service.app.models.coupon import Coupon, CouponStatus
from points_service.app.models.points import PointSource
from points_service.app.repositories.memory_store import InMemoryPointsStore
from points_service.app.services.coupon_service import CouponService
from points_service.app.services.ledger_service import PointsLedgerService
from points_service.app.services.redemption_service import RedemptionService


@pytest.fixture
def service(store: InMemoryPointsStore, clock) -> CouponService:
    return CouponService(store, clock=clock)


@pytest.fixture
def minted(store: InMemoryPointsStore, clock) -> Coupon:
    PointsLedgerService(store, clock=clock).apply_delta("host-001", 100, PointSource.MANUAL)
    result = RedemptionService(store, clock=clock).redeem("host-001", "coupon-fixed-5")
    assert result.coupon is not None
    return result.coupon


def test_validate_returns_active_coupon(service: CouponService, minted: Coupon) -> None:
    coupon = service.validate(minted.code, host_id="host-001")

    assert coupon.code == minted.code
    assert coupon.status == CouponStatus.ACTIVE


def test_validate_is_case_insensitive(service: CouponService, minted: Coupon) -> None:
    assert service.validate(f"  {minted.code.lower()} ").id == minted.id


def test_validate_unknown_code(service: CouponService) -> None:
    with pytest.raises(CouponNotFoundError):
        service.validate("HZ-5-ZZZZZZ")


def test_validate_hides_other_hosts_coupon(service: CouponService, minted: Coupon) -> None:
    with pytest.raises(CouponNotFoundError):
        service.validate(minted.code, host_id="host-999")


def test_consume_marks_single_use_coupon_inactive(
    service: CouponService, minted: Coupon, store: InMemoryPointsStore, clock
) -> None:
    clock.advance(hours=1)

    consumed = service.consume(minted.code, host_id="host-001")

    assert consumed.used_count == 1
    assert consumed.status == CouponStatus.INACTIVE
    stored = store.state.coupons[minted.code]
    assert stored.used_count == 1
    assert stored.status == CouponStatus.INACTIVE
    assert stored.updated_at == clock.now


def test_consume_twice_is_rejected(service: CouponService, minted: Coupon) -> None:
    service.consume(minted.code)

    with pytest.raises(CouponInactiveError):
        service.consume(minted.code)


def test_exhausted_coupon_is_rejected(
    service: CouponService, minted: Coupon, store: InMemoryPointsStore
) -> None:
    # 상태는 active 인데 사용 횟수가 이미 찬 경우
    store.state.coupons[minted.code] = minted.model_copy(update={"used_count": 1})

    with pytest.raises(CouponExhaustedError):
        service.validate(minted.code)


def test_expired_coupon_is_rejected(service: CouponService, minted: Coupon, clock) -> None:
    clock.advance(days=30, seconds=1)

    with pytest.raises(CouponExpiredError):
        service.consume(minted.code)


def test_coupon_valid_until_expiry(service: CouponService, minted: Coupon, clock) -> None:
    clock.advance(days=29, hours=23)

    assert service.validate(minted.code).code == minted.code


def test_coupon_still_valid_at_expiry_instant(
    service: CouponService, minted: Coupon, clock
) -> None:
    clock.now = minted.expires_at

    assert service.validate(minted.code).code == minted.code
    assert service.consume(minted.code).status == CouponStatus.INACTIVE


def test_list_for_user(service: CouponService, minted: Coupon) -> None:
    assert [c.code for c in service.list_for_user("host-001")] == [minted.code]
    assert service.list_for_user("host-002") == []
