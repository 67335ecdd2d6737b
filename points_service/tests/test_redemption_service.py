from __future__ import annotations

import re
from datetime import timedelta
from itertools import cycle

import pytest

from points_service.app.config import CouponConfig
from points_service.app.exceptions import (
    CouponCodeCollisionError,
    InsufficientBalanceError,
    StoreError,
    UnknownRewardError,
)
from points_service.app.models.coupon import CouponStatus
from points_service.app.models.points import PointSource, RedeemMeta
from points_service.app.models.reward import REWARD_CATALOG, DiscountType, Reward, RewardType
from points_service.app.repositories.interfaces import PointsUnitOfWork
from points_service.app.repositories.memory_store import InMemoryPointsStore, MemoryState
from points_service.app.services.ledger_service import PointsLedgerService
from points_service.app.services.redemption_service import (
    RedemptionService,
    generate_coupon_code,
)


@pytest.fixture
def ledger(store: InMemoryPointsStore, clock) -> PointsLedgerService:
    return PointsLedgerService(store, clock=clock)


@pytest.fixture
def service(store: InMemoryPointsStore, clock) -> RedemptionService:
    return RedemptionService(store, clock=clock)


def test_generate_coupon_code_format() -> None:
    code = generate_coupon_code("HZ", 25)
    assert re.fullmatch(r"HZ-25-[A-Z0-9]{6}", code)


def test_catalog_is_fixed_and_ordered() -> None:
    assert [r.id for r in REWARD_CATALOG] == [
        "coupon-fixed-5",
        "coupon-fixed-25",
        "coupon-percent-10",
        "coupon-fixed-50",
        "coupon-percent-15",
        "priority-support",
    ]
    assert [r.cost for r in REWARD_CATALOG] == [100, 350, 500, 600, 800, 900]


def test_redeem_insufficient_balance_changes_nothing(
    service: RedemptionService, ledger: PointsLedgerService, store: InMemoryPointsStore
) -> None:
    ledger.apply_delta("host-001", 50, PointSource.BOOKING)

    with pytest.raises(InsufficientBalanceError) as exc_info:
        service.redeem("host-001", "coupon-fixed-5")

    assert exc_info.value.balance == 50
    assert exc_info.value.required == 100
    assert store.state.accounts["host-001"].total == 50
    assert len(store.state.transactions) == 1
    assert store.state.redemptions == []
    assert store.state.coupons == {}


def test_redeem_for_unknown_user_does_not_create_account(
    service: RedemptionService, store: InMemoryPointsStore
) -> None:
    with pytest.raises(InsufficientBalanceError):
        service.redeem("ghost", "coupon-fixed-5")

    # 트랜잭션이 롤백되므로 지연 초기화된 계정도 남지 않는다.
    assert store.state.accounts == {}


def test_redeem_coupon_reward_writes_every_record_once(
    service: RedemptionService, ledger: PointsLedgerService, store: InMemoryPointsStore, clock
) -> None:
    ledger.apply_delta("host-001", 550, PointSource.BOOKING)

    result = service.redeem("host-001", "coupon-fixed-5")

    assert result.new_total == 450
    account = store.state.accounts["host-001"]
    assert account.total == 450
    assert account.tier == "bronze"

    redeem_txs = [tx for tx in store.state.transactions if tx.source == PointSource.REDEEM]
    assert len(redeem_txs) == 1
    tx = redeem_txs[0]
    assert tx.amount == -100
    assert tx.total_after == 450
    assert tx.tier_after == "bronze"
    assert tx.meta == RedeemMeta(reward_id="coupon-fixed-5", coupon=result.coupon.code)

    assert len(store.state.redemptions) == 1
    redemption = store.state.redemptions[0]
    assert redemption.reward_id == "coupon-fixed-5"
    assert redemption.cost == 100
    assert redemption.new_total == 450
    assert redemption.coupon_code == result.coupon.code

    coupon = result.coupon
    assert re.fullmatch(r"HZ-5-[A-Z0-9]{6}", coupon.code)
    assert coupon.discount_type == DiscountType.FIXED
    assert coupon.discount_value == 5
    assert coupon.host_id == "host-001"
    assert coupon.user_id == "host-001"
    assert coupon.max_uses == 1
    assert coupon.used_count == 0
    assert coupon.status == CouponStatus.ACTIVE
    assert coupon.expires_at == clock.now + timedelta(days=30)
    assert list(store.state.coupons) == [coupon.code]


def test_redeem_percentage_coupon(
    service: RedemptionService, ledger: PointsLedgerService
) -> None:
    ledger.apply_delta("host-001", 500, PointSource.MANUAL)

    result = service.redeem("host-001", "coupon-percent-10")

    assert result.new_total == 0
    assert result.coupon is not None
    assert result.coupon.discount_type == DiscountType.PERCENTAGE
    assert result.coupon.discount_value == 10
    assert result.coupon.code.startswith("HZ-10-")


def test_redeem_badge_mints_no_coupon(
    service: RedemptionService, ledger: PointsLedgerService, store: InMemoryPointsStore
) -> None:
    ledger.apply_delta("host-001", 1000, PointSource.MANUAL)

    result = service.redeem("host-001", REWARD_CATALOG.get("priority-support"))

    assert result.coupon is None
    assert result.new_total == 100
    assert store.state.coupons == {}
    assert store.state.redemptions[0].coupon_code is None
    assert result.transaction.describe() == "priority-support"


def test_redeem_drops_tier(service: RedemptionService, ledger: PointsLedgerService) -> None:
    ledger.apply_delta("host-001", 1600, PointSource.MANUAL)
    assert ledger.get_account("host-001").tier == "gold"

    result = service.redeem("host-001", "priority-support")

    assert result.transaction.tier_after == "silver"
    assert ledger.get_account("host-001").tier == "silver"


def test_redeem_unknown_reward_id(service: RedemptionService, store: InMemoryPointsStore) -> None:
    with pytest.raises(UnknownRewardError):
        service.redeem("host-001", "coupon-fixed-1000")
    assert store.state.accounts == {}


def test_redeem_rejects_reward_outside_catalog(service: RedemptionService) -> None:
    forged = Reward(
        id="coupon-fixed-5",
        label="₱5 Off Coupon",
        cost=1,
        type=RewardType.COUPON,
        discount_type=DiscountType.FIXED,
        value=5,
    )
    with pytest.raises(UnknownRewardError):
        service.redeem("host-001", forged)


def test_redeem_regenerates_colliding_code(
    store: InMemoryPointsStore, ledger: PointsLedgerService, clock
) -> None:
    codes = iter(["HZ-5-AAAAAA", "HZ-5-AAAAAA", "HZ-5-BBBBBB"])
    service = RedemptionService(store, clock=clock, code_factory=lambda prefix, value: next(codes))
    ledger.apply_delta("host-001", 200, PointSource.MANUAL)

    first = service.redeem("host-001", "coupon-fixed-5")
    second = service.redeem("host-001", "coupon-fixed-5")

    assert first.coupon.code == "HZ-5-AAAAAA"
    assert second.coupon.code == "HZ-5-BBBBBB"
    assert len(store.state.coupons) == 2


def test_redeem_gives_up_after_bounded_attempts(
    store: InMemoryPointsStore, ledger: PointsLedgerService, clock
) -> None:
    codes = cycle(["HZ-5-AAAAAA"])
    service = RedemptionService(
        store,
        clock=clock,
        coupon_config=CouponConfig(code_attempts=3),
        code_factory=lambda prefix, value: next(codes),
    )
    ledger.apply_delta("host-001", 200, PointSource.MANUAL)
    service.redeem("host-001", "coupon-fixed-5")

    with pytest.raises(CouponCodeCollisionError) as exc_info:
        service.redeem("host-001", "coupon-fixed-5")

    assert exc_info.value.attempts == 3
    assert store.state.accounts["host-001"].total == 100
    assert len(store.state.redemptions) == 1


class _FailingRedemptionStore(InMemoryPointsStore):
    """교환 기록 저장 단계에서 실패하는 스토어."""

    def make_unit(self, state: MemoryState) -> PointsUnitOfWork:
        unit = super().make_unit(state)

        def fail(record):
            raise StoreError("redemption insert failed")

        unit.redemptions.create = fail
        return unit


def test_redeem_failure_midway_rolls_back_everything(clock) -> None:
    store = _FailingRedemptionStore()
    PointsLedgerService(store, clock=clock).apply_delta("host-001", 500, PointSource.MANUAL)
    service = RedemptionService(store, clock=clock)

    with pytest.raises(StoreError):
        service.redeem("host-001", "coupon-fixed-25")

    assert store.state.accounts["host-001"].total == 500
    assert store.state.coupons == {}
    assert store.state.redemptions == []
    assert [tx.source for tx in store.state.transactions] == [PointSource.MANUAL]


def test_list_redemptions_latest_first(
    service: RedemptionService, ledger: PointsLedgerService, clock
) -> None:
    ledger.apply_delta("host-001", 1000, PointSource.MANUAL)
    service.redeem("host-001", "coupon-fixed-5")
    clock.advance(minutes=5)
    service.redeem("host-001", "coupon-fixed-25")

    items, total = service.list_redemptions("host-001")

    assert total == 2
    assert [r.reward_id for r in items] == ["coupon-fixed-25", "coupon-fixed-5"]
    assert items[0].new_total == 550
