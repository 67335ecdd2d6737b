"""리워드 교환 서비스.

잔액 확인, 차감, 쿠폰 발급, 교환 기록, 변동 로그를 한 트랜잭션으로 처리한다.
중간 단계에서 실패하면 차감까지 모두 되돌려지므로 포인트만 빠지고 쿠폰이
없는 상태는 생기지 않는다.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from fastapi import Depends

from ..config import AppConfig, CouponConfig, get_app_config
from ..exceptions import CouponCodeCollisionError, InsufficientBalanceError, UnknownRewardError
from ..models.coupon import Coupon, CouponStatus
from ..models.points import PointSource, PointTransaction, RedeemMeta
from ..models.reward import (
    REWARD_CATALOG,
    DiscountType,
    Reward,
    RewardCatalog,
    RewardRedemption,
    RewardType,
)
from ..models.tier import tier_for_points
from ..repositories.interfaces import PointsStoreInterface, PointsUnitOfWork
from .ledger_service import Clock, get_points_store, utc_now


logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_SUFFIX_LENGTH = 6

CodeFactory = Callable[[str, int], str]


def generate_coupon_code(prefix: str, value: int) -> str:
    """'{prefix}-{value}-{6자리 영숫자}' 형태의 쿠폰 코드."""
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
    return f"{prefix}-{value}-{suffix}"


@dataclass(slots=True)
class RedemptionResult:
    new_total: int
    coupon: Coupon | None
    redemption: RewardRedemption
    transaction: PointTransaction


class RedemptionService:
    def __init__(
        self,
        store: PointsStoreInterface,
        *,
        catalog: RewardCatalog = REWARD_CATALOG,
        coupon_config: CouponConfig | None = None,
        timeout: float | None = None,
        clock: Clock | None = None,
        code_factory: CodeFactory = generate_coupon_code,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._coupon_config = coupon_config or CouponConfig()
        self._timeout = timeout
        self._clock = clock or utc_now
        self._code_factory = code_factory

    def list_rewards(self) -> list[Reward]:
        return self._catalog.list()

    def get_reward(self, reward_id: str) -> Reward:
        return self._catalog.get(reward_id)

    def redeem(self, user_id: str, reward: Reward | str) -> RedemptionResult:
        """포인트로 리워드를 교환한다.

        잔액이 부족하면 InsufficientBalanceError 를 던지고 아무것도 기록하지 않는다.
        """
        if isinstance(reward, str):
            reward = self._catalog.get(reward)
        elif reward not in self._catalog:
            raise UnknownRewardError(reward.id)

        now = self._clock()
        result = self._store.run_in_transaction(
            lambda unit: self._redeem_in(unit, user_id, reward, now),
            timeout=self._timeout,
        )
        logger.info(
            "redeemed reward",
            extra={
                "user_id": user_id,
                "reward_id": reward.id,
                "amount": -reward.cost,
                "total_after": result.new_total,
                "tier_after": result.transaction.tier_after,
                "coupon_code": result.coupon.code if result.coupon else None,
            },
        )
        return result

    def list_redemptions(
        self, user_id: str, page: int = 1, page_size: int = 20
    ) -> tuple[list[RewardRedemption], int]:
        return self._store.run(
            lambda unit: unit.redemptions.list_by_user(user_id, page, page_size),
            timeout=self._timeout,
        )

    def _redeem_in(
        self, unit: PointsUnitOfWork, user_id: str, reward: Reward, now: datetime
    ) -> RedemptionResult:
        account = unit.accounts.get_or_create(user_id, now)
        if account.total < reward.cost:
            raise InsufficientBalanceError(user_id, account.total, reward.cost)

        new_total = account.total - reward.cost
        tier = tier_for_points(new_total)
        unit.accounts.save(
            account.model_copy(update={"total": new_total, "tier": tier.id, "updated_at": now})
        )

        coupon: Coupon | None = None
        if reward.type == RewardType.COUPON:
            coupon = unit.coupons.create(self._build_coupon(unit, user_id, reward, now))

        coupon_code = coupon.code if coupon else None
        redemption = unit.redemptions.create(
            RewardRedemption(
                user_id=user_id,
                reward_id=reward.id,
                label=reward.label,
                cost=reward.cost,
                new_total=new_total,
                coupon_code=coupon_code,
                created_at=now,
                updated_at=now,
            )
        )
        transaction = unit.transactions.create(
            PointTransaction(
                user_id=user_id,
                amount=-reward.cost,
                source=PointSource.REDEEM,
                meta=RedeemMeta(reward_id=reward.id, coupon=coupon_code),
                total_after=new_total,
                tier_after=tier.id,
                created_at=now,
                updated_at=now,
            )
        )
        return RedemptionResult(
            new_total=new_total,
            coupon=coupon,
            redemption=redemption,
            transaction=transaction,
        )

    def _build_coupon(
        self, unit: PointsUnitOfWork, user_id: str, reward: Reward, now: datetime
    ) -> Coupon:
        assert reward.value is not None
        return Coupon(
            code=self._mint_code(unit, reward.value),
            discount_type=reward.discount_type or DiscountType.FIXED,
            discount_value=reward.value,
            host_id=user_id,
            user_id=user_id,
            reward_id=reward.id,
            max_uses=1,
            used_count=0,
            expires_at=now + timedelta(days=self._coupon_config.ttl_days),
            status=CouponStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )

    def _mint_code(self, unit: PointsUnitOfWork, value: int) -> str:
        attempts = self._coupon_config.code_attempts
        code = ""
        for _ in range(attempts):
            code = self._code_factory(self._coupon_config.code_prefix, value).upper()
            if not unit.coupons.exists_by_code(code):
                return code
            logger.warning("coupon code collision, regenerating", extra={"coupon_code": code})
        raise CouponCodeCollisionError(code, attempts)


def get_redemption_service(
    store: PointsStoreInterface = Depends(get_points_store),
    config: AppConfig = Depends(get_app_config),
) -> RedemptionService:
    """FastAPI DI용 RedemptionService 팩토리."""
    return RedemptionService(
        store,
        coupon_config=config.coupon,
        timeout=config.store.timeout_seconds,
    )
