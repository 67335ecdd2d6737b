"""포인트 원장 서비스.

유저별 잔액/티어 조회, 변동 적용, 변동 이력 조회를 처리한다.
잔액 변경과 변동 로그 기록은 항상 하나의 스토어 트랜잭션 안에서 일어난다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import Depends

from common.mongo.client import get_client, get_database

from ..config import AppConfig, get_app_config
from ..models.points import PointMeta, PointsAccount, PointSource, PointTransaction
from ..models.tier import TierProgress, tier_for_points, tier_progress
from ..repositories.interfaces import PointsStoreInterface, PointsUnitOfWork
from ..repositories.memory_store import InMemoryPointsStore
from ..repositories.mongo_store import MongoPointsStore


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PointsLedgerService:
    """포인트 잔액의 유일한 변경 지점."""

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

    def get_account(self, user_id: str) -> PointsAccount:
        """유저 잔액 조회. 없으면 0 포인트 bronze 로 초기화한다 (쓰기가 일어날 수 있음)."""
        now = self._clock()
        return self._store.run_in_transaction(
            lambda unit: unit.accounts.get_or_create(user_id, now),
            timeout=self._timeout,
        )

    def get_progress(self, user_id: str) -> tuple[PointsAccount, TierProgress]:
        account = self.get_account(user_id)
        return account, tier_progress(account.total)

    def apply_delta(
        self,
        user_id: str,
        amount: int,
        source: PointSource | str,
        meta: PointMeta | None = None,
    ) -> int | None:
        """포인트 변동 적용. 변경 후 잔액 반환, amount 가 0 이면 아무것도 쓰지 않고 None.

        잔액은 매 변동마다 0 에서 클램프된다. 잔액보다 큰 차감도 실패하지 않는다.
        """
        source = _check_delta(amount, source, meta)
        if amount == 0:
            return None

        now = self._clock()
        tx = self._store.run_in_transaction(
            lambda unit: self.apply_delta_in(unit, user_id, amount, source, meta, now),
            timeout=self._timeout,
        )
        logger.info(
            "applied points delta",
            extra={
                "user_id": user_id,
                "source": str(source),
                "amount": amount,
                "total_after": tx.total_after,
                "tier_after": tx.tier_after,
            },
        )
        return tx.total_after

    def apply_delta_in(
        self,
        unit: PointsUnitOfWork,
        user_id: str,
        amount: int,
        source: PointSource | str,
        meta: PointMeta | None,
        now: datetime,
    ) -> PointTransaction:
        """이미 열린 트랜잭션(unit) 안에서 변동을 적용한다.

        다른 서비스가 자기 쓰기와 원장 변경을 한 트랜잭션으로 묶을 때 사용한다.
        """
        source = _check_delta(amount, source, meta)
        account = unit.accounts.get_or_create(user_id, now)
        new_total = max(0, account.total + amount)
        tier = tier_for_points(new_total)

        unit.accounts.save(
            account.model_copy(
                update={"total": new_total, "tier": tier.id, "updated_at": now}
            )
        )
        return unit.transactions.create(
            PointTransaction(
                user_id=user_id,
                amount=amount,
                source=source,
                meta=meta,
                total_after=new_total,
                tier_after=tier.id,
                created_at=now,
                updated_at=now,
            )
        )

    def get_history(
        self, user_id: str, page: int = 1, page_size: int = 20
    ) -> tuple[list[PointTransaction], int]:
        """포인트 변동 이력 (최신순)."""
        return self._store.run(
            lambda unit: unit.transactions.list_by_user(user_id, page, page_size),
            timeout=self._timeout,
        )


def _check_delta(
    amount: int, source: PointSource | str, meta: PointMeta | None
) -> PointSource:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"points amount must be an int, got {type(amount).__name__}")
    source = PointSource(source)
    if meta is not None and meta.source != source:
        raise ValueError(f"meta for {meta.source!r} does not match source {source.value!r}")
    return source


# -------- FastAPI DI --------


def get_points_store(
    config: AppConfig = Depends(get_app_config),
) -> PointsStoreInterface:
    """설정된 백엔드의 PointsStore 를 만든다."""
    if config.store.backend == "memory":
        return _memory_store()

    return MongoPointsStore(
        get_client(),
        get_database(),
        default_timeout=config.store.timeout_seconds,
    )


_shared_memory_store: InMemoryPointsStore | None = None


def _memory_store() -> InMemoryPointsStore:
    # 메모리 백엔드는 요청 사이에 상태를 공유해야 한다.
    global _shared_memory_store
    if _shared_memory_store is None:
        _shared_memory_store = InMemoryPointsStore()
    return _shared_memory_store


def get_ledger_service(
    store: PointsStoreInterface = Depends(get_points_store),
    config: AppConfig = Depends(get_app_config),
) -> PointsLedgerService:
    """FastAPI DI용 PointsLedgerService 팩토리."""
    return PointsLedgerService(store, timeout=config.store.timeout_seconds)
