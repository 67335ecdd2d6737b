"""프로세스 내 메모리 PointsStore.

MongoDB 없이 로컬에서 띄우거나 테스트할 때 사용한다. 하나의 락으로 모든
작업을 직렬화하고, 트랜잭션 시작 시점 스냅샷으로 실패한 작업을 되돌린다.
"""

from __future__ import annotations

import copy
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, TypeVar

from ..exceptions import StoreError, StoreTimeoutError
from ..models.coupon import Coupon, CouponStatus
from ..models.points import PointsAccount, PointTransaction
from ..models.reward import RewardRedemption
from ..models.service_fee import ServiceFeePayment
from ..models.tier import DEFAULT_TIER_ID
from .interfaces import PointsStoreInterface, PointsUnitOfWork
from .points_repository import normalize_page


T = TypeVar("T")


@dataclass
class MemoryState:
    accounts: dict[str, PointsAccount] = field(default_factory=dict)
    transactions: list[PointTransaction] = field(default_factory=list)
    redemptions: list[RewardRedemption] = field(default_factory=list)
    coupons: dict[str, Coupon] = field(default_factory=dict)  # code -> coupon
    service_fees: list[ServiceFeePayment] = field(default_factory=list)


def _latest_first(items: list, user_id: str, key: str = "user_id") -> list:
    # 같은 시각이면 나중에 들어온 것이 먼저 온다 (Mongo 의 _id desc 정렬과 동일).
    matched = [(i, item) for i, item in enumerate(items) if getattr(item, key) == user_id]
    matched.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
    return [item.model_copy(deep=True) for _, item in matched]


def _paginate(items: list, page: int, page_size: int) -> tuple[list, int]:
    page, page_size = normalize_page(page, page_size)
    start = (page - 1) * page_size
    return items[start : start + page_size], len(items)


class MemoryAccountRepository:
    def __init__(self, state: MemoryState, next_id: Callable[[], str]) -> None:
        self._state = state
        self._next_id = next_id

    def get_or_create(self, user_id: str, now: datetime) -> PointsAccount:
        account = self._state.accounts.get(user_id)
        if account is None:
            account = PointsAccount(
                id=self._next_id(),
                user_id=user_id,
                total=0,
                tier=DEFAULT_TIER_ID,
                created_at=now,
                updated_at=now,
            )
            self._state.accounts[user_id] = account
        return account.model_copy(deep=True)

    def save(self, account: PointsAccount) -> None:
        existing = self._state.accounts.get(account.user_id)
        if existing is None:
            return
        self._state.accounts[account.user_id] = existing.model_copy(
            update={
                "total": account.total,
                "tier": account.tier,
                "updated_at": account.updated_at,
            }
        )


class MemoryTransactionRepository:
    def __init__(self, state: MemoryState, next_id: Callable[[], str]) -> None:
        self._state = state
        self._next_id = next_id

    def create(self, tx: PointTransaction) -> PointTransaction:
        stored = tx.model_copy(update={"id": self._next_id()})
        self._state.transactions.append(stored)
        return stored.model_copy(deep=True)

    def list_by_user(
        self, user_id: str, page: int, page_size: int
    ) -> tuple[list[PointTransaction], int]:
        return _paginate(_latest_first(self._state.transactions, user_id), page, page_size)


class MemoryRedemptionRepository:
    def __init__(self, state: MemoryState, next_id: Callable[[], str]) -> None:
        self._state = state
        self._next_id = next_id

    def create(self, record: RewardRedemption) -> RewardRedemption:
        stored = record.model_copy(update={"id": self._next_id()})
        self._state.redemptions.append(stored)
        return stored.model_copy(deep=True)

    def list_by_user(
        self, user_id: str, page: int, page_size: int
    ) -> tuple[list[RewardRedemption], int]:
        return _paginate(_latest_first(self._state.redemptions, user_id), page, page_size)


class DuplicateCouponCodeError(StoreError):
    """메모리 스토어에서 유니크 인덱스 위반을 흉내낸다."""


class MemoryCouponRepository:
    def __init__(self, state: MemoryState, next_id: Callable[[], str]) -> None:
        self._state = state
        self._next_id = next_id

    def create(self, coupon: Coupon) -> Coupon:
        code = coupon.code.upper()
        if code in self._state.coupons:
            raise DuplicateCouponCodeError(code)
        stored = coupon.model_copy(update={"id": self._next_id(), "code": code})
        self._state.coupons[code] = stored
        return stored.model_copy(deep=True)

    def exists_by_code(self, code: str) -> bool:
        return code.upper() in self._state.coupons

    def find_by_code(self, code: str) -> Coupon | None:
        coupon = self._state.coupons.get(code.upper())
        return coupon.model_copy(deep=True) if coupon is not None else None

    def update_usage(
        self, coupon_id: str, used_count: int, status: CouponStatus, now: datetime
    ) -> None:
        for code, coupon in self._state.coupons.items():
            if coupon.id == coupon_id:
                self._state.coupons[code] = coupon.model_copy(
                    update={"used_count": used_count, "status": status, "updated_at": now}
                )
                return

    def list_by_user(self, user_id: str) -> list[Coupon]:
        return _latest_first(list(self._state.coupons.values()), user_id)


class MemoryServiceFeeRepository:
    def __init__(self, state: MemoryState, next_id: Callable[[], str]) -> None:
        self._state = state
        self._next_id = next_id

    def create(self, payment: ServiceFeePayment) -> ServiceFeePayment:
        stored = payment.model_copy(update={"id": self._next_id()})
        self._state.service_fees.append(stored)
        return stored.model_copy(deep=True)

    def list_by_host(self, host_id: str) -> list[ServiceFeePayment]:
        return _latest_first(self._state.service_fees, host_id, key="host_id")


class MemoryUnitOfWork:
    def __init__(self, state: MemoryState, next_id: Callable[[], str]) -> None:
        self.accounts = MemoryAccountRepository(state, next_id)
        self.transactions = MemoryTransactionRepository(state, next_id)
        self.redemptions = MemoryRedemptionRepository(state, next_id)
        self.coupons = MemoryCouponRepository(state, next_id)
        self.service_fees = MemoryServiceFeeRepository(state, next_id)


class InMemoryPointsStore(PointsStoreInterface):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state = MemoryState()
        self._ids = itertools.count(1)

    @property
    def state(self) -> MemoryState:
        """테스트에서 저장된 내용을 직접 확인할 때 사용한다."""
        return self._state

    def run_in_transaction(
        self, work: Callable[[PointsUnitOfWork], T], *, timeout: float | None = None
    ) -> T:
        with self._locked(timeout):
            snapshot = copy.deepcopy(self._state)
            try:
                return work(self.make_unit(self._state))
            except BaseException:
                self._state = snapshot
                raise

    def run(
        self, work: Callable[[PointsUnitOfWork], T], *, timeout: float | None = None
    ) -> T:
        with self._locked(timeout):
            return work(self.make_unit(self._state))

    def make_unit(self, state: MemoryState) -> PointsUnitOfWork:
        return MemoryUnitOfWork(state, self._next_id)

    def _next_id(self) -> str:
        return f"mem-{next(self._ids)}"

    def _locked(self, timeout: float | None) -> "_LockGuard":
        return _LockGuard(self._lock, timeout)


class _LockGuard:
    def __init__(self, lock: threading.RLock, timeout: float | None) -> None:
        self._lock = lock
        self._timeout = timeout

    def __enter__(self) -> None:
        acquired = self._lock.acquire(timeout=-1 if self._timeout is None else self._timeout)
        if not acquired:
            raise StoreTimeoutError(f"store lock not acquired within {self._timeout}s")

    def __exit__(self, *exc_info: object) -> None:
        self._lock.release()
