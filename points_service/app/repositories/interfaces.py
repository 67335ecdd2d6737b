from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from ..models.coupon import Coupon, CouponStatus
from ..models.points import PointsAccount, PointTransaction
from ..models.reward import RewardRedemption
from ..models.service_fee import ServiceFeePayment


T = TypeVar("T")


class PointsAccountRepositoryInterface(Protocol):
    """PointsAccount 저장소 계약.

    - get_or_create 는 단일 upsert 로 동작해야 한다. 읽고 나서 조건부로 쓰는
      방식은 동시 최초 조회 시 초기 레코드가 둘 생길 수 있다.
    """

    def get_or_create(
        self, user_id: str, now: datetime
    ) -> PointsAccount:  # pragma: no cover - Protocol
        ...

    def save(self, account: PointsAccount) -> None:  # pragma: no cover - Protocol
        ...


class PointTransactionRepositoryInterface(Protocol):
    """append-only 포인트 변동 로그."""

    def create(
        self, tx: PointTransaction
    ) -> PointTransaction:  # pragma: no cover - Protocol
        ...

    def list_by_user(
        self, user_id: str, page: int, page_size: int
    ) -> tuple[list[PointTransaction], int]:  # pragma: no cover - Protocol
        ...


class RewardRedemptionRepositoryInterface(Protocol):
    def create(
        self, record: RewardRedemption
    ) -> RewardRedemption:  # pragma: no cover - Protocol
        ...

    def list_by_user(
        self, user_id: str, page: int, page_size: int
    ) -> tuple[list[RewardRedemption], int]:  # pragma: no cover - Protocol
        ...


class CouponRepositoryInterface(Protocol):
    """coupons 컬렉션 계약. code 는 전역 유니크(대문자 저장)."""

    def create(self, coupon: Coupon) -> Coupon:  # pragma: no cover - Protocol
        ...

    def exists_by_code(self, code: str) -> bool:  # pragma: no cover - Protocol
        ...

    def find_by_code(self, code: str) -> Coupon | None:  # pragma: no cover - Protocol
        ...

    def update_usage(
        self, coupon_id: str, used_count: int, status: CouponStatus, now: datetime
    ) -> None:  # pragma: no cover - Protocol
        ...

    def list_by_user(self, user_id: str) -> list[Coupon]:  # pragma: no cover - Protocol
        ...


class ServiceFeeRepositoryInterface(Protocol):
    def create(
        self, payment: ServiceFeePayment
    ) -> ServiceFeePayment:  # pragma: no cover - Protocol
        ...

    def list_by_host(
        self, host_id: str
    ) -> list[ServiceFeePayment]:  # pragma: no cover - Protocol
        ...


class PointsUnitOfWork(Protocol):
    """하나의 세션(트랜잭션)에 묶인 레포지토리 묶음."""

    accounts: PointsAccountRepositoryInterface
    transactions: PointTransactionRepositoryInterface
    redemptions: RewardRedemptionRepositoryInterface
    coupons: CouponRepositoryInterface
    service_fees: ServiceFeeRepositoryInterface


class PointsStoreInterface(Protocol):
    """Service 레이어가 의존하는 저장소 핸들.

    - run_in_transaction: work 안의 모든 쓰기가 함께 커밋되거나 함께 버려진다.
      work 에서 올라온 예외는 트랜잭션을 중단시킨 뒤 그대로 전파된다.
    - run: 트랜잭션 없이 읽기 위주의 작업을 실행한다.
    - timeout(초)이 지나면 StoreTimeoutError 를 발생시키며, 커밋된 것은 없다.
    """

    def run_in_transaction(
        self, work: Callable[[PointsUnitOfWork], T], *, timeout: float | None = None
    ) -> T:  # pragma: no cover - Protocol
        ...

    def run(
        self, work: Callable[[PointsUnitOfWork], T], *, timeout: float | None = None
    ) -> T:  # pragma: no cover - Protocol
        ...
