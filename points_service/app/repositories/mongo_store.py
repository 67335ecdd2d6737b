"""MongoDB 기반 PointsStore.

원장 변경과 그에 딸린 로그/쿠폰/교환 기록을 하나의 멀티 도큐먼트 트랜잭션으로 묶는다.
같은 유저 문서를 동시에 고치는 트랜잭션은 write conflict 로 중단되고,
with_transaction 이 처음부터 다시 실행하므로 변동이 유실되지 않는다.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

import pymongo
from pymongo import MongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from ..exceptions import StoreError, StoreTimeoutError
from .coupon_repository import CouponRepository
from .interfaces import PointsStoreInterface, PointsUnitOfWork
from .points_repository import PointsAccountRepository, PointTransactionRepository
from .reward_repository import RewardRedemptionRepository
from .service_fee_repository import ServiceFeeRepository


logger = logging.getLogger(__name__)

T = TypeVar("T")


class MongoUnitOfWork:
    """하나의 ClientSession 에 묶인 레포지토리 묶음."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self.accounts = PointsAccountRepository(database, session)
        self.transactions = PointTransactionRepository(database, session)
        self.redemptions = RewardRedemptionRepository(database, session)
        self.coupons = CouponRepository(database, session)
        self.service_fees = ServiceFeeRepository(database, session)


class MongoPointsStore(PointsStoreInterface):
    def __init__(
        self,
        client: MongoClient,
        database: Database,
        *,
        default_timeout: float | None = None,
    ) -> None:
        self._client = client
        self._db = database
        self._default_timeout = default_timeout

    def run_in_transaction(
        self, work: Callable[[PointsUnitOfWork], T], *, timeout: float | None = None
    ) -> T:
        with self._translate_errors(timeout):
            with self._client.start_session() as session:
                return session.with_transaction(
                    lambda s: work(MongoUnitOfWork(self._db, s)),
                    read_concern=ReadConcern("snapshot"),
                    write_concern=WriteConcern("majority"),
                )

    def run(
        self, work: Callable[[PointsUnitOfWork], T], *, timeout: float | None = None
    ) -> T:
        with self._translate_errors(timeout):
            return work(MongoUnitOfWork(self._db))

    @contextmanager
    def _translate_errors(self, timeout: float | None) -> Iterator[None]:
        """pymongo.timeout 으로 블록 안의 모든 호출에 마감 시간을 걸고,
        드라이버 예외를 서비스 예외로 바꾼다. 비즈니스 예외는 그대로 통과한다.
        """
        effective = timeout if timeout is not None else self._default_timeout
        try:
            with pymongo.timeout(effective):
                yield
        except PyMongoError as exc:
            if exc.timeout:
                logger.warning("points store call timed out after %ss", effective)
                raise StoreTimeoutError(f"store call timed out after {effective}s") from exc
            logger.error("points store call failed: %s", exc)
            raise StoreError(str(exc)) from exc
