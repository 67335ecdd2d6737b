"""포인트 원장 레포지토리 구현체 (MongoDB).

세션이 주어지면 모든 호출이 그 세션(트랜잭션)에 묶인다.
"""

from __future__ import annotations

from datetime import datetime

from pymongo import ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database

from .documents.points_document import PointsAccountDocument, PointTransactionDocument
from .interfaces import PointsAccountRepositoryInterface, PointTransactionRepositoryInterface
from ..models.points import PointsAccount, PointTransaction
from ..models.tier import DEFAULT_TIER_ID


MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def normalize_page(page: int, page_size: int) -> tuple[int, int]:
    if page <= 0:
        page = 1
    if page_size <= 0 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


class PointsAccountRepository(PointsAccountRepositoryInterface):
    """points_accounts 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["points_accounts"]
        self._session = session

    def get_or_create(self, user_id: str, now: datetime) -> PointsAccount:
        """user_id 유니크 인덱스 + $setOnInsert upsert 로 한 번에 조회/초기화한다.

        동시에 처음 조회해도 초기 레코드는 하나만 만들어진다.
        """
        doc = self._col.find_one_and_update(
            {"user_id": user_id},
            {
                "$setOnInsert": {
                    "user_id": user_id,
                    "total": 0,
                    "tier": DEFAULT_TIER_ID,
                    "created_at": now,
                    "updated_at": now,
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
            session=self._session,
        )
        return PointsAccountDocument.model_validate(doc).to_domain()

    def save(self, account: PointsAccount) -> None:
        self._col.update_one(
            {"user_id": account.user_id},
            {
                "$set": {
                    "total": account.total,
                    "tier": account.tier,
                    "updated_at": account.updated_at,
                }
            },
            session=self._session,
        )


class PointTransactionRepository(PointTransactionRepositoryInterface):
    """point_transactions 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["point_transactions"]
        self._session = session

    def create(self, tx: PointTransaction) -> PointTransaction:
        """트랜잭션 로그 생성."""
        payload = PointTransactionDocument.from_domain(tx).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return tx.model_copy(update={"id": str(result.inserted_id)})

    def list_by_user(
        self, user_id: str, page: int, page_size: int
    ) -> tuple[list[PointTransaction], int]:
        """최신순 포인트 변동 이력."""
        page, page_size = normalize_page(page, page_size)
        skip = (page - 1) * page_size

        total = self._col.count_documents({"user_id": user_id}, session=self._session)
        cursor = self._col.find(
            {"user_id": user_id},
            sort=[("created_at", -1), ("_id", -1)],
            skip=skip,
            limit=page_size,
            session=self._session,
        )

        items: list[PointTransaction] = []
        for raw in cursor:
            items.append(PointTransactionDocument.model_validate(raw).to_domain())

        return items, total
