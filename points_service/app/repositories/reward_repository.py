from __future__ import annotations

from pymongo.client_session import ClientSession
from pymongo.database import Database

from .documents.reward_document import RewardRedemptionDocument
from .interfaces import RewardRedemptionRepositoryInterface
from .points_repository import normalize_page
from ..models.reward import RewardRedemption


class RewardRedemptionRepository(RewardRedemptionRepositoryInterface):
    """reward_redemptions 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["reward_redemptions"]
        self._session = session

    def create(self, record: RewardRedemption) -> RewardRedemption:
        payload = RewardRedemptionDocument.from_domain(record).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return record.model_copy(update={"id": str(result.inserted_id)})

    def list_by_user(
        self, user_id: str, page: int, page_size: int
    ) -> tuple[list[RewardRedemption], int]:
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
        return [RewardRedemptionDocument.model_validate(raw).to_domain() for raw in cursor], total
