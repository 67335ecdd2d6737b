from __future__ import annotations

from datetime import datetime

from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.types import to_object_id

from .documents.coupon_document import CouponDocument
from .interfaces import CouponRepositoryInterface
from ..models.coupon import Coupon, CouponStatus


class CouponRepository(CouponRepositoryInterface):
    """coupons 컬렉션에 대한 MongoDB 접근 레이어.

    code 유니크 인덱스가 중복 발급을 막는 마지막 방어선이다.
    """

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["coupons"]
        self._session = session

    def create(self, coupon: Coupon) -> Coupon:
        payload = CouponDocument.from_domain(coupon).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return coupon.model_copy(update={"id": str(result.inserted_id)})

    def exists_by_code(self, code: str) -> bool:
        found = self._col.find_one(
            {"code": code.upper()}, {"_id": 1}, session=self._session
        )
        return found is not None

    def find_by_code(self, code: str) -> Coupon | None:
        raw = self._col.find_one({"code": code.upper()}, session=self._session)
        if raw is None:
            return None
        return CouponDocument.model_validate(raw).to_domain()

    def update_usage(
        self, coupon_id: str, used_count: int, status: CouponStatus, now: datetime
    ) -> None:
        self._col.update_one(
            {"_id": to_object_id(coupon_id)},
            {
                "$set": {
                    "used_count": used_count,
                    "status": str(status),
                    "updated_at": now,
                }
            },
            session=self._session,
        )

    def list_by_user(self, user_id: str) -> list[Coupon]:
        cursor = self._col.find(
            {"user_id": user_id},
            sort=[("created_at", -1), ("_id", -1)],
            session=self._session,
        )
        return [CouponDocument.model_validate(raw).to_domain() for raw in cursor]
