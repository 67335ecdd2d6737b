from __future__ import annotations

from pymongo.client_session import ClientSession
from pymongo.database import Database

from .documents.service_fee_document import ServiceFeePaymentDocument
from .interfaces import ServiceFeeRepositoryInterface
from ..models.service_fee import ServiceFeePayment


class ServiceFeeRepository(ServiceFeeRepositoryInterface):
    """service_fees 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["service_fees"]
        self._session = session

    def create(self, payment: ServiceFeePayment) -> ServiceFeePayment:
        payload = ServiceFeePaymentDocument.from_domain(payment).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return payment.model_copy(update={"id": str(result.inserted_id)})

    def list_by_host(self, host_id: str) -> list[ServiceFeePayment]:
        cursor = self._col.find(
            {"host_id": host_id},
            sort=[("created_at", -1), ("_id", -1)],
            session=self._session,
        )
        return [ServiceFeePaymentDocument.model_validate(raw).to_domain() for raw in cursor]
