from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.service_fee import ServiceFeePayment


class ServiceFeePaymentDocument(BaseDocument):
    """MongoDB service_fees 컬렉션 도큐먼트 모델."""

    host_id: str
    plan: str
    amount: int
    status: str

    @classmethod
    def from_domain(cls, payment: ServiceFeePayment) -> "ServiceFeePaymentDocument":
        return cls.model_validate(build_document_data_from_domain(payment))

    def to_domain(self) -> ServiceFeePayment:
        return ServiceFeePayment(
            id=from_object_id(self.id),
            host_id=self.host_id,
            plan=self.plan,
            amount=self.amount,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
