from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends

from ..config import AppConfig, get_app_config
from ..exceptions import InsufficientBalanceError
from ..models.points import PointSource, ServiceFeePaymentMeta
from ..models.service_fee import ServiceFeePayment
from ..repositories.interfaces import PointsStoreInterface, PointsUnitOfWork
from .ledger_service import Clock, PointsLedgerService, get_points_store, utc_now


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceFeePaymentResult:
    payment: ServiceFeePayment
    new_total: int


class ServiceFeeService:
    """호스트 구독 서비스 수수료를 포인트로 납부한다 (1 포인트 = ₱1)."""

    def __init__(
        self,
        store: PointsStoreInterface,
        ledger: PointsLedgerService,
        *,
        timeout: float | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._timeout = timeout
        self._clock = clock or utc_now

    def pay_with_points(self, host_id: str, plan: str, amount: int) -> ServiceFeePaymentResult:
        """잔액이 부족하면 InsufficientBalanceError. 차감과 납부 기록은 함께 커밋된다."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError(f"service fee must be a positive int, got {amount!r}")
        if not plan.strip():
            raise ValueError("service fee plan must not be empty")

        now = self._clock()
        result = self._store.run_in_transaction(
            lambda unit: self._pay_in(unit, host_id, plan, amount, now),
            timeout=self._timeout,
        )
        logger.info(
            "paid service fee with points",
            extra={
                "user_id": host_id,
                "source": str(PointSource.SERVICE_FEE_PAYMENT),
                "amount": -amount,
                "total_after": result.new_total,
            },
        )
        return result

    def list_for_host(self, host_id: str) -> list[ServiceFeePayment]:
        return self._store.run(
            lambda unit: unit.service_fees.list_by_host(host_id),
            timeout=self._timeout,
        )

    def _pay_in(
        self,
        unit: PointsUnitOfWork,
        host_id: str,
        plan: str,
        amount: int,
        now: datetime,
    ) -> ServiceFeePaymentResult:
        account = unit.accounts.get_or_create(host_id, now)
        if account.total < amount:
            raise InsufficientBalanceError(host_id, account.total, amount)

        tx = self._ledger.apply_delta_in(
            unit,
            host_id,
            -amount,
            PointSource.SERVICE_FEE_PAYMENT,
            ServiceFeePaymentMeta(plan=plan),
            now,
        )
        payment = unit.service_fees.create(
            ServiceFeePayment(
                host_id=host_id,
                plan=plan,
                amount=amount,
                status="paid",
                created_at=now,
                updated_at=now,
            )
        )
        return ServiceFeePaymentResult(payment=payment, new_total=tx.total_after)


def get_service_fee_service(
    store: PointsStoreInterface = Depends(get_points_store),
    config: AppConfig = Depends(get_app_config),
) -> ServiceFeeService:
    """FastAPI DI용 ServiceFeeService 팩토리."""
    timeout = config.store.timeout_seconds
    return ServiceFeeService(
        store,
        PointsLedgerService(store, timeout=timeout),
        timeout=timeout,
    )
