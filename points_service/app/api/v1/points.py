"""포인트 원장 API 라우터.

예약/리뷰/결제 흐름과 호스트 대시보드에서 호출한다.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...exceptions import InsufficientBalanceError
from ...models.tier import TIERS
from ...services.accrual_service import AccrualService, get_accrual_service
from ...services.ledger_service import PointsLedgerService, get_ledger_service
from ...services.service_fee_service import ServiceFeeService, get_service_fee_service
from ..schemas.common import PaginatedResponse
from ..schemas.points import (
    ActivityRequest,
    ApplyDeltaRequest,
    ApplyDeltaResponse,
    PointsAccountResponse,
    PointTransactionResponse,
    ServiceFeeRequest,
    ServiceFeeResponse,
    TierResponse,
)


router = APIRouter(prefix="/points", tags=["points"])


def insufficient_points(exc: InsufficientBalanceError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        detail={
            "code": "insufficient_points",
            "message": "포인트가 부족합니다.",
            "balance": exc.balance,
            "required": exc.required,
        },
    )


@router.get("/tiers", summary="티어 테이블 조회")
def list_tiers() -> list[TierResponse]:
    return [TierResponse.from_domain(t) for t in TIERS]


@router.get("/{user_id}", summary="포인트 잔액/티어 조회")
def get_points(
    user_id: str,
    ledger: Annotated[PointsLedgerService, Depends(get_ledger_service)],
) -> PointsAccountResponse:
    """잔액이 없던 유저는 0 포인트로 초기화된다."""
    account, progress = ledger.get_progress(user_id)
    return PointsAccountResponse.from_domain(account, progress)


@router.post("/{user_id}/delta", summary="포인트 수동 변동")
def apply_delta(
    user_id: str,
    req: ApplyDeltaRequest,
    ledger: Annotated[PointsLedgerService, Depends(get_ledger_service)],
) -> ApplyDeltaResponse:
    try:
        total = ledger.apply_delta(user_id, req.amount, req.source, req.meta)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return ApplyDeltaResponse(applied=total is not None, total=total)


@router.post("/{user_id}/activities", summary="예약/리뷰 활동 적립")
def record_activity(
    user_id: str,
    req: ActivityRequest,
    accrual: Annotated[AccrualService, Depends(get_accrual_service)],
) -> ApplyDeltaResponse:
    if req.activity == "booking":
        total = accrual.award_booking(
            user_id,
            booking_id=req.booking_id,
            listing_title=req.listing_name,
            booking_amount=req.booking_amount,
        )
    elif req.activity == "review_received":
        total = accrual.award_review(
            user_id,
            listing_id=req.listing_id,
            listing_name=req.listing_name,
            guest_id=req.guest_id,
            guest_name=req.guest_name,
            rating=req.rating,
        )
    else:
        total = accrual.revoke_review(
            user_id,
            listing_id=req.listing_id,
            listing_name=req.listing_name,
            guest_id=req.guest_id,
        )
    return ApplyDeltaResponse(applied=total is not None, total=total)


@router.get("/{user_id}/history", summary="포인트 변동 이력")
def get_history(
    user_id: str,
    ledger: Annotated[PointsLedgerService, Depends(get_ledger_service)],
    page: int = Query(1, ge=1, description="조회할 페이지 (1부터 시작)"),
    page_size: int = Query(20, ge=1, le=100, description="페이지당 아이템 개수 (1~100)"),
) -> PaginatedResponse[PointTransactionResponse]:
    items, total = ledger.get_history(user_id, page, page_size)
    return PaginatedResponse(
        items=[PointTransactionResponse.from_domain(tx) for tx in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/{user_id}/service-fee", summary="서비스 수수료 포인트 납부")
def pay_service_fee(
    user_id: str,
    req: ServiceFeeRequest,
    service: Annotated[ServiceFeeService, Depends(get_service_fee_service)],
) -> ServiceFeeResponse:
    try:
        result = service.pay_with_points(user_id, req.plan, req.amount)
    except InsufficientBalanceError as exc:
        raise insufficient_points(exc) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return ServiceFeeResponse.from_domain(result.payment, result.new_total)


@router.get("/{user_id}/service-fees", summary="서비스 수수료 납부 내역")
def list_service_fees(
    user_id: str,
    service: Annotated[ServiceFeeService, Depends(get_service_fee_service)],
) -> list[ServiceFeeResponse]:
    return [ServiceFeeResponse.from_domain(p) for p in service.list_for_host(user_id)]
