from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...exceptions import CouponCodeCollisionError, InsufficientBalanceError, UnknownRewardError
from ...services.redemption_service import RedemptionService, get_redemption_service
from ..schemas.common import PaginatedResponse
from ..schemas.rewards import (
    CouponResponse,
    RedeemRequest,
    RedeemResponse,
    RedemptionResponse,
    RewardResponse,
)
from .points import insufficient_points


router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("", summary="리워드 카탈로그")
def list_rewards(
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> list[RewardResponse]:
    return [RewardResponse.from_domain(r) for r in service.list_rewards()]


@router.post("/{user_id}/redeem", summary="리워드 교환")
def redeem_reward(
    user_id: str,
    req: RedeemRequest,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> RedeemResponse:
    """잔액 부족 시 402, 없는 리워드는 404."""
    try:
        result = service.redeem(user_id, req.reward_id)
    except UnknownRewardError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "unknown_reward", "message": str(exc)},
        ) from exc
    except InsufficientBalanceError as exc:
        raise insufficient_points(exc) from exc
    except CouponCodeCollisionError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "coupon_code_collision", "message": str(exc)},
        ) from exc

    return RedeemResponse(
        new_total=result.new_total,
        coupon=CouponResponse.from_domain(result.coupon) if result.coupon else None,
    )


@router.get("/{user_id}/redemptions", summary="리워드 교환 내역")
def list_redemptions(
    user_id: str,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
    page: int = Query(1, ge=1, description="조회할 페이지 (1부터 시작)"),
    page_size: int = Query(20, ge=1, le=100, description="페이지당 아이템 개수 (1~100)"),
) -> PaginatedResponse[RedemptionResponse]:
    items, total = service.list_redemptions(user_id, page, page_size)
    return PaginatedResponse(
        items=[RedemptionResponse.from_domain(r) for r in items],
        total=total,
        page=page,
        page_size=page_size,
    )
