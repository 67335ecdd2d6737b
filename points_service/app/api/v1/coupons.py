from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from ...exceptions import (
    CouponError,
    CouponExhaustedError,
    CouponExpiredError,
    CouponInactiveError,
    CouponNotFoundError,
)
from ...services.coupon_service import CouponService, get_coupon_service
from ..schemas.rewards import CouponResponse


router = APIRouter(prefix="/coupons", tags=["coupons"])


_COUPON_ERROR_CODES: dict[type[CouponError], str] = {
    CouponNotFoundError: "coupon_not_found",
    CouponInactiveError: "coupon_inactive",
    CouponExhaustedError: "coupon_used",
    CouponExpiredError: "coupon_expired",
}


def _coupon_http_error(exc: CouponError) -> HTTPException:
    code = _COUPON_ERROR_CODES.get(type(exc), "coupon_error")
    return HTTPException(
        status_code=(
            status.HTTP_404_NOT_FOUND
            if isinstance(exc, CouponNotFoundError)
            else status.HTTP_409_CONFLICT
        ),
        detail={"code": code, "message": str(exc)},
    )


@router.get("/users/{user_id}", summary="유저 보유 쿠폰 목록")
def list_user_coupons(
    user_id: str,
    service: Annotated[CouponService, Depends(get_coupon_service)],
) -> list[CouponResponse]:
    return [CouponResponse.from_domain(c) for c in service.list_for_user(user_id)]


@router.get("/{code}", summary="쿠폰 검증")
def validate_coupon(
    code: str,
    service: Annotated[CouponService, Depends(get_coupon_service)],
    host_id: str | None = None,
) -> CouponResponse:
    try:
        coupon = service.validate(code, host_id)
    except CouponError as exc:
        raise _coupon_http_error(exc) from exc
    return CouponResponse.from_domain(coupon)


@router.post("/{code}/consume", summary="쿠폰 사용 처리")
def consume_coupon(
    code: str,
    service: Annotated[CouponService, Depends(get_coupon_service)],
    host_id: str | None = None,
) -> CouponResponse:
    """체크아웃 완료 시 호출. 사용 횟수가 다 차면 쿠폰은 inactive 가 된다."""
    try:
        coupon = service.consume(code, host_id)
    except CouponError as exc:
        raise _coupon_http_error(exc) from exc
    return CouponResponse.from_domain(coupon)
