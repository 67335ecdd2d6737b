from fastapi import APIRouter

from .coupons import router as coupons_router
from .points import router as points_router
from .rewards import router as rewards_router

# prefix 는 각 router 파일 내부에서 정의되어 있음 (/points, /rewards, /coupons)
api_router = APIRouter()
api_router.include_router(points_router)
api_router.include_router(rewards_router)
api_router.include_router(coupons_router)
