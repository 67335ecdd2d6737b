from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logger import setup_logger
from common.middleware.request_trace import RequestTraceMiddleware

from .api.health import router as health_router
from .api.v1 import api_router
from .config import get_port
from .exceptions import StoreError, StoreTimeoutError


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - framework hook
    yield


async def handle_store_error(request: Request, exc: Exception) -> JSONResponse:
    """저장소 장애는 부분 상태를 노출하지 않고 재시도 안내만 돌려준다."""
    logger.error(
        "points store unavailable: %s",
        exc,
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": {
                "code": "store_timeout" if isinstance(exc, StoreTimeoutError) else "store_unavailable",
                "message": "일시적인 오류가 발생했습니다. 잠시 후 다시 시도해 주세요.",
            }
        },
    )


def create_app() -> FastAPI:
    setup_logger()
    app = FastAPI(
        title="Homezy Points Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestTraceMiddleware)
    app.add_exception_handler(StoreError, handle_store_error)

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(
        "points_service.app.main:app",
        host="0.0.0.0",
        port=get_port(),
        reload=False,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
