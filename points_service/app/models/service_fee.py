from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ServiceFeePayment(BaseModel):
    """호스트가 포인트로 납부한 구독 서비스 수수료 기록. 1 포인트 = ₱1."""

    id: str | None = None
    host_id: str
    plan: str
    amount: int = Field(gt=0)
    status: str = "paid"
    created_at: datetime
    updated_at: datetime
