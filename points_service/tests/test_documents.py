from __future__ import annotations

from datetime import datetime, timedelta

from bson import ObjectId

from points_service.app.models.coupon import Coupon, CouponStatus
from points_service.app.models.points import (
    PointSource,
    PointTransaction,
    RedeemMeta,
    ReviewReceivedMeta,
)
from points_service.app.models.reward import DiscountType
from points_service.app.repositories.documents.coupon_document import CouponDocument
from points_service.app.repositories.documents.points_document import PointTransactionDocument


def _tx(meta, source: PointSource, now: datetime) -> PointTransaction:
    return PointTransaction(
        user_id="host-001",
        amount=50,
        source=source,
        meta=meta,
        total_after=50,
        tier_after="bronze",
        created_at=now,
        updated_at=now,
    )


def test_transaction_record_keeps_tagged_meta(clock) -> None:
    tx = _tx(ReviewReceivedMeta(listing_name="Loft", rating=5), PointSource.REVIEW_RECEIVED, clock())

    record = PointTransactionDocument.from_domain(tx).to_mongo_record()

    assert "_id" not in record
    assert record["source"] == "review_received"
    assert record["meta"]["source"] == "review_received"
    assert record["meta"]["rating"] == 5


def test_transaction_document_restores_typed_meta(clock) -> None:
    tx = _tx(RedeemMeta(reward_id="coupon-fixed-5", coupon=None), PointSource.REDEEM, clock())
    record = PointTransactionDocument.from_domain(tx).to_mongo_record()
    record["_id"] = ObjectId()

    restored = PointTransactionDocument.model_validate(record).to_domain()

    assert restored.id == str(record["_id"])
    assert restored.source == PointSource.REDEEM
    assert isinstance(restored.meta, RedeemMeta)
    assert restored.meta.coupon is None
    assert restored.created_at == clock()


def test_coupon_document_round_trips_enums(clock) -> None:
    now = clock()
    coupon_id = ObjectId()
    coupon = Coupon(
        id=str(coupon_id),
        code="HZ-5-ABC123",
        discount_type=DiscountType.FIXED,
        discount_value=5,
        host_id="host-001",
        user_id="host-001",
        reward_id="coupon-fixed-5",
        expires_at=now + timedelta(days=30),
        created_at=now,
        updated_at=now,
    )

    record = CouponDocument.from_domain(coupon).to_mongo_record()

    assert record["_id"] == coupon_id
    assert record["discount_type"] == "fixed"
    assert record["status"] == "active"
    restored = CouponDocument.model_validate(record).to_domain()
    assert restored.status == CouponStatus.ACTIVE
    assert restored.discount_type == DiscountType.FIXED
    assert restored == coupon
