"""로열티 티어 테이블.

누적 포인트 구간별로 티어가 정해진다. 티어는 배포 시점에 고정된 상수이며,
원장은 잔액이 바뀔 때마다 여기서 티어를 다시 계산한다.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Tier:
    id: str
    name: str
    min: int  # 이 티어가 시작되는 누적 포인트 (포함)
    multiplier: float  # 적립 배율. 현재 적립 계산에는 적용하지 않는다.
    color: str


TIERS: tuple[Tier, ...] = (
    Tier(id="bronze", name="Bronze", min=0, multiplier=1.0, color="#CD7F32"),
    Tier(id="silver", name="Silver", min=500, multiplier=1.05, color="#C0C0C0"),
    Tier(id="gold", name="Gold", min=1500, multiplier=1.1, color="#D4AF37"),
    Tier(id="platinum", name="Platinum", min=4000, multiplier=1.15, color="#E5E4E2"),
)

DEFAULT_TIER_ID = TIERS[0].id


def _validate_tiers(tiers: tuple[Tier, ...]) -> tuple[int, ...]:
    if not tiers or tiers[0].min != 0:
        raise RuntimeError("first tier must start at 0 points")
    thresholds = tuple(t.min for t in tiers)
    for prev, cur in zip(thresholds, thresholds[1:]):
        if cur <= prev:
            raise RuntimeError(f"tier thresholds must be strictly increasing: {thresholds}")
    return thresholds


_THRESHOLDS = _validate_tiers(TIERS)


@dataclass(frozen=True, slots=True)
class TierProgress:
    """현재 티어 안에서 다음 티어까지의 진행 상황."""

    current: Tier
    next: Tier | None
    points_in_tier: int  # 현재 티어 시작점 이후로 쌓은 포인트
    points_span: int | None  # 현재 티어의 폭 (최상위 티어면 None)
    percent: float  # 0 ~ 100


def tier_for_points(total: int) -> Tier:
    """min <= total 을 만족하는 티어 중 min 이 가장 큰 티어를 반환한다.

    음수 잔액은 원장에서 나오지 않지만, 들어오더라도 첫 티어로 취급한다.
    """
    index = bisect_right(_THRESHOLDS, total) - 1
    return TIERS[max(index, 0)]


def next_tier(total: int) -> Tier | None:
    """현재 티어 바로 위 티어. 최상위 티어면 None."""
    index = tier_rank(tier_for_points(total).id) + 1
    return TIERS[index] if index < len(TIERS) else None


def tier_rank(tier_id: str) -> int:
    for index, tier in enumerate(TIERS):
        if tier.id == tier_id:
            return index
    raise KeyError(f"unknown tier: {tier_id}")


def get_tier(tier_id: str) -> Tier:
    return TIERS[tier_rank(tier_id)]


def tier_progress(total: int) -> TierProgress:
    current = tier_for_points(total)
    upcoming = next_tier(total)
    points_in_tier = max(0, total - current.min)

    if upcoming is None:
        return TierProgress(
            current=current,
            next=None,
            points_in_tier=points_in_tier,
            points_span=None,
            percent=100.0,
        )

    span = upcoming.min - current.min
    return TierProgress(
        current=current,
        next=upcoming,
        points_in_tier=points_in_tier,
        points_span=span,
        percent=min(100.0, points_in_tier / span * 100),
    )
