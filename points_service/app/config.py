from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml


DEFAULT_CONFIG_FILE_NAME = "config.yaml"

POINTS_CONFIG_PATH = "POINTS_CONFIG_PATH"
POINTS_STORE = "POINTS_STORE"
POINTS_STORE_TIMEOUT_SECONDS = "POINTS_STORE_TIMEOUT_SECONDS"
POINTS_SERVICE_PORT = "POINTS_SERVICE_PORT"


@dataclass(slots=True)
class AccrualConfig:
    """예약/리뷰 흐름에서 호스트에게 지급하는 고정 포인트."""

    booking: int = 100
    review_received: int = 50
    review_deleted: int = -50


@dataclass(slots=True)
class CouponConfig:
    code_prefix: str = "HZ"
    ttl_days: int = 30
    code_attempts: int = 5


@dataclass(slots=True)
class StoreConfig:
    backend: str = "mongo"  # "mongo" | "memory"
    timeout_seconds: float | None = 10.0


@dataclass(slots=True)
class AppConfig:
    """points-service 전체 설정 루트."""

    accrual: AccrualConfig = field(default_factory=AccrualConfig)
    coupon: CouponConfig = field(default_factory=CouponConfig)
    store: StoreConfig = field(default_factory=StoreConfig)


def _find_config_path() -> Path:
    """POINTS_CONFIG_PATH 가 있으면 그 경로를, 없으면 현재 작업 디렉토리부터
    상위로 올라가며 config.yaml 을 찾는다.
    """

    explicit = os.getenv(POINTS_CONFIG_PATH, "").strip()
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise RuntimeError(f"{POINTS_CONFIG_PATH} points to a missing file: {path}")
        return path

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate

    raise RuntimeError(
        f"{DEFAULT_CONFIG_FILE_NAME} not found. Place config.yaml in project root.",
    )


def _as_int(section: str, key: str, raw: object) -> int:
    try:
        return int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(f"invalid {section}.{key}: {raw!r}") from exc


def _parse_timeout(raw: object, origin: str) -> float | None:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(f"invalid {origin}: {raw!r}") from exc
    # 0 이하 값은 타임아웃 없음으로 간주한다.
    return value if value > 0 else None


def parse_config(data: dict) -> AppConfig:
    """YAML 에서 읽은 dict 를 AppConfig 로 변환한다. 빠진 키는 기본값을 쓴다."""

    defaults = AppConfig()

    accrual_raw = data.get("accrual") or {}
    accrual = AccrualConfig(
        booking=_as_int("accrual", "booking", accrual_raw.get("booking", defaults.accrual.booking)),
        review_received=_as_int(
            "accrual",
            "review_received",
            accrual_raw.get("review_received", defaults.accrual.review_received),
        ),
        review_deleted=_as_int(
            "accrual",
            "review_deleted",
            accrual_raw.get("review_deleted", defaults.accrual.review_deleted),
        ),
    )

    coupon_raw = data.get("coupon") or {}
    coupon = CouponConfig(
        code_prefix=str(coupon_raw.get("code_prefix", defaults.coupon.code_prefix)).strip().upper(),
        ttl_days=_as_int("coupon", "ttl_days", coupon_raw.get("ttl_days", defaults.coupon.ttl_days)),
        code_attempts=_as_int(
            "coupon",
            "code_attempts",
            coupon_raw.get("code_attempts", defaults.coupon.code_attempts),
        ),
    )
    if not coupon.code_prefix:
        raise RuntimeError("coupon.code_prefix must not be empty")
    if coupon.ttl_days <= 0 or coupon.code_attempts <= 0:
        raise RuntimeError("coupon.ttl_days and coupon.code_attempts must be positive")

    store_raw = data.get("store") or {}
    store = StoreConfig(
        backend=str(store_raw.get("backend", defaults.store.backend)).strip().lower(),
        timeout_seconds=_parse_timeout(
            store_raw.get("timeout_seconds", defaults.store.timeout_seconds),
            "store.timeout_seconds",
        ),
    )

    return AppConfig(accrual=accrual, coupon=coupon, store=store)


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    backend = os.getenv(POINTS_STORE, "").strip().lower()
    if backend:
        config.store.backend = backend
    if config.store.backend not in {"mongo", "memory"}:
        raise RuntimeError(
            f"{POINTS_STORE} must be 'mongo' or 'memory', got: {config.store.backend!r}"
        )

    timeout_raw = os.getenv(POINTS_STORE_TIMEOUT_SECONDS)
    if timeout_raw is not None:
        config.store.timeout_seconds = _parse_timeout(
            timeout_raw, POINTS_STORE_TIMEOUT_SECONDS
        )
    return config


def load_config() -> AppConfig:
    """points-service 설정을 로드하여 AppConfig 로 반환한다."""

    path = _find_config_path()
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise RuntimeError(f"{path} must contain a mapping at the top level")

    return _apply_env_overrides(parse_config(data))


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """FastAPI DI 및 런타임에서 공유하는 설정 (최초 1회만 로드)."""

    return load_config()


def get_port() -> int:
    raw = os.getenv(POINTS_SERVICE_PORT, "8004")
    try:
        return int(raw)
    except ValueError as exc:  # noqa: TRY003
        raise RuntimeError(f"{POINTS_SERVICE_PORT} must be an integer, got: {raw!r}") from exc
