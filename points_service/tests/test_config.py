from __future__ import annotations

import pytest

from common.mongo.config import get_mongo_db_name, get_mongo_uri, is_replica_set_required

from points_service.app import config as config_module
from points_service.app.config import get_port, load_config, parse_config


def test_parse_config_defaults_for_empty_mapping() -> None:
    cfg = parse_config({})

    assert cfg.accrual.booking == 100
    assert cfg.accrual.review_received == 50
    assert cfg.accrual.review_deleted == -50
    assert cfg.coupon.code_prefix == "HZ"
    assert cfg.coupon.ttl_days == 30
    assert cfg.coupon.code_attempts == 5
    assert cfg.store.backend == "mongo"
    assert cfg.store.timeout_seconds == 10.0


def test_parse_config_reads_sections() -> None:
    cfg = parse_config(
        {
            "accrual": {"booking": "120"},
            "coupon": {"code_prefix": "hx", "ttl_days": 7},
            "store": {"backend": "Memory", "timeout_seconds": 0},
        }
    )

    assert cfg.accrual.booking == 120
    assert cfg.accrual.review_received == 50
    assert cfg.coupon.code_prefix == "HX"
    assert cfg.coupon.ttl_days == 7
    assert cfg.store.backend == "memory"
    assert cfg.store.timeout_seconds is None


@pytest.mark.parametrize(
    "data",
    [
        {"accrual": {"booking": "lots"}},
        {"coupon": {"ttl_days": 0}},
        {"coupon": {"code_prefix": " "}},
        {"store": {"timeout_seconds": "soon"}},
    ],
)
def test_parse_config_rejects_invalid_values(data: dict) -> None:
    with pytest.raises(RuntimeError):
        parse_config(data)


def test_load_config_applies_env_overrides(tmp_path, monkeypatch) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("store:\n  backend: mongo\n  timeout_seconds: 3\n", encoding="utf-8")
    monkeypatch.setenv(config_module.POINTS_CONFIG_PATH, str(path))
    monkeypatch.setenv(config_module.POINTS_STORE, "memory")
    monkeypatch.setenv(config_module.POINTS_STORE_TIMEOUT_SECONDS, "1.5")

    cfg = load_config()

    assert cfg.store.backend == "memory"
    assert cfg.store.timeout_seconds == 1.5


def test_load_config_rejects_unknown_backend(tmp_path, monkeypatch) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("store:\n  backend: redis\n", encoding="utf-8")
    monkeypatch.setenv(config_module.POINTS_CONFIG_PATH, str(path))
    monkeypatch.delenv(config_module.POINTS_STORE, raising=False)

    with pytest.raises(RuntimeError):
        load_config()


def test_missing_explicit_config_path(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv(config_module.POINTS_CONFIG_PATH, str(tmp_path / "nope.yaml"))

    with pytest.raises(RuntimeError):
        load_config()


def test_get_port(monkeypatch) -> None:
    monkeypatch.delenv(config_module.POINTS_SERVICE_PORT, raising=False)
    assert get_port() == 8004

    monkeypatch.setenv(config_module.POINTS_SERVICE_PORT, "9100")
    assert get_port() == 9100

    monkeypatch.setenv(config_module.POINTS_SERVICE_PORT, "port")
    with pytest.raises(RuntimeError):
        get_port()


def test_mongo_env_getters(monkeypatch) -> None:
    monkeypatch.delenv("MONGO_URI", raising=False)
    with pytest.raises(RuntimeError):
        get_mongo_uri()

    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/?replicaSet=rs0")
    monkeypatch.setenv("MONGO_DB_NAME", "  ")
    monkeypatch.setenv("MONGO_REQUIRE_REPLICA_SET", "off")

    assert get_mongo_uri().startswith("mongodb://")
    assert get_mongo_db_name() is None
    assert is_replica_set_required() is False
