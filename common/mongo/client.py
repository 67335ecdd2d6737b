from __future__ import annotations

import logging
import threading
from typing import Optional, cast

from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient
from pymongo.database import Database

from .config import get_mongo_db_name, get_mongo_uri, is_replica_set_required


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """전역 MongoClient 싱글톤을 반환한다.

    - MONGO_URI 에서 URI 를 읽어온다.
    - ping 으로 연결을 검증한다.
    - 트랜잭션을 쓰기 위해 replica set(또는 mongos) 연결인지 확인한다.
    - 포인트 관련 컬렉션 인덱스를 한 번만 생성한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        uri = get_mongo_uri()
        client = MongoClient(uri, tz_aware=True)

        try:
            hello = client.admin.command("hello")
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        if is_replica_set_required() and not _supports_transactions(hello):
            client.close()
            raise RuntimeError(
                "MongoDB must run as a replica set or sharded cluster: "
                "points ledger writes require multi-document transactions",
            )

        db_name = get_mongo_db_name()
        try:
            if db_name:
                db = client[db_name]
            else:
                db = client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        try:
            ensure_indexes(db)
        except Exception as exc:  # noqa: BLE001
            # 유니크 인덱스 없이는 get-or-create 가 멱등하지 않으므로 치명적 오류로 간주한다.
            logger.error("failed to ensure MongoDB indexes: %s", exc)
            client.close()
            raise

        _client = client
        _db = db

        safe_db = cast(Database, _db)
        logger.info("MongoDB connected and indexes ensured (db=%s)", safe_db.name)
        return _client


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다."""

    global _db

    if _db is None:
        get_client()
    assert (
        _db is not None
    )  # get_client 에서 _db 를 초기화하지 못했다면 예외가 이미 발생했어야 한다.
    return _db


def _supports_transactions(hello: dict) -> bool:
    return bool(hello.get("setName")) or hello.get("msg") == "isdbgrid"


def ensure_indexes(db: Database) -> None:
    """필수 인덱스를 생성한다.

    트랜잭션 안에서는 인덱스를 만들 수 없으므로 연결 시점에 한 번만 수행한다.
    중복 생성해도 MongoDB 가 처리하므로 idempotent 하다.
    """

    db["points_accounts"].create_indexes(
        [
            IndexModel([("user_id", ASCENDING)], name="uniq_user_id", unique=True),
        ]
    )

    db["point_transactions"].create_indexes(
        [
            IndexModel(
                [("user_id", ASCENDING), ("created_at", DESCENDING), ("_id", DESCENDING)],
                name="idx_user_created_at_desc",
            ),
        ]
    )

    db["reward_redemptions"].create_indexes(
        [
            IndexModel(
                [("user_id", ASCENDING), ("created_at", DESCENDING), ("_id", DESCENDING)],
                name="idx_user_created_at_desc",
            ),
        ]
    )

    db["coupons"].create_indexes(
        [
            IndexModel([("code", ASCENDING)], name="uniq_code", unique=True),
            IndexModel([("user_id", ASCENDING)], name="idx_user_id"),
        ]
    )

    db["service_fees"].create_indexes(
        [
            IndexModel(
                [("host_id", ASCENDING), ("created_at", DESCENDING)],
                name="idx_host_created_at_desc",
            ),
        ]
    )
