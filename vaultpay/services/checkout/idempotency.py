"""One-click idempotency store.

Records are write-once: `put` inserts only when the key is absent and always
returns the record the store ends up holding. Expiry is by sweep (in-process
backend) or native key TTL (Redis backend).
"""

import asyncio
import json
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

import redis
from pydantic import BaseModel, Field

from vaultpay.common.config import GatewaySettings
from vaultpay.common.logging import logger
from vaultpay.common.metrics import idempotency_records, idempotency_swept_total


class IdempotencyRecord(BaseModel):
    """Terminal outcome of one logical one-click charge."""

    order_id: str
    order_status: str | None = None
    capture: dict[str, Any] | None = None
    created_at: float = Field(default_factory=time.time)

    def response(self) -> dict[str, Any]:
        return {"orderId": self.order_id, "orderStatus": self.order_status, "capture": self.capture}


class IdempotencyStore(ABC):
    """get/put/sweep contract shared by every backend."""

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    def get(self, key: str) -> IdempotencyRecord | None: ...

    @abstractmethod
    def put(self, key: str, record: IdempotencyRecord) -> IdempotencyRecord: ...

    @abstractmethod
    def sweep(self, now: float | None = None) -> int: ...


class InMemoryIdempotencyStore(IdempotencyStore):
    """Process-local, unbounded store. Suitable for a single worker only."""

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.time) -> None:
        super().__init__(ttl_seconds)
        self.clock = clock
        self._records: dict[str, IdempotencyRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def get(self, key: str) -> IdempotencyRecord | None:
        return self._records.get(key)

    def put(self, key: str, record: IdempotencyRecord) -> IdempotencyRecord:
        with self._lock:
            stored = self._records.setdefault(key, record)
            idempotency_records.set(len(self._records))
        if stored is not record:
            logger.info("idempotency record already present key=%s, keeping first write", key)
        return stored

    def sweep(self, now: float | None = None) -> int:
        now = self.clock() if now is None else now
        with self._lock:
            expired = [k for k, rec in self._records.items() if now - rec.created_at > self.ttl_seconds]
            for key in expired:
                del self._records[key]
            idempotency_records.set(len(self._records))
        if expired:
            idempotency_swept_total.inc(len(expired))
        return len(expired)


class RedisIdempotencyStore(IdempotencyStore):
    """Shared store backed by Redis `SET NX EX`; Redis handles expiry."""

    def __init__(self, rdb: redis.Redis, ttl_seconds: int, prefix: str = "idempotency:oneclick:") -> None:
        super().__init__(ttl_seconds)
        self.rdb = rdb
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> IdempotencyRecord | None:
        raw = self.rdb.get(self._key(key))
        if not raw:
            return None
        return IdempotencyRecord(**json.loads(raw))

    def put(self, key: str, record: IdempotencyRecord) -> IdempotencyRecord:
        created = self.rdb.set(self._key(key), record.model_dump_json(), nx=True, ex=self.ttl_seconds)
        if created:
            return record
        existing = self.get(key)
        # Key expired between SET NX and GET; our record is as good as any.
        return existing or record

    def sweep(self, now: float | None = None) -> int:
        return 0


def build_store(config: GatewaySettings) -> IdempotencyStore:
    """Pick the backend named by IDEMPOTENCY_BACKEND."""

    backend = config.idempotency_backend.lower()
    if backend == "memory":
        return InMemoryIdempotencyStore(config.idempotency_ttl_seconds)
    if backend == "redis":
        rdb = redis.Redis.from_url(config.redis_url, decode_responses=True)
        return RedisIdempotencyStore(rdb, config.idempotency_ttl_seconds)
    raise ValueError(f"unknown idempotency backend: {config.idempotency_backend}")


async def sweep_forever(store: IdempotencyStore, interval_seconds: float) -> None:
    """Periodically drop expired records, independent of request handling."""

    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = store.sweep()
        except Exception as exc:
            logger.exception("idempotency sweep failed: %s", exc)
            continue
        if removed:
            logger.info("idempotency sweep removed=%s", removed)
