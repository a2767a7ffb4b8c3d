"""
Nullifier Store
===============

Single-use reservations that make each role proof verifiable once.

Lifecycle of a record:
    reserve()   at generation time   -> unspent, expires after the TTL
    try_spend() at verification time -> spent (atomic check-and-set)

Both operations are atomic per nullifier hash: two verifiers racing to
spend the same nullifier never both succeed.

Backends:
- InMemoryNullifierStore (development/testing, single process)
- RedisNullifierStore (shared across processes, Lua scripts for atomicity)

Usage:
    store = get_nullifier_store()
    await store.reserve(nullifier, proof_id, owner_id, digest, ttl_seconds=3600)
    status = await store.try_spend(nullifier, proof_id, digest)
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from datetime import datetime, timedelta
from typing import Any, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError

from rolezk.config import StoreBackend, settings
from rolezk.logging import get_logger
from rolezk.zk.crypto import Clock, utc_now
from rolezk.zk.errors import StoreUnavailableError
from rolezk.zk.models import NullifierRecord, ReserveStatus, SpendStatus, as_utc


logger = get_logger(__name__)

T = TypeVar("T")


async def call_with_timeout(operation: Awaitable[T], timeout_seconds: float) -> T:
    """Await a store operation, surfacing a timeout as StoreUnavailableError."""
    try:
        return await asyncio.wait_for(operation, timeout=timeout_seconds)
    except TimeoutError as e:
        raise StoreUnavailableError(
            f"Nullifier store did not answer within {timeout_seconds}s"
        ) from e


class NullifierStore(ABC):
    """
    Abstract nullifier store.

    Implements the Strategy pattern over interchangeable backends.
    """

    @property
    @abstractmethod
    def backend(self) -> StoreBackend:
        ...

    @abstractmethod
    async def reserve(
        self,
        nullifier_hash: str,
        proof_id: str,
        owner_id: str,
        transcript_digest: str,
        ttl_seconds: int,
        algorithm: str | None = None,
    ) -> ReserveStatus:
        """Insert an unspent record if no live record exists for the hash."""
        ...

    @abstractmethod
    async def try_spend(
        self,
        nullifier_hash: str,
        proof_id: str,
        transcript_digest: str,
    ) -> SpendStatus:
        """
        Atomically mark a live, unspent, matching record as spent.

        A record whose proof_id or transcript digest differ is left
        untouched and reported as MISMATCH.
        """
        ...

    @abstractmethod
    async def get(self, nullifier_hash: str) -> NullifierRecord | None:
        ...

    @abstractmethod
    async def prune_expired(self) -> int:
        """Drop expired records. Returns the number removed."""
        ...

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        ...


class InMemoryNullifierStore(NullifierStore):
    """
    In-memory nullifier store.

    A process-local lock serializes every operation, so the store is safe
    across asyncio tasks and threads alike. Data is lost on restart.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._records: dict[str, NullifierRecord] = {}
        self._lock = threading.Lock()

        logger.debug("memory_nullifier_store_initialized")

    @property
    def backend(self) -> StoreBackend:
        return StoreBackend.MEMORY

    async def reserve(
        self,
        nullifier_hash: str,
        proof_id: str,
        owner_id: str,
        transcript_digest: str,
        ttl_seconds: int,
        algorithm: str | None = None,
    ) -> ReserveStatus:
        now = self._clock()
        with self._lock:
            existing = self._records.get(nullifier_hash)
            if existing is not None and not existing.is_expired(now):
                logger.warning(
                    "nullifier_reserve_collision",
                    nullifier=nullifier_hash,
                    proof_id=proof_id,
                )
                return ReserveStatus.ALREADY_EXISTS

            self._records[nullifier_hash] = NullifierRecord(
                nullifier_hash=nullifier_hash,
                proof_id=proof_id,
                owner_id=owner_id,
                transcript_digest=transcript_digest,
                algorithm=algorithm,
                created_at=now,
                expires_at=now + timedelta(seconds=ttl_seconds),
            )

        logger.debug("nullifier_reserved", nullifier=nullifier_hash, proof_id=proof_id)
        return ReserveStatus.OK

    async def try_spend(
        self,
        nullifier_hash: str,
        proof_id: str,
        transcript_digest: str,
    ) -> SpendStatus:
        now = self._clock()
        with self._lock:
            record = self._records.get(nullifier_hash)
            if record is None:
                return SpendStatus.NOT_FOUND
            if record.is_expired(now):
                del self._records[nullifier_hash]
                return SpendStatus.EXPIRED
            if record.spent:
                return SpendStatus.ALREADY_SPENT
            if record.proof_id != proof_id or record.transcript_digest != transcript_digest:
                return SpendStatus.MISMATCH

            self._records[nullifier_hash] = record.model_copy(
                update={"spent": True, "spent_at": now},
            )

        logger.debug("nullifier_spent", nullifier=nullifier_hash, proof_id=proof_id)
        return SpendStatus.OK

    async def get(self, nullifier_hash: str) -> NullifierRecord | None:
        with self._lock:
            return self._records.get(nullifier_hash)

    async def prune_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [h for h, r in self._records.items() if r.is_expired(now)]
            for nullifier_hash in expired:
                del self._records[nullifier_hash]

        if expired:
            logger.debug("nullifiers_pruned", count=len(expired))
        return len(expired)

    async def health_check(self) -> dict[str, Any]:
        with self._lock:
            total = len(self._records)
            spent = sum(1 for r in self._records.values() if r.spent)
        return {
            "status": "healthy",
            "backend": self.backend.value,
            "records": total,
            "spent": spent,
        }

    def clear_all(self) -> None:
        """Clear all records (for testing)."""
        with self._lock:
            self._records.clear()


# Keys are hashes; expiry is enforced both by the key TTL and by the
# expires_at_ms field so that a clock-skewed TTL cannot revive a record.
_RESERVE_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
redis.call('HSET', KEYS[1],
    'proof_id', ARGV[1],
    'owner_id', ARGV[2],
    'transcript_digest', ARGV[3],
    'created_at', ARGV[4],
    'expires_at', ARGV[5],
    'expires_at_ms', ARGV[6],
    'algorithm', ARGV[8],
    'spent', '0')
redis.call('PEXPIRE', KEYS[1], ARGV[7])
return 1
"""

_SPEND_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 'not_found'
end
local f = redis.call('HMGET', KEYS[1], 'expires_at_ms', 'spent', 'proof_id', 'transcript_digest')
if tonumber(f[1]) < tonumber(ARGV[1]) then
    redis.call('DEL', KEYS[1])
    return 'expired'
end
if f[2] == '1' then
    return 'already_spent'
end
if f[3] ~= ARGV[2] or f[4] ~= ARGV[3] then
    return 'mismatch'
end
redis.call('HSET', KEYS[1], 'spent', '1', 'spent_at', ARGV[4])
return 'ok'
"""


def _epoch_ms(value: datetime) -> int:
    return int(as_utc(value).timestamp() * 1000)


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode()
    return str(value)


class RedisNullifierStore(NullifierStore):
    """
    Redis-backed nullifier store.

    Reservation and spending run as Lua scripts, which Redis executes
    atomically, so any number of processes may share one store.
    """

    def __init__(
        self,
        client: Redis,
        key_prefix: str = "rolezk:nullifier:",
        clock: Clock = utc_now,
    ) -> None:
        self._client = client
        self._key_prefix = key_prefix
        self._clock = clock
        self._reserve = client.register_script(_RESERVE_SCRIPT)
        self._spend = client.register_script(_SPEND_SCRIPT)

    @property
    def backend(self) -> StoreBackend:
        return StoreBackend.REDIS

    def _key(self, nullifier_hash: str) -> str:
        return f"{self._key_prefix}{nullifier_hash}"

    async def reserve(
        self,
        nullifier_hash: str,
        proof_id: str,
        owner_id: str,
        transcript_digest: str,
        ttl_seconds: int,
        algorithm: str | None = None,
    ) -> ReserveStatus:
        now = self._clock()
        expires_at = now + timedelta(seconds=ttl_seconds)
        try:
            inserted = await self._reserve(
                keys=[self._key(nullifier_hash)],
                args=[
                    proof_id,
                    owner_id,
                    transcript_digest,
                    now.isoformat(),
                    expires_at.isoformat(),
                    _epoch_ms(expires_at),
                    ttl_seconds * 1000,
                    algorithm or "",
                ],
            )
        except RedisError as e:
            logger.error("redis_nullifier_reserve_failed", error=str(e))
            raise StoreUnavailableError(str(e)) from e

        if int(inserted) != 1:
            logger.warning(
                "nullifier_reserve_collision",
                nullifier=nullifier_hash,
                proof_id=proof_id,
            )
            return ReserveStatus.ALREADY_EXISTS
        return ReserveStatus.OK

    async def try_spend(
        self,
        nullifier_hash: str,
        proof_id: str,
        transcript_digest: str,
    ) -> SpendStatus:
        now = self._clock()
        try:
            outcome = await self._spend(
                keys=[self._key(nullifier_hash)],
                args=[_epoch_ms(now), proof_id, transcript_digest, now.isoformat()],
            )
        except RedisError as e:
            logger.error("redis_nullifier_spend_failed", error=str(e))
            raise StoreUnavailableError(str(e)) from e

        return SpendStatus(_text(outcome))

    async def get(self, nullifier_hash: str) -> NullifierRecord | None:
        try:
            raw = await self._client.hgetall(self._key(nullifier_hash))
        except RedisError as e:
            raise StoreUnavailableError(str(e)) from e

        if not raw:
            return None
        fields = {_text(k): _text(v) for k, v in raw.items()}
        return NullifierRecord(
            nullifier_hash=nullifier_hash,
            proof_id=fields["proof_id"],
            owner_id=fields["owner_id"],
            transcript_digest=fields["transcript_digest"],
            algorithm=fields.get("algorithm") or None,
            created_at=datetime.fromisoformat(fields["created_at"]),
            expires_at=datetime.fromisoformat(fields["expires_at"]),
            spent=fields.get("spent") == "1",
            spent_at=datetime.fromisoformat(fields["spent_at"]) if fields.get("spent_at") else None,
        )

    async def prune_expired(self) -> int:
        # Key TTLs expire records server-side.
        return 0

    async def health_check(self) -> dict[str, Any]:
        import time

        try:
            start = time.perf_counter()
            pong = await self._client.ping()
            latency_ms = (time.perf_counter() - start) * 1000
            return {
                "status": "healthy" if pong else "unhealthy",
                "backend": self.backend.value,
                "latency_ms": round(latency_ms, 2),
            }
        except RedisError as e:
            logger.error("redis_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "backend": self.backend.value,
                "error": str(e),
            }


class NullifierPruner:
    """Background task that periodically prunes expired records."""

    def __init__(self, store: NullifierStore, interval_seconds: float) -> None:
        self._store = store
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="nullifier-pruner")
        logger.info("nullifier_pruner_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("nullifier_pruner_stopped")

    async def run_once(self) -> int:
        try:
            removed = await self._store.prune_expired()
        except StoreUnavailableError as e:
            logger.warning("nullifier_prune_failed", error=str(e))
            return 0
        if removed:
            logger.info("nullifiers_pruned", count=removed)
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.run_once()


# Global store instance
_store: NullifierStore | None = None


def get_nullifier_store() -> NullifierStore:
    """
    Get the configured nullifier store instance.

    Returns:
        NullifierStore for the backend selected in settings
    """
    global _store

    if _store is None:
        backend = settings.proof.store_backend

        if backend == StoreBackend.MEMORY:
            _store = InMemoryNullifierStore()
        elif backend == StoreBackend.REDIS:
            from rolezk.database.redis import RedisClient

            _store = RedisNullifierStore(
                RedisClient.get_client(),
                key_prefix=settings.redis.key_prefix,
            )
        else:
            raise ValueError(f"Unknown nullifier store backend: {backend}")

        logger.info("nullifier_store_initialized", backend=backend.value)

    return _store


def set_nullifier_store(store: NullifierStore) -> None:
    """Set a custom nullifier store."""
    global _store
    _store = store
    logger.info("nullifier_store_set", backend=store.backend.value)


def reset_nullifier_store() -> None:
    """Reset the store to be re-initialized."""
    global _store
    _store = None
