import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import WatchError

from kindred.core.config import settings
from kindred.core.errors import Conflict, StorageUnavailable, VersionConflict

T = TypeVar("T")


@dataclass
class Write:
    """One document write (or delete) inside an atomic `save_many` batch."""

    collection: str
    doc: dict[str, Any]
    delete: bool = False
    model: Any = None


class DocumentStore:
    """
    Redis-backed JSON document store.

    Each document lives under `<prefix><collection>:<id>` and carries an integer
    `version`. Writes are accepted only when the stored version still equals the
    version the caller read, and a batch of writes is applied in a single
    MULTI/EXEC transaction watched on every key it touches.
    """

    def __init__(self, client: redis.Redis | None = None, url: str | None = None, prefix: str | None = None) -> None:
        self._client = client
        self.url = url or settings.REDIS_URL
        self.prefix = prefix if prefix is not None else settings.REDIS_KEY_PREFIX
        if client is None and not self.url:
            logger.warning("REDIS_URL is not set. Document storage will fail until configured.")

    async def get_client(self) -> redis.Redis:
        if self._client is None:
            logger.info("Creating Redis client for DocumentStore")
            self._client = redis.from_url(
                self.url,
                decode_responses=True,
                encoding="utf-8",
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=getattr(settings, "REDIS_MAX_CONNECTIONS", 100),
                health_check_interval=30,
                socket_keepalive=True,
            )
        return self._client

    async def close(self) -> None:
        """Close and disconnect the Redis client"""
        if self._client is not None:
            try:
                await self._client.aclose()
                logger.info("DocumentStore client closed")
            except Exception as exc:
                logger.warning(f"Failed to close DocumentStore client: {exc}")
            finally:
                self._client = None

    def _key(self, collection: str, doc_id: str) -> str:
        return f"{self.prefix}{collection}:{doc_id}"

    def _ids_key(self, collection: str) -> str:
        return f"{self.prefix}{collection}:_ids"

    def _unique_key(self, collection: str, field: str) -> str:
        return f"{self.prefix}{collection}:_unique:{field}"

    @staticmethod
    def _decode(raw: str | None) -> dict[str, Any] | None:
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Skipping undecodable document")
            return None

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        try:
            client = await self.get_client()
            raw = await client.get(self._key(collection, doc_id))
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to read {collection}/{doc_id}: {exc}")
            raise StorageUnavailable() from exc
        return self._decode(raw)

    async def list_all(self, collection: str) -> list[dict[str, Any]]:
        """Return every document in a collection, in no particular order."""
        try:
            client = await self.get_client()
            ids = await client.smembers(self._ids_key(collection))
            if not ids:
                return []
            raws = await client.mget([self._key(collection, doc_id) for doc_id in ids])
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to list {collection}: {exc}")
            raise StorageUnavailable() from exc
        docs = [self._decode(raw) for raw in raws]
        return [doc for doc in docs if doc is not None]

    async def save(self, collection: str, doc: dict[str, Any]) -> dict[str, Any]:
        await self.save_many([Write(collection, doc)])
        return doc

    async def delete(self, collection: str, doc: dict[str, Any]) -> None:
        await self.save_many([Write(collection, doc, delete=True)])

    async def save_many(self, writes: list[Write]) -> None:
        """
        Apply all writes or none of them.

        Raises VersionConflict when any document changed since it was read (a
        new document must be written with version 0). On success the version of
        every saved document dict (and its model, when given) is bumped in place.
        """
        if not writes:
            return
        keys = [self._key(w.collection, w.doc["id"]) for w in writes]
        payloads: list[dict[str, Any]] = []
        try:
            client = await self.get_client()
            async with client.pipeline(transaction=True) as pipe:
                await pipe.watch(*keys)
                for key, write in zip(keys, writes):
                    stored = self._decode(await pipe.get(key))
                    stored_version = stored.get("version", 0) if stored else 0
                    if stored_version != write.doc.get("version", 0):
                        raise VersionConflict(key)
                    payloads.append({**write.doc, "version": stored_version + 1})

                pipe.multi()
                for key, write, payload in zip(keys, writes, payloads):
                    ids_key = self._ids_key(write.collection)
                    if write.delete:
                        pipe.delete(key)
                        pipe.srem(ids_key, write.doc["id"])
                    else:
                        pipe.set(key, json.dumps(payload))
                        pipe.sadd(ids_key, write.doc["id"])
                await pipe.execute()
        except WatchError as exc:
            raise VersionConflict(", ".join(keys)) from exc
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to write {', '.join(keys)}: {exc}")
            raise StorageUnavailable() from exc

        for write, payload in zip(writes, payloads):
            write.doc["version"] = payload["version"]
            if write.model is not None:
                write.model.version = payload["version"]

    async def claim_unique(self, collection: str, field: str, value: str, doc_id: str) -> bool:
        """Reserve `value` for `doc_id`. False when another document already holds it."""
        try:
            client = await self.get_client()
            key = self._unique_key(collection, field)
            if await client.hsetnx(key, value, doc_id):
                return True
            return await client.hget(key, value) == doc_id
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to claim unique {collection}.{field}: {exc}")
            raise StorageUnavailable() from exc

    async def release_unique(self, collection: str, field: str, value: str) -> None:
        try:
            client = await self.get_client()
            await client.hdel(self._unique_key(collection, field), value)
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to release unique {collection}.{field}: {exc}")
            raise StorageUnavailable() from exc

    async def lookup_unique(self, collection: str, field: str, value: str) -> str | None:
        try:
            client = await self.get_client()
            return await client.hget(self._unique_key(collection, field), value)
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to look up unique {collection}.{field}: {exc}")
            raise StorageUnavailable() from exc

    async def ping(self) -> bool:
        try:
            client = await self.get_client()
            return bool(await client.ping())
        except (redis.RedisError, OSError) as exc:
            logger.warning(f"Redis ping failed: {exc}")
            return False


async def retry_on_conflict(operation: Callable[[], Awaitable[T]], attempts: int | None = None) -> T:
    """Replay a read-modify-write until it commits without a version conflict."""
    attempts = attempts or settings.STORE_MAX_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except VersionConflict as exc:
            logger.debug(f"Version conflict on {exc.key} (attempt {attempt}/{attempts})")
    logger.warning(f"Giving up after {attempts} conflicting writes")
    raise Conflict("The record was modified by another request. Please retry.")
