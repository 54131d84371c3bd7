"""Redis implementation of CredentialStore.

Each issued credential is one JSON document under

    <db_name>:issued_credentials:<id>

SET with NX ("only if not exists") is a single atomic command, which is
exactly the uniqueness constraint issuance needs: of N concurrent SET NX
calls for the same key, Redis accepts one and answers nil to the rest.
No TTL is set; issued credentials never expire.
"""

from __future__ import annotations

import json
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from credential_service.core.errors import StoreUnavailable
from credential_service.models.credential import IssuedCredential
from credential_service.repos.credential_store import (
    Inserted,
    InsertResult,
    StoreFailure,
    UniqueConstraintViolation,
)

logger = logging.getLogger(__name__)

_STORE_ERRORS = (RedisError, OSError, TimeoutError)


class RedisCredentialStore:
    """Satisfies the CredentialStore Protocol using Redis."""

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        db_name: str = "kube_credential",
        timeout_seconds: float = 5.0,
        client: aioredis.Redis | None = None,  # type: ignore[type-arg]
    ) -> None:
        self._redis_url = redis_url
        self._prefix = f"{db_name}:issued_credentials:"
        self._timeout = timeout_seconds
        self._redis = client

    async def connect(self) -> None:
        if self._redis is None:
            if not self._redis_url:
                raise ValueError("RedisCredentialStore needs a redis_url or a client")
            self._redis = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                max_connections=20,
                socket_timeout=self._timeout,
                socket_connect_timeout=self._timeout,
            )
        if await self.ping():
            logger.info("Redis credential store connected (prefix=%s)", self._prefix)
        else:
            # Keep starting; /ready reports 503 until Redis answers.
            logger.error("Redis credential store unreachable on startup")

    async def close(self) -> None:
        if self._redis is None:
            return
        await self._redis.aclose()
        self._redis = None
        logger.info("Redis connection pool closed")

    async def ping(self) -> bool:
        if self._redis is None:
            return False
        try:
            await self._redis.ping()  # type: ignore[misc]
        except _STORE_ERRORS:
            logger.warning("Redis ping failed", exc_info=True)
            return False
        return True

    async def find_by_id(self, credential_id: str) -> IssuedCredential | None:
        client = self._require_client()
        try:
            raw = await client.get(self._key(credential_id))
        except _STORE_ERRORS as exc:
            raise StoreUnavailable(_describe(exc)) from exc
        if raw is None:
            return None
        try:
            return IssuedCredential.from_document(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            # Something other than this service wrote under our key.
            logger.error("Unreadable credential document for %s", credential_id)
            raise StoreUnavailable("corrupt credential document") from exc

    async def insert_unique(self, record: IssuedCredential) -> InsertResult:
        try:
            client = self._require_client()
        except StoreUnavailable as exc:
            return StoreFailure(exc.message)

        payload = json.dumps(record.to_document())
        try:
            accepted = await client.set(self._key(record.id), payload, nx=True)
        except _STORE_ERRORS as exc:
            return StoreFailure(_describe(exc))
        if not accepted:
            return UniqueConstraintViolation(credential_id=record.id)
        return Inserted(record=record)

    def _key(self, credential_id: str) -> str:
        return f"{self._prefix}{credential_id}"

    def _require_client(self) -> aioredis.Redis:  # type: ignore[type-arg]
        if self._redis is None:
            raise StoreUnavailable("DB not connected")
        return self._redis


def _describe(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError):
        return "store operation timed out"
    return str(exc) or exc.__class__.__name__
