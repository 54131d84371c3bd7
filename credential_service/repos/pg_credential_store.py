"""PostgreSQL implementation of CredentialStore."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from credential_service.core.errors import StoreUnavailable
from credential_service.db.engine import create_engine_and_sessions
from credential_service.db.tables import IssuedCredentialRow
from credential_service.models.credential import IssuedCredential
from credential_service.repos.credential_store import (
    Inserted,
    InsertResult,
    StoreFailure,
    UniqueConstraintViolation,
)

logger = logging.getLogger(__name__)

_STORE_ERRORS = (SQLAlchemyError, OSError, TimeoutError)


class PgCredentialStore:
    """Satisfies the CredentialStore Protocol using PostgreSQL.

    Uniqueness comes from the primary key on issued_credentials.id, so
    two concurrent inserts for the same id cannot both commit no matter
    how many API replicas run.
    """

    def __init__(
        self,
        database_url: str,
        *,
        timeout_seconds: float = 5.0,
        echo: bool = False,
    ) -> None:
        self._database_url = database_url
        self._timeout = timeout_seconds
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    async def connect(self) -> None:
        self._engine, self._sessions = create_engine_and_sessions(
            self._database_url, echo=self._echo, timeout_seconds=self._timeout
        )
        logger.info("Database engine created: %s", self._engine.url)

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("Database engine disposed")

    async def ping(self) -> bool:
        if self._engine is None:
            return False
        try:
            async with asyncio.timeout(self._timeout):
                async with self._engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
        except _STORE_ERRORS:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    async def find_by_id(self, credential_id: str) -> IssuedCredential | None:
        sessions = self._require_sessions()
        try:
            async with asyncio.timeout(self._timeout):
                async with sessions() as session:
                    row = await session.get(IssuedCredentialRow, credential_id)
        except _STORE_ERRORS as exc:
            raise StoreUnavailable(_describe(exc)) from exc
        if row is None:
            return None
        return _row_to_issued(row)

    async def insert_unique(self, record: IssuedCredential) -> InsertResult:
        try:
            sessions = self._require_sessions()
        except StoreUnavailable as exc:
            return StoreFailure(exc.message)

        row = IssuedCredentialRow(
            id=record.id,
            holder=record.holder,
            metadata_json=dict(record.metadata),
            issued_at=record.issued_at,
            worker_id=record.worker_id,
        )
        try:
            async with asyncio.timeout(self._timeout):
                async with sessions() as session:
                    session.add(row)
                    await session.commit()
        except IntegrityError:
            # Only the primary key can be violated by this insert.
            return UniqueConstraintViolation(credential_id=record.id)
        except _STORE_ERRORS as exc:
            return StoreFailure(_describe(exc))
        return Inserted(record=record)

    def _require_sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._sessions is None:
            raise StoreUnavailable("DB not connected")
        return self._sessions


def _describe(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError):
        return "store operation timed out"
    return str(exc) or exc.__class__.__name__


def _row_to_issued(row: IssuedCredentialRow) -> IssuedCredential:
    return IssuedCredential(
        id=row.id,
        holder=row.holder,
        metadata=dict(row.metadata_json or {}),
        issued_at=row.issued_at,
        worker_id=row.worker_id,
    )
