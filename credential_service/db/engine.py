"""Async SQLAlchemy engine and session factory.

Nothing here is created at import time.  PgCredentialStore calls
create_engine_and_sessions() from its connect() and disposes the engine
from close(), so each app instance owns its own pool and tests never
touch a database unless they build a Postgres store explicitly.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


def create_engine_and_sessions(
    database_url: str,
    *,
    echo: bool = False,
    timeout_seconds: float = 5.0,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    connect_args: dict[str, float] = {}
    if database_url.startswith("postgresql+asyncpg"):
        # asyncpg: connection-establishment and per-statement deadlines
        connect_args = {"timeout": timeout_seconds, "command_timeout": timeout_seconds}

    engine = create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_timeout=timeout_seconds,
        connect_args=connect_args,
    )
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, session_factory
