from __future__ import annotations

import logging

from credential_service.core.config import Settings
from credential_service.repos.credential_store import (
    CredentialStore,
    InMemoryCredentialStore,
)
from credential_service.repos.pg_credential_store import PgCredentialStore
from credential_service.repos.redis_credential_store import RedisCredentialStore

logger = logging.getLogger(__name__)


def build_credential_store(settings: Settings) -> CredentialStore:
    """Pick a backend: DATABASE_URL, then REDIS_URL, then in-memory."""
    if settings.database_url:
        return PgCredentialStore(
            settings.database_url,
            timeout_seconds=settings.store_timeout_seconds,
            echo=settings.is_dev and settings.log_level == "debug",
        )
    if settings.redis_url:
        return RedisCredentialStore(
            settings.redis_url,
            db_name=settings.db_name,
            timeout_seconds=settings.store_timeout_seconds,
        )
    logger.info("No DATABASE_URL or REDIS_URL configured; using in-memory store")
    return InMemoryCredentialStore()
