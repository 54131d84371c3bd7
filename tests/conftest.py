from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import credential_service` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from credential_service.core.config import Settings  # noqa: E402
from credential_service.core.errors import StoreUnavailable  # noqa: E402
from credential_service.main import ServiceName, create_app  # noqa: E402
from credential_service.models.credential import IssuedCredential  # noqa: E402
from credential_service.repos.credential_store import (  # noqa: E402
    InMemoryCredentialStore,
    InsertResult,
    StoreFailure,
    UniqueConstraintViolation,
)
from credential_service.services.worker_identity import WorkerIdentity  # noqa: E402

ISSUER_WORKER_ID = "test-worker-123"
VERIFIER_WORKER_ID = "test-verifier-456"


def make_settings(**overrides) -> Settings:
    values: dict = {
        "app_env": "test",
        "log_level": "warning",
        "log_json": False,
        "port": None,
        "database_url": None,
        "redis_url": None,
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


def make_client(
    service: ServiceName,
    store,
    worker_identity: WorkerIdentity | None = None,
) -> TestClient:
    app = create_app(
        service,
        settings=make_settings(),
        store=store,
        worker_identity=worker_identity or WorkerIdentity(),
        configure_logging=False,
    )
    return TestClient(app)


# ---------------------------------------------------------------------------
# Fake stores
# ---------------------------------------------------------------------------


class FailingCredentialStore(InMemoryCredentialStore):
    """Store whose lookups and/or inserts fail like an unreachable database."""

    def __init__(
        self,
        *,
        find_error: str | None = None,
        insert_error: str | None = None,
        reachable: bool = True,
    ) -> None:
        super().__init__()
        self.find_error = find_error
        self.insert_error = insert_error
        self.reachable = reachable

    async def ping(self) -> bool:
        return self.reachable

    async def find_by_id(self, credential_id: str) -> IssuedCredential | None:
        if self.find_error is not None:
            raise StoreUnavailable(self.find_error)
        return await super().find_by_id(credential_id)

    async def insert_unique(self, record: IssuedCredential) -> InsertResult:
        if self.insert_error is not None:
            return StoreFailure(self.insert_error)
        return await super().insert_unique(record)


class LosingRaceStore(InMemoryCredentialStore):
    """Lookup misses, then insert hits the constraint: another caller won."""

    def __init__(self) -> None:
        super().__init__()
        self.insert_calls = 0

    async def find_by_id(self, credential_id: str) -> IssuedCredential | None:
        return None

    async def insert_unique(self, record: IssuedCredential) -> InsertResult:
        self.insert_calls += 1
        return UniqueConstraintViolation(credential_id=record.id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryCredentialStore:
    """One store shared by both services, like the shared database."""
    return InMemoryCredentialStore()


@pytest.fixture
def issuance_client(store: InMemoryCredentialStore) -> Iterator[TestClient]:
    with make_client(
        ServiceName.ISSUANCE, store, WorkerIdentity(ISSUER_WORKER_ID)
    ) as client:
        yield client


@pytest.fixture
def verification_client(store: InMemoryCredentialStore) -> Iterator[TestClient]:
    with make_client(
        ServiceName.VERIFICATION, store, WorkerIdentity(VERIFIER_WORKER_ID)
    ) as client:
        yield client
