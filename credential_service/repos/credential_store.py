from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol

from credential_service.models.credential import IssuedCredential

# ---------------------------------------------------------------------------
# Typed insert results
# ---------------------------------------------------------------------------
# Backends translate their driver-specific duplicate-key signal (asyncpg
# IntegrityError, a nil reply to SET NX) into one of these, so issuance
# branches on a variant instead of poking at error codes.


@dataclass(frozen=True, slots=True)
class Inserted:
    record: IssuedCredential


@dataclass(frozen=True, slots=True)
class UniqueConstraintViolation:
    credential_id: str


@dataclass(frozen=True, slots=True)
class StoreFailure:
    message: str


InsertResult = Inserted | UniqueConstraintViolation | StoreFailure


class CredentialStore(Protocol):
    async def connect(self) -> None: ...
    async def close(self) -> None: ...
    async def ping(self) -> bool: ...
    async def find_by_id(self, credential_id: str) -> IssuedCredential | None: ...
    async def insert_unique(self, record: IssuedCredential) -> InsertResult: ...


class InMemoryCredentialStore:
    """Process-local store for dev and tests.

    The membership check and the write in insert_unique happen with no
    await between them, so on a single event loop the insert is atomic:
    exactly one of several concurrent inserts for an id succeeds.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, IssuedCredential] = {}

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def find_by_id(self, credential_id: str) -> IssuedCredential | None:
        # Answer as of query time, then yield like a network round trip would,
        # so concurrent issuers can all miss before any of them inserts.
        record = self._by_id.get(credential_id)
        await asyncio.sleep(0)
        return record

    async def insert_unique(self, record: IssuedCredential) -> InsertResult:
        if record.id in self._by_id:
            return UniqueConstraintViolation(credential_id=record.id)
        self._by_id[record.id] = record
        return Inserted(record=record)

    def __len__(self) -> int:
        return len(self._by_id)
