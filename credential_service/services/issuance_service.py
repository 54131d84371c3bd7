"""Credential issuance: check-then-insert with duplicate-key race handling.

THE RACE
---------
Two requests for the same id can both pass the lookup before either
inserts:

    A: find(cred-1) → absent
    B: find(cred-1) → absent
    A: insert(cred-1) → accepted
    B: insert(cred-1) → unique constraint violation

The lookup cannot prevent this; only the store's uniqueness constraint
can.  So the lookup is an optimization (the common re-issue path never
writes) and the constraint is the source of truth.  B's violation is a
normal outcome, not an error: the credential IS issued, just not by B.

B does not re-read the store to learn who won.  Its result carries no
record and the winner is reported as "unknown".  That trades accurate
attribution on the rare race path for one less round trip.

No lock is taken here, in-process or otherwise.  Correctness must hold
across replicas, where an in-process lock would not help anyway.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from credential_service.core.errors import InvalidInput, StoreUnavailable
from credential_service.core.metrics import CREDENTIAL_ISSUANCE
from credential_service.models.credential import (
    Credential,
    IssuedCredential,
    utc_timestamp,
)
from credential_service.repos.credential_store import (
    CredentialStore,
    Inserted,
    StoreFailure,
    UniqueConstraintViolation,
)
from credential_service.services.worker_identity import WorkerIdentity

logger = logging.getLogger(__name__)

UNKNOWN_WORKER = "unknown"
MISSING_ID_MESSAGE = "credential must contain id"


@dataclass(frozen=True, slots=True)
class IssueResult:
    already_issued: bool
    # None only on the race path: another caller's insert won and this
    # caller does not know its issuedAt/workerId.
    record: IssuedCredential | None

    @property
    def race_detected(self) -> bool:
        return self.already_issued and self.record is None

    @property
    def worker_id(self) -> str:
        return self.record.worker_id if self.record is not None else UNKNOWN_WORKER


class IssuanceService:
    def __init__(
        self,
        store: CredentialStore,
        worker_identity: WorkerIdentity,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self._store = store
        self._worker_identity = worker_identity
        self._clock = clock

    async def issue(self, credential: Credential) -> IssueResult:
        if not isinstance(credential.id, str) or not credential.id:
            raise InvalidInput(MISSING_ID_MESSAGE)

        try:
            existing = await self._store.find_by_id(credential.id)
        except StoreUnavailable:
            CREDENTIAL_ISSUANCE.labels(outcome="error").inc()
            raise

        if existing is not None:
            CREDENTIAL_ISSUANCE.labels(outcome="already_issued").inc()
            logger.info(
                "Credential %s already issued by %s",
                credential.id,
                existing.worker_id,
                extra={
                    "credential_id": credential.id,
                    "worker_id": existing.worker_id,
                    "outcome": "already_issued",
                },
            )
            return IssueResult(already_issued=True, record=existing)

        record = IssuedCredential.from_credential(
            credential,
            worker_id=self._worker_identity.resolve(),
            issued_at=self._clock(),
        )
        result = await self._store.insert_unique(record)

        match result:
            case Inserted(record=inserted):
                CREDENTIAL_ISSUANCE.labels(outcome="issued").inc()
                logger.info(
                    "Credential %s issued by %s",
                    inserted.id,
                    inserted.worker_id,
                    extra={
                        "credential_id": inserted.id,
                        "worker_id": inserted.worker_id,
                        "outcome": "issued",
                    },
                )
                return IssueResult(already_issued=False, record=inserted)
            case UniqueConstraintViolation():
                CREDENTIAL_ISSUANCE.labels(outcome="race").inc()
                logger.info(
                    "Credential %s issued concurrently by another worker",
                    credential.id,
                    extra={"credential_id": credential.id, "outcome": "race"},
                )
                return IssueResult(already_issued=True, record=None)
            case StoreFailure(message=message):
                CREDENTIAL_ISSUANCE.labels(outcome="error").inc()
                raise StoreUnavailable(message)

        raise AssertionError(f"unexpected insert result: {result!r}")
