from __future__ import annotations

import logging
from dataclasses import dataclass

from credential_service.core.errors import InvalidInput, StoreUnavailable
from credential_service.core.metrics import CREDENTIAL_VERIFICATION
from credential_service.models.credential import IssuedCredential
from credential_service.repos.credential_store import CredentialStore

logger = logging.getLogger(__name__)

MISSING_ID_MESSAGE = "credential id required"


@dataclass(frozen=True, slots=True)
class VerifyResult:
    found: bool
    record: IssuedCredential | None = None


class VerificationService:
    """Read-only: a credential is verified iff a record with its id exists."""

    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    async def verify(self, credential_id: object) -> VerifyResult:
        if not isinstance(credential_id, str) or not credential_id:
            raise InvalidInput(MISSING_ID_MESSAGE)

        try:
            record = await self._store.find_by_id(credential_id)
        except StoreUnavailable:
            CREDENTIAL_VERIFICATION.labels(result="error").inc()
            raise

        if record is None:
            CREDENTIAL_VERIFICATION.labels(result="not_found").inc()
            logger.info(
                "Credential %s not found",
                credential_id,
                extra={"credential_id": credential_id, "outcome": "not_found"},
            )
            return VerifyResult(found=False)

        CREDENTIAL_VERIFICATION.labels(result="found").inc()
        logger.info(
            "Credential %s verified (issued %s by %s)",
            credential_id,
            record.issued_at,
            record.worker_id,
            extra={
                "credential_id": credential_id,
                "worker_id": record.worker_id,
                "outcome": "found",
            },
        )
        return VerifyResult(found=True, record=record)
