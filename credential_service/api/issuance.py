"""Issuance endpoint.

POST /issue: record a credential as issued, at most once per id.

  201 {"message": "credential issued", "workerId", "issuedAt"}
  200 {"message": "credential already issued", "workerId"}
  200 {"message": "credential already issued (race)", "workerId": "unknown"}
  400 {"error": "credential must contain id"}
  500 {"error": <store message>}

WHY 200 (not 409) for a duplicate: issuance is idempotent from the
caller's point of view.  Submitting the same credential twice is not a
conflict; the credential is issued either way, and a retrying client
must not see a failure for a request that already succeeded.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from credential_service.api.dependencies import get_issuance_service
from credential_service.models.credential import Credential
from credential_service.services.issuance_service import IssuanceService

router = APIRouter(tags=["issuance"])


class CredentialIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Only id is validated; anything else is stored as sent.
    id: str | None = None
    holder: Any = None
    metadata: Any = None

    def to_credential(self) -> Credential:
        return Credential.from_payload(
            id=self.id,
            holder=self.holder,
            metadata=self.metadata,
            extra=self.model_extra,
        )


@router.post("/issue", status_code=status.HTTP_201_CREATED)
async def issue_credential(
    body: CredentialIn,
    service: Annotated[IssuanceService, Depends(get_issuance_service)],
) -> JSONResponse:
    result = await service.issue(body.to_credential())
    record = result.record

    if result.already_issued or record is None:
        message = (
            "credential already issued (race)"
            if result.race_detected
            else "credential already issued"
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"message": message, "workerId": result.worker_id},
        )

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "message": "credential issued",
            "workerId": record.worker_id,
            "issuedAt": record.issued_at,
        },
    )
