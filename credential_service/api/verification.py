"""Verification endpoint.

POST /verify: does a credential with this id exist?

  200 {"verified": true, "workerId", "issuedAt", "verifiedBy"}
  404 {"verified": false}
  400 {"error": "credential id required"}
  500 {"error": <store message>}

workerId and issuedAt are the stored issuance attribution; verifiedBy is
the label of the instance that answered this request.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from credential_service.api.dependencies import (
    get_verification_service,
    get_worker_identity,
)
from credential_service.services.verification_service import VerificationService
from credential_service.services.worker_identity import WorkerIdentity

router = APIRouter(tags=["verification"])


class VerifyIn(BaseModel):
    id: str | None = None


@router.post("/verify")
async def verify_credential(
    body: VerifyIn,
    service: Annotated[VerificationService, Depends(get_verification_service)],
    worker_identity: Annotated[WorkerIdentity, Depends(get_worker_identity)],
) -> JSONResponse:
    result = await service.verify(body.id)

    if not result.found or result.record is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"verified": False},
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "verified": True,
            "workerId": result.record.worker_id,
            "issuedAt": result.record.issued_at,
            "verifiedBy": worker_identity.resolve(),
        },
    )
