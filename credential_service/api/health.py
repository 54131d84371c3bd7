"""Health and readiness endpoints.

  /health (liveness):  "is the process alive?"  Always 200 while the
    event loop can answer.  Reports the configured worker label (or
    null) so an operator can tell replicas apart.

  /ready (readiness):  "can this instance serve traffic?"  200 only when
    the credential store answers a ping; 503 otherwise.  A failing
    readiness probe takes the replica out of the load balancer without
    restarting it, which is the right reaction to a store outage.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from credential_service.api.dependencies import get_store, get_worker_identity
from credential_service.repos.credential_store import CredentialStore
from credential_service.services.worker_identity import WorkerIdentity

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(
    worker_identity: Annotated[WorkerIdentity, Depends(get_worker_identity)],
) -> dict:
    return {"status": "ok", "worker": worker_identity.configured}


@router.get("/ready")
async def ready(
    store: Annotated[CredentialStore, Depends(get_store)],
) -> Response:
    if await store.ping():
        return Response(status_code=status.HTTP_200_OK)
    return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
