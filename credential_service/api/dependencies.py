"""FastAPI dependencies that hand each request the app's collaborators.

The store and worker identity are built once in create_app() and parked
on app.state; nothing here is a module-level singleton, so a test can
build an app around a fake store and never touch global state.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from credential_service.repos.credential_store import CredentialStore
from credential_service.services.issuance_service import IssuanceService
from credential_service.services.verification_service import VerificationService
from credential_service.services.worker_identity import WorkerIdentity


def get_store(request: Request) -> CredentialStore:
    return request.app.state.store


def get_worker_identity(request: Request) -> WorkerIdentity:
    return request.app.state.worker_identity


def get_issuance_service(
    store: Annotated[CredentialStore, Depends(get_store)],
    worker_identity: Annotated[WorkerIdentity, Depends(get_worker_identity)],
) -> IssuanceService:
    return IssuanceService(store, worker_identity)


def get_verification_service(
    store: Annotated[CredentialStore, Depends(get_store)],
) -> VerificationService:
    return VerificationService(store)
