from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from enum import StrEnum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from credential_service.api.forms import issuance_form_router, verification_form_router
from credential_service.api.health import router as health_router
from credential_service.api.issuance import router as issuance_router
from credential_service.api.metrics_endpoint import router as metrics_router
from credential_service.api.verification import router as verification_router
from credential_service.core.config import Settings, load_settings
from credential_service.core.errors import InvalidInput, StoreUnavailable
from credential_service.core.logging import setup_logging
from credential_service.middleware.metrics import MetricsMiddleware
from credential_service.middleware.request_context import (
    RequestContextMiddleware,
    install_request_context_filter,
)
from credential_service.repos.credential_store import CredentialStore
from credential_service.repos.factory import build_credential_store
from credential_service.services import issuance_service, verification_service
from credential_service.services.worker_identity import WorkerIdentity

logger = logging.getLogger(__name__)


class ServiceName(StrEnum):
    ISSUANCE = "issuance"
    VERIFICATION = "verification"


DEFAULT_PORTS = {ServiceName.ISSUANCE: 4001, ServiceName.VERIFICATION: 4002}

_MISSING_ID_MESSAGES = {
    ServiceName.ISSUANCE: issuance_service.MISSING_ID_MESSAGE,
    ServiceName.VERIFICATION: verification_service.MISSING_ID_MESSAGE,
}


def create_app(
    service: ServiceName,
    *,
    settings: Settings | None = None,
    store: CredentialStore | None = None,
    worker_identity: WorkerIdentity | None = None,
    configure_logging: bool = True,
) -> FastAPI:
    """Build the issuance or verification app around an injected store.

    Tests pass their own store/worker identity; in production both are
    derived from settings.  The store is connected in the lifespan and
    closed on shutdown.
    """
    service = ServiceName(service)
    settings = settings or load_settings()
    if configure_logging:
        setup_logging(settings.log_level, json_format=settings.log_json)
        install_request_context_filter()

    store = store if store is not None else build_credential_store(settings)
    worker_identity = worker_identity or WorkerIdentity(settings.worker_id)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        await store.connect()
        logger.info(
            "%s service started  env=%s worker=%s store=%s",
            service,
            settings.app_env,
            worker_identity.configured or "dev",
            type(store).__name__,
        )
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(
        title=f"{service}-service",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
    )
    app.state.service = service
    app.state.settings = settings
    app.state.store = store
    app.state.worker_identity = worker_identity

    _register_error_handlers(app, _MISSING_ID_MESSAGES[service])

    wildcard = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else list(settings.cors_origins),
        allow_credentials=not wildcard,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware execution order: last-added runs first (outermost layer).
    # RequestContext (outermost) → Metrics → CORS → route handler
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestContextMiddleware, service=str(service))

    app.include_router(metrics_router)
    app.include_router(health_router)
    if service is ServiceName.ISSUANCE:
        app.include_router(issuance_router)
        app.include_router(issuance_form_router)
    else:
        app.include_router(verification_router)
        app.include_router(verification_form_router)

    return app


def _register_error_handlers(app: FastAPI, missing_id_message: str) -> None:
    async def invalid_input(_request: Request, exc: InvalidInput) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"error": exc.message}
        )

    async def invalid_body(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Missing body, non-object body, or an id that isn't a string all
        # mean the same thing to the caller: no usable id.
        logger.debug("Rejected request body: %s", exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": missing_id_message},
        )

    async def store_unavailable(
        request: Request, exc: StoreUnavailable
    ) -> JSONResponse:
        logger.error(
            "Store unavailable during %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": exc.message},
        )

    app.add_exception_handler(InvalidInput, invalid_input)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, invalid_body)  # type: ignore[arg-type]
    app.add_exception_handler(StoreUnavailable, store_unavailable)  # type: ignore[arg-type]


# uvicorn credential_service.main:issuance_app / :verification_app
issuance_app = create_app(ServiceName.ISSUANCE)
verification_app = create_app(ServiceName.VERIFICATION)
