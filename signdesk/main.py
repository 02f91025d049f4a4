from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from signdesk.api.routes import audit, auth, contacts, dashboard, documents, health, signing, users
from signdesk.core.config import settings
from signdesk.core.errors import SignDeskError
from signdesk.core.logging_setup import logger
from signdesk.db import session as db_session
from signdesk.services.document_store import DocumentStore
from signdesk.services.signing import SigningSessionRegistry
from signdesk.services.storage import get_storage


def build_document_store() -> DocumentStore:
    return DocumentStore(
        get_storage(),
        slot_key=settings.documents_slot_key,
        write_behind=settings.write_behind,
    )


def _normalize_origin(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = value.strip().rstrip("/")
    return cleaned or None


def create_app(document_store: DocumentStore | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
        db_session.init_db()

        store = document_store or build_document_store()
        store.load()
        application.state.document_store = store
        application.state.signing_registry = SigningSessionRegistry(
            store,
            reference_length=settings.identity_reference_length,
            challenge_length=settings.challenge_code_length,
            idle_timeout=settings.signing_session_idle_seconds,
        )

        yield

        if not store.flush():
            logger.error("Last document collection write failed before shutdown")
        store.close()

    application = FastAPI(
        title=settings.project_name,
        debug=settings.debug,
        lifespan=lifespan,
    )

    origins: list[str] = []
    for item in settings.allowed_origins:
        normalized = _normalize_origin(item)
        if normalized and normalized not in origins:
            origins.append(normalized)
    logger.info(f"CORS configured with origins: {origins}")

    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(SignDeskError)
    async def signdesk_error_handler(request: Request, exc: SignDeskError) -> JSONResponse:
        logger.warning(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    application.include_router(health.router, prefix="/health")
    application.include_router(auth.router, prefix=settings.api_v1_str)
    application.include_router(users.router, prefix=settings.api_v1_str)
    application.include_router(contacts.router, prefix=settings.api_v1_str)
    application.include_router(documents.router, prefix=settings.api_v1_str)
    application.include_router(signing.router, prefix=settings.api_v1_str)
    application.include_router(dashboard.router, prefix=settings.api_v1_str)
    application.include_router(audit.router, prefix=settings.api_v1_str)

    logger.info("SignDesk API initialized")
    return application


app = create_app()
