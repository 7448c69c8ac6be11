"""FastAPI application entry point."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from watchparty.api.common.session_router import router as session_router
from watchparty.api.realtime_router import router as realtime_router
from watchparty.api.v1.chat_router import router as chat_router
from watchparty.api.v1.party_router import router as party_router
from watchparty.core.config import settings
from watchparty.core.database import Base, engine
from watchparty.core.exceptions import (
    AppException,
    app_exception_handler,
    storage_exception_handler,
    validation_exception_handler,
)
from watchparty.core.rate_limit import limiter, rate_limit_exceeded_handler
from watchparty.models import chat_message, party_member, party_room, user  # noqa: F401
from watchparty.realtime.relay import RelayEngine
from watchparty.schemas.response_schema import ApiResponse, success_response
from watchparty.services.chat_prune_task import run_chat_pruner

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        bind=settings.server.bind,
    )
    if settings.app.is_development:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    pruner = asyncio.create_task(run_chat_pruner())
    yield
    pruner.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await pruner
    await app.state.relay.aclose()
    await engine.dispose()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="Real-time global chat and synchronized watch parties",
    version=settings.app.version,
    lifespan=lifespan,
    debug=settings.app.debug,
)

app.state.limiter = limiter
app.state.relay = RelayEngine()

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(SQLAlchemyError, storage_exception_handler)  # type: ignore[arg-type]

# Middleware (registration order: inner→outer, execution order: outer→inner)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.server.allowed_origins(settings.app.is_development),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=ApiResponse[dict])
async def health_check() -> dict:
    """Health check endpoint."""
    return success_response({"status": "healthy"})


@app.get("/", response_model=ApiResponse[dict])
async def root() -> dict:
    """Root endpoint."""
    return success_response(
        {
            "app": settings.app.name,
            "version": settings.app.version,
            "docs": "/docs",
            "socket": "/ws",
        }
    )


# Register routers
app.include_router(session_router)
app.include_router(party_router)
app.include_router(chat_router)
app.include_router(realtime_router)


def run() -> None:
    """Serve the HTTP API and the relay socket."""
    uvicorn.run(
        "watchparty.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.app.is_development,
    )
