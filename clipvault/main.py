"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import clipvault.modules  # noqa: F401
from clipvault.core.config import get_settings
from clipvault.core.database import create_engine, create_session_factory
from clipvault.core.metrics import build_metrics_response, instrument_http_request
from clipvault.core.storage import LocalBlobStore
from clipvault.modules.admin.router import router as admin_router
from clipvault.modules.identity.provider import EpicIdentityProvider
from clipvault.modules.identity.router import router as identity_router
from clipvault.modules.profile.router import router as profile_router
from clipvault.modules.submissions.router import router as submissions_router
from clipvault.shared.exceptions import register_exception_handlers
from clipvault.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the process-wide handles on startup and release them on shutdown."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info("Starting %s", settings.app_name)

    engine = create_engine(settings)
    blob_store = LocalBlobStore(settings.upload_dir, settings.upload_public_url_prefix)
    blob_store.ensure_root()

    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.blob_store = blob_store
    app.state.identity_provider = EpicIdentityProvider(settings)

    yield

    logger.info("Shutting down %s", settings.app_name)
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)
app.middleware("http")(instrument_http_request)
app.mount(
    settings.upload_public_url_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)

register_exception_handlers(app)

app.include_router(identity_router, prefix=settings.api_prefix)
app.include_router(submissions_router, prefix=settings.api_prefix)
app.include_router(profile_router, prefix=settings.api_prefix)
app.include_router(admin_router, prefix=settings.api_prefix)


@app.get("/health")
async def healthcheck() -> dict[str, str]:
    """Liveness check endpoint."""
    return {"status": "ok"}


async def _is_database_ready(session_factory: async_sessionmaker[AsyncSession] | None) -> bool:
    """Return True if DB accepts basic queries."""
    if session_factory is None:
        return False
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("Database readiness check failed")
        return False


@app.get("/ready")
async def readiness_check(request: Request) -> dict[str, str]:
    """Readiness check endpoint with DB dependency check."""
    session_factory = getattr(request.app.state, "session_factory", None)
    if not await _is_database_ready(session_factory):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not ready",
        )
    return {
        "status": "ready",
        "database": "ok",
        "timestamp": utc_now().isoformat(),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics_endpoint(_: Request) -> Response:
    """Prometheus metrics endpoint."""
    return build_metrics_response()
