"""FastAPI application factory.

``create_app`` is used as a uvicorn factory (``toilet-spotter serve``) and
by the tests.  The lifespan prepares whichever code store backend
``STORE_BACKEND`` selects.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from toilet_spotter import __version__
from toilet_spotter.core.config import Settings, get_settings
from toilet_spotter.core.database import dispose_engine, init_engine
from toilet_spotter.core.logging import setup_logging


def _check_store_settings(settings: Settings) -> None:
    if settings.store_backend == "supabase" and not (settings.supabase_url and settings.supabase_anon_key):
        logger.warning("Supabase backend selected without SUPABASE_URL/SUPABASE_ANON_KEY; store calls will fail")
    elif settings.store_backend == "memory":
        logger.warning("Memory backend selected; codes and votes are lost on restart")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Configure logging and the store backend for the server's lifetime."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)
    _check_store_settings(settings)

    if settings.store_backend == "sql":
        init_engine(settings.database_url, echo=False)
    logger.info(f"{app.title} {__version__} started ({settings.environment}, store={settings.store_backend})")

    try:
        yield
    finally:
        await dispose_engine()
        logger.info(f"{app.title} stopped")


async def _bad_value(request: Request, exc: ValueError) -> JSONResponse:
    logger.debug(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Build the API application.

    Returns:
        The FastAPI app with middleware and versioned routes installed.
    """
    from toilet_spotter.api.router import create_router, setup_middleware

    settings = get_settings()
    app = FastAPI(
        title="Toilet Spotter API",
        summary="Community-shared toilet access codes near you",
        description=(
            "Find shared-access toilet codes around a location, submit new ones, "
            "and vote on whether they still work. Writes are identified by an "
            "anonymous `X-Device-Id` header."
        ),
        version=__version__,
        lifespan=lifespan,
        exception_handlers={ValueError: _bad_value},
    )
    setup_middleware(app, settings)
    app.include_router(create_router(settings))
    return app
