"""Versioned API router, health check and middleware stack."""

from fastapi import APIRouter, FastAPI

from toilet_spotter.api.middleware import SecurityHeadersMiddleware, WriteRateLimitMiddleware, setup_cors
from toilet_spotter.core.config import Settings


def _health_router(settings: Settings) -> APIRouter:
    router = APIRouter(tags=["system"])

    @router.get("/health")
    async def health() -> dict[str, str]:
        """Liveness check; also reports which code store is in use."""
        return {
            "status": "ok",
            "store_backend": settings.store_backend,
            "environment": settings.environment,
        }

    return router


def create_router(settings: Settings) -> APIRouter:
    """Mount the code, map and health routes under the v1 prefix.

    Args:
        settings: Application settings; supplies the prefix.

    Returns:
        The versioned router.
    """
    from toilet_spotter.api.v1.codes import codes_router
    from toilet_spotter.api.v1.map import map_router

    v1 = APIRouter(prefix=settings.api_v1_prefix)
    for router in (codes_router, map_router, _health_router(settings)):
        v1.include_router(router)
    return v1


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install middleware; the last one added runs first on a request."""
    app.add_middleware(WriteRateLimitMiddleware, writes_per_minute=settings.write_rate_limit_per_minute)
    app.add_middleware(SecurityHeadersMiddleware)
    setup_cors(app, settings)
