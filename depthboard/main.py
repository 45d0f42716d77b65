"""
Depthboard - FastAPI backend

Market depth (order book) analytics for an NFT collection, built from
OpenSea listings and offers and cached between requests.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from depthboard.config import settings
from depthboard.middleware.error_handler import install_error_handlers
from depthboard.observability.logs import setup_log_rotation, setup_logging
from depthboard.observability.metrics import create_metrics_router
from depthboard.routes_cache import router as cache_router
from depthboard.routes_market import router as market_router
from depthboard.state import init_services, shutdown_services

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Depthboard", version="1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(market_router)
    app.include_router(cache_router)
    app.include_router(create_metrics_router())
    install_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok", "collection": settings.COLLECTION_SLUG}

    @app.on_event("startup")
    async def startup_event():
        """Initialize services on startup."""
        setup_log_rotation(settings.LOG_DIR)
        logger.info(f"Configuration: {settings.redacted()}")
        init_services(settings)

    @app.on_event("shutdown")
    async def shutdown_event():
        await shutdown_services()
        logger.info("Depthboard shut down")

    return app


setup_logging(settings.LOG_LEVEL)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
