"""
Main FastAPI application for imagearena
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import settings
from ..factory import create_orchestrator
from ..logging import configure_logging, get_logger
from ..orchestrator import FanOutOrchestrator
from .broadcast import StateBroadcaster

# Configure logging before creating logger
configure_logging(debug=settings.debug)
logger = get_logger(__name__)


def _wire(app: FastAPI, orchestrator: FanOutOrchestrator) -> None:
    broadcaster: StateBroadcaster = app.state.broadcaster
    orchestrator.add_listener(broadcaster.publish_state)
    if orchestrator.on_success is None:
        orchestrator.on_success = broadcaster.publish_refresh
    app.state.orchestrator = orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting imagearena API...")
    owns_orchestrator = app.state.orchestrator is None
    if owns_orchestrator:
        _wire(app, create_orchestrator(settings))
    logger.info("Providers registered", names=app.state.orchestrator.registry.keys())

    yield

    logger.info("Shutting down imagearena API...")
    if owns_orchestrator:
        await app.state.orchestrator.endpoint.aclose()


def create_app(orchestrator: FanOutOrchestrator | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="imagearena API",
        description="Concurrent multi-provider image generation",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.broadcaster = StateBroadcaster()
    app.state.orchestrator = None
    app.state.current_round = None
    if orchestrator is not None:
        _wire(app, orchestrator)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():  # pyright: ignore [reportUnusedFunction]
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    from .endpoints import generations, providers

    app.include_router(providers.router, prefix="/api/providers", tags=["Providers"])
    app.include_router(generations.router, prefix="/api/generations", tags=["Generations"])

    return app


# Create the main application instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "imagearena.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
