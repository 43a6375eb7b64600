"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from peer_rounds.config import get_settings
from peer_rounds.errors import RoundEngineError
from peer_rounds.routers import health_router, jobs_router, rounds_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective round-engine configuration on startup."""
    settings = get_settings()
    logger.info(
        f"Starting {settings.app_name} {settings.app_version} "
        f"(lookahead={settings.round_lookahead_days}d, neutral_score={settings.neutral_score}, "
        f"email={'smtp' if settings.email_enabled else 'log-only'})"
    )
    yield
    logger.info(f"Shutting down {settings.app_name}")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="""
        ## Peer Rounds API

        Peer-assessment compensation rounds for organizations.

        ### Features:
        - Assessment rounds scheduled inside recurring compensation cycles
        - Peer assessments (culture and work scores) during an active round
        - Fiat / token-points compensation computed when a round closes
        - Reminders and round-started notifications
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(rounds_router)
    app.include_router(jobs_router)

    @app.exception_handler(RoundEngineError)
    async def round_engine_exception_handler(request: Request, exc: RoundEngineError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error_code": exc.code}
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error": str(exc)}
        )

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("peer_rounds.main:app", host="0.0.0.0", port=8000, reload=True)
