"""Main FastAPI application for the pinboard API."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, settings as default_settings
from .errors import PinboardError
from .routers import admin_router, messages_router, notification_tokens_router, pins_router
from .services.container import Pinboard, build_pinboard

# Configure logging
logging.basicConfig(
    level=default_settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    pinboard: Pinboard = app.state.pinboard
    logger.info(
        f"Starting pinboard ({pinboard.settings.grid_rows}x{pinboard.settings.grid_cols} grid, "
        f"TTL {pinboard.settings.pin_ttl_hours}h, push configured={pinboard.dispatcher.is_configured()})"
    )

    await pinboard.startup()
    logger.info("Database initialized")

    yield

    await pinboard.shutdown()
    logger.info("Shutdown complete")


def register_exception_handlers(app: FastAPI):
    """Map domain errors to ``{"error": ...}`` responses with their status."""

    @app.exception_handler(PinboardError)
    async def pinboard_error_handler(request: Request, exc: PinboardError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = "Invalid JSON payload."
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
            message = errors[0].get("msg", "invalid value")
            detail = f"{location}: {message}" if location else message
        return JSONResponse(status_code=400, content={"error": detail})

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Unexpected server error."})


def create_app(config: Optional[Settings] = None, pinboard: Optional[Pinboard] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or default_settings

    app = FastAPI(
        title="Pinboard",
        description="Ephemeral grid pinboard with replies and push notifications",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.pinboard = pinboard or build_pinboard(config)

    # CORS middleware for the web admin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(pins_router)
    app.include_router(messages_router)
    app.include_router(notification_tokens_router)
    app.include_router(admin_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "configured": app.state.pinboard.dispatcher.is_configured(),
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.web_port)
