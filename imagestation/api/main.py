"""
FastAPI application entry point.

Wires the feature routers, the browser screens and the boundary error
handlers around a single ModelManager built from the YAML config.
"""

import logging
import yaml
from datetime import timedelta
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from .routers import compress, remove_bg, recognize, generate, results, health, pages
from .dependencies.session import result_store
from .errors import register_exception_handlers
from imagestation import __version__
from imagestation.models.manager import ModelManager, default_config_path
from imagestation.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

# Global application state
app_state = {}

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


def _configured_cors_origins():
    config_path = default_config_path()
    if not config_path.exists():
        return DEFAULT_CORS_ORIGINS
    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    return (config.get("app") or {}).get("cors_origins") or DEFAULT_CORS_ORIGINS


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the ModelManager once at startup and release vendor clients at shutdown.
    """
    model_manager = ModelManager(config_path=default_config_path())
    settings = model_manager.app_settings
    setup_logging(settings.get("log_level", "INFO"))
    result_store.ttl = timedelta(minutes=settings.get("result_ttl_minutes", 60))
    app_state["model_manager"] = model_manager
    logger.info(f"ImageStation ready, config loaded from {model_manager.config_path}")

    yield

    logger.info("Shutting down ImageStation")
    model_manager.cleanup()
    app_state.clear()

def create_app(cors_origins=None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.
    """
    app = FastAPI(
        title="ImageStation",
        description="Image compression, background removal, recognition and generation",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or _configured_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(compress.router, prefix="/api/v1", tags=["compress"])
    app.include_router(remove_bg.router, prefix="/api/v1", tags=["remove-bg"])
    app.include_router(recognize.router, prefix="/api/v1", tags=["recognize"])
    app.include_router(generate.router, prefix="/api/v1", tags=["generate"])
    app.include_router(results.router, prefix="/api/v1/results", tags=["results"])
    app.include_router(pages.router, include_in_schema=False)

    @app.get("/api")
    async def api_root():
        """Basic API information."""
        return {
            "name": "ImageStation",
            "version": __version__,
            "status": "operational",
            "endpoints": {
                "health": "/health",
                "compress": "/api/v1/compress",
                "remove_bg": "/api/v1/remove-bg",
                "recognize": "/api/v1/recognize",
                "recognize_options": "/api/v1/recognize/options",
                "generate": "/api/v1/generate",
                "generate_options": "/api/v1/generate/options",
                "results": "/api/v1/results/{result_id}/download",
                "docs": "/docs",
            }
        }

    return app

# Create the FastAPI app instance
app = create_app()
