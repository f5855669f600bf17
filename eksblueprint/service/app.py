"""
Hello service - FastAPI application served on port 3000.

Routes:
    GET /        descriptive payload: message, version, timestamp
    GET /health  liveness and readiness check, always 200 while the process is up

The service is stateless; everything it returns comes from settings and the
clock. Nothing is built at import time: run it with `eksblueprint serve` or
`uvicorn --factory eksblueprint.service.app:create_app`.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, status

from eksblueprint.config.settings import BlueprintSettings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[BlueprintSettings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings supplying message and version; read from the
            environment when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or BlueprintSettings.from_environment()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Hello service {settings.app_version} starting ({settings.environment}, port {settings.app_port})"
        )
        yield
        logger.info("Hello service shutting down")

    app = FastAPI(title="Hello Service", version=settings.app_version, lifespan=lifespan)

    @app.get("/")
    async def root():
        return {
            "message": settings.app_message,
            "version": settings.app_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health", status_code=status.HTTP_200_OK)
    async def health():
        return {"status": "healthy"}

    return app
