"""
CNC Insight Navigator

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import Settings, settings as default_settings
from .api.chat import router as chat_router
from .api.dashboard import router as dashboard_router
from .api.history import router as history_router
from .api.parts import router as parts_router
from .services.history import SystemHistory
from .services.llm_service import ResponseStreamer
from .services.monitor import MachineMonitor
from .utils import sanitize_for_json

logger = logging.getLogger("cnc_navigator")


def create_app(
    settings: Optional[Settings] = None,
    binding: Any = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the application.

    ``binding`` is an optional host-provided embedded inference binding;
    ``transport`` lets callers route the remote chat backend through a
    custom httpx transport.
    """
    settings = settings or default_settings
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
        history = SystemHistory(settings.HISTORY_MAX_LENGTH)
        monitor = MachineMonitor(
            history,
            interval_seconds=settings.SAMPLE_INTERVAL_SECONDS,
            anomaly_chance=settings.DASHBOARD_ANOMALY_CHANCE,
        )
        monitor.refresh()
        app.state.monitor = monitor
        app.state.streamer = await ResponseStreamer.create(
            settings, history=history, binding=binding, transport=transport,
        )
        if settings.AUTO_SAMPLE:
            await monitor.start()
        yield
        logger.info("Shutting down...")
        await monitor.stop()

    app = FastAPI(
        title=settings.APP_NAME,
        description="""
    ## CNC Insight Navigator

    Monitoring dashboard backend for a CNC machining cell with a chat assistant.

    ### Core Capabilities:
    - **Sensor classification**: eleven channels checked against fixed fault thresholds
    - **Insights**: per-component anomaly summaries and the most critical issue
    - **System history**: the last states of the machine, ready as LLM context
    - **Chat**: embedded model, remote chat endpoint or keyword fallback, streamed
    """,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # rejected non-finite floats are echoed back in the detail
        return JSONResponse(
            status_code=422,
            content={"detail": sanitize_for_json(jsonable_encoder(exc.errors()))},
        )

    app.include_router(dashboard_router, prefix=settings.API_PREFIX)
    app.include_router(history_router, prefix=settings.API_PREFIX)
    app.include_router(parts_router, prefix=settings.API_PREFIX)
    app.include_router(chat_router, prefix=settings.API_PREFIX)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        streamer = getattr(app.state, "streamer", None)
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "chat_backend": streamer.mode if streamer else None,
        }

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "cnc_navigator.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
    )
