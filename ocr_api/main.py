from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ocr_api.api.routes import router
from ocr_api.core.config import Settings, settings as default_settings
from ocr_api.core.logging import RequestIdMiddleware, configure_logging
from ocr_api.ocr.factory import build_http_client, get_ocr_engine
from ocr_api.pipeline.pipeline import OcrPipeline


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger = logging.getLogger(__name__)
        remote = settings.remote_config()
        async with build_http_client(remote, transport=transport) as http_client:
            app.state.pipeline = OcrPipeline(
                remote,
                get_ocr_engine(remote, http_client),
                require_credentials=settings.ocr_require_credentials,
                demo_delay_ms=settings.ocr_demo_delay_millis,
            )
            logger.info(
                "startup",
                extra={"app_env": settings.app_env, "demo_mode": app.state.pipeline.demo_mode},
            )
            try:
                yield
            finally:
                logger.info("shutdown")

    app = FastAPI(title="Azure OCR API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)
    app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to the Azure OCR API",
            "docs": "/docs",
            "health": "/api/ocr/health",
        }

    return app


app = create_app()
