"""
FastAPI application entry point for the SchoolFund API.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schoolfund.config import Settings, get_settings
from schoolfund.errors import register_exception_handlers
from schoolfund.logging_utils import configure_logging
from schoolfund.routes import router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_dir)

    app = FastAPI(title="SchoolFund API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app, debug=settings.is_development)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(router, prefix=settings.api_prefix)
    return app
