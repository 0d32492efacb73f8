"""FastAPI application configuration."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry, make_asgi_app, multiprocess

from ..infrastructure.scripts import ALL_SCRIPTS
from .dependencies import (
    get_database_client_dependency,
    get_settings_dependency,
    get_store_dependency,
    get_token_ledger,
)
from .routers import merchants, mystery_box, paynow

logger = logging.getLogger(__name__)

settings = get_settings_dependency()


async def seed_operator_balance() -> None:
    """Credit the configured starting balance to the operator exactly once."""
    if settings.operator_initial_balance <= 0:
        return
    balance = await get_token_ledger().seed(
        settings.operator_address, settings.operator_initial_balance
    )
    if balance is None:
        return
    logger.info(
        "Seeded operator %s with %d units (balance=%d)",
        settings.operator_address,
        settings.operator_initial_balance,
        balance,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = get_store_dependency()
    for name, script in ALL_SCRIPTS.items():
        await store.register_script(name, script)
    await seed_operator_balance()
    logger.info(
        "%s ready (operator=%s, custody=%s)",
        settings.app_name,
        settings.operator_address,
        settings.custody_address,
    )
    yield
    await get_database_client_dependency().close()


def _metrics_app():
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return make_asgi_app(registry=registry)
    return make_asgi_app()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="BasedPay PayNow merchant registry and mystery box rewards API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(paynow.router, prefix="/api/v1")
    app.include_router(merchants.router, prefix="/api/v1")
    app.include_router(mystery_box.router, prefix="/api/v1")
    app.mount("/metrics", _metrics_app())

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": f"Welcome to {settings.app_name} API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    return app


app = create_app()
