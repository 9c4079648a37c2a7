#!/usr/bin/env python3
"""
perfdash FastAPI application factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

# Support running as script or as package
try:
    from .config import DashboardConfig
    from ..api.data_service import DataServiceClient
    from ..api.routes.dashboard_routes import create_dashboard_routes
    from ..dashboard import DashboardController
except ImportError:
    from core.config import DashboardConfig
    from api.data_service import DataServiceClient
    from api.routes.dashboard_routes import create_dashboard_routes
    from dashboard import DashboardController

logger = logging.getLogger("perfdash.server")


def create_app(config: DashboardConfig, data_service=None) -> FastAPI:
    """
    Create the dashboard application.

    Args:
        config: Dashboard configuration
        data_service: Data Service client; built from config when omitted
    """
    if data_service is None:
        data_service = DataServiceClient(
            config.data_service_url,
            timeout=config.request_timeout,
            verify_tls=config.verify_tls
        )

    controller = DashboardController(
        data_service,
        debounce_seconds=config.debounce_seconds,
        default_date_from=config.default_date_from,
        refetch_after_delete=config.refetch_after_delete,
        light_theme=config.light_theme,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("perfdash starting; data service at %s", config.data_service_url)
        controller.start()
        yield
        await controller.shutdown()
        logger.info("perfdash stopped")

    app = FastAPI(title="perfdash", lifespan=lifespan)
    app.state.controller = controller
    app.include_router(create_dashboard_routes(controller))

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "state": controller.state.value,
            "points": len(controller.dataset.graphs) if controller.dataset is not None else 0,
        }

    return app
