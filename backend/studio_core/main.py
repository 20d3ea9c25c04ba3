# backend/studio_core/main.py
"""
FastAPI application for the studio scheduling core.
"""

import logging

from fastapi import FastAPI, Response

from .core.config import settings
from .core.request_context import configure_logging
from .middleware.prometheus_middleware import METRICS_PATH, PrometheusMiddleware
from .middleware.request_id import RequestIdMiddleware
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes import bookings, checkout, payroll, schedule

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Studio Scheduling Core",
        description="Recurring class generation, booking arbitration and payroll",
        version="0.1.0",
    )

    # Added last runs first: the request id must be bound before metrics and handlers log.
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(schedule.router)
    app.include_router(bookings.router)
    app.include_router(payroll.router)
    app.include_router(checkout.router)

    @app.get("/health", include_in_schema=False)
    def health() -> dict:
        return {"status": "healthy", "environment": settings.environment}

    @app.get(METRICS_PATH, include_in_schema=False)
    def metrics() -> Response:
        return Response(
            content=prometheus_metrics.get_metrics(),
            media_type=prometheus_metrics.get_content_type(),
        )

    logger.info("Application configured for %s", settings.environment)
    return app


app = create_app()
