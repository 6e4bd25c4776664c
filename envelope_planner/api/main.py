"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from envelope_planner.api.middleware import RequestIDMiddleware, MetricsMiddleware
from envelope_planner.api.v1 import allocation, projection
from envelope_planner.infrastructure.observability.logging import setup_logging
from envelope_planner.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Envelope Planner",
        description="Balance projection and cash-flow allocation service",
        version="0.1.0",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check with the active loop guards
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "limits": {
                "max_recurrence_iterations": settings.max_recurrence_iterations,
                "max_coverage_cycles": settings.max_coverage_cycles,
                "significance_threshold_cents": settings.significance_threshold_cents,
            },
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(projection.router, prefix="/v1", tags=["projection"])
    app.include_router(allocation.router, prefix="/v1", tags=["allocation"])

    return app


app = create_app()
