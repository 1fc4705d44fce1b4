"""RMG Portal: FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from rmg_portal.common.exceptions import register_exception_handlers
from rmg_portal.common.log_config import configure_logging
from rmg_portal.common.rate_limit import limiter
from rmg_portal.config import settings
from rmg_portal.config_master.router import router as config_router
from rmg_portal.customer_pos.router import router as customer_pos_router
from rmg_portal.database import engine
from rmg_portal.employees.router import router as employees_router
from rmg_portal.financial_lines.router import router as financial_lines_router
from rmg_portal.fl_resources.router import router as fl_resources_router
from rmg_portal.helpdesk.router import router as helpdesk_router
from rmg_portal.notifications.router import router as notifications_router
from rmg_portal.projects.router import router as projects_router
from rmg_portal.rmg_analytics.router import router as analytics_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("RMG Portal API starting (%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("RMG Portal API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="RMG Portal",
        description="Resource management: people, projects, financial lines and allocations",
        version=VERSION,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/health", tags=["system"])
    async def health_check():
        return {
            "success": True,
            "status": "healthy",
            "version": VERSION,
            "environment": settings.ENVIRONMENT,
        }

    app.include_router(employees_router, prefix="/api/employees", tags=["employees"])
    app.include_router(projects_router, prefix="/api/projects", tags=["projects"])
    app.include_router(
        financial_lines_router, prefix="/api/financial-lines", tags=["financial-lines"],
    )
    app.include_router(fl_resources_router, prefix="/api/fl-resources", tags=["fl-resources"])
    app.include_router(config_router, prefix="/api/config", tags=["config"])
    app.include_router(customer_pos_router, prefix="/api/customer-pos", tags=["customer-pos"])
    app.include_router(helpdesk_router, prefix="/api/helpdesk", tags=["helpdesk"])
    app.include_router(notifications_router, prefix="/api/notifications", tags=["notifications"])
    app.include_router(analytics_router, prefix="/api/rmg-analytics", tags=["rmg-analytics"])

    return app


app = create_app()
