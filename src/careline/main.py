"""FastAPI application entry point."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import audit, driver, health, notifications, routes, stops, tracking
from .config import settings
from .services.registry import ServiceRegistry


def create_app(services: ServiceRegistry | None = None) -> FastAPI:
    app = FastAPI(title=settings.app_name, root_path="")
    app.state.services = services or ServiceRegistry.build(settings)

    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(routes.router, prefix=settings.api_prefix)
    app.include_router(stops.router, prefix=settings.api_prefix)
    app.include_router(driver.router, prefix=settings.api_prefix)
    app.include_router(tracking.router, prefix=settings.api_prefix)
    app.include_router(notifications.router, prefix=settings.api_prefix)
    app.include_router(audit.router, prefix=settings.api_prefix)
    return app


app = create_app()
