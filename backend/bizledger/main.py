"""
Main FastAPI application.

WHY: This is the entry point for the application. It configures logging,
middleware, routes, exception handlers and the background scheduler.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bizledger.core.config import settings
from bizledger.core.exceptions import AppException
from bizledger.core.exception_handlers import (
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    sqlalchemy_exception_handler,
    generic_exception_handler,
)
from bizledger.core.logging import configure_logging
from bizledger.middleware import SecurityHeadersMiddleware, RequestContextMiddleware
from bizledger.api import customers, expenses, invoices, quotations, team, vendors
from bizledger.services.scheduler import start_scheduler, shutdown_scheduler, get_scheduler_status


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    WHY: Factory pattern allows easier testing with different configurations.

    Returns:
        Configured FastAPI application instance
    """
    configure_logging()

    prefix = settings.API_V1_PREFIX
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Quotations, invoices, vendors and expenses for small businesses",
        version=settings.VERSION,
        docs_url=f"{prefix}/docs",
        redoc_url=f"{prefix}/redoc",
        openapi_url=f"{prefix}/openapi.json",
    )

    # Every error leaves the API as {"error", "kind", "message", "status_code", "details"}
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Request id, client IP and user agent for logs and audit entries
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, api_prefix=prefix)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint.

        WHY: Lets load balancers verify the service without authentication
        or a database round trip.
        """
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "scheduler": get_scheduler_status(),
        }

    @app.on_event("startup")
    async def startup_event():
        """Start the quotation expiry scheduler unless disabled."""
        if settings.SCHEDULER_ENABLED:
            await start_scheduler()

    @app.on_event("shutdown")
    async def shutdown_event():
        await shutdown_scheduler()

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": f"{prefix}/docs",
        }

    app.include_router(customers.router, prefix=prefix)
    app.include_router(quotations.router, prefix=prefix)
    app.include_router(invoices.router, prefix=prefix)
    app.include_router(vendors.router, prefix=prefix)
    app.include_router(expenses.categories_router, prefix=prefix)
    app.include_router(expenses.router, prefix=prefix)
    app.include_router(team.router, prefix=prefix)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # Development only; in production run `uvicorn bizledger.main:app`
    uvicorn.run(
        "bizledger.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info" if settings.DEBUG else "warning",
    )
