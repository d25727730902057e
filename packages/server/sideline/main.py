"""
Sideline Access API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sideline.api.v1 import router as api_v1_router
from sideline.core.config import get_settings
from sideline.core.database import check_database, engine, init_db
from sideline.core.errors import AccessError
from sideline.core.logs import configure_logging
from sideline_shared.schemas.common import ErrorResponse

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Sideline Access",
        description="Team roles, role requests and access decisions.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Team-Id"],
    )

    @app.exception_handler(AccessError)
    async def access_error_handler(request: Request, exc: AccessError):
        body = ErrorResponse(detail=str(exc.detail), code=exc.code)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint: the database must answer."""
        if not await check_database():
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("Sideline starting", debug=settings.debug)
        if settings.create_tables_on_startup:
            await init_db()

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Sideline shutting down")
        await engine.dispose()

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "sideline.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
