"""
FastAPI Production Application

Main entry point for the Inventory Analytics API.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from inventory_analytics.config import get_settings
from inventory_analytics.config.logging import configure_logging
from inventory_analytics.database.connection import close_database, create_tables, init_database
from inventory_analytics.reporting.pdf import ReportRenderError, ReportRenderTimeout
from inventory_analytics.serving.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from inventory_analytics.serving.api.routes import (
    health_router,
    reports_router,
    sales_router,
    stock_router,
)
from inventory_analytics.serving.api.schemas import ErrorResponse

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info("Starting Inventory Analytics API", environment=settings.app_env)

    try:
        await init_database()
        if settings.database.create_tables:
            await create_tables()
    except Exception as e:
        logger.warning("Database init failed", error=str(e))

    yield

    logger.info("Shutting down...")
    await close_database()


app = FastAPI(
    title="Inventory Analytics API",
    description="Sales analytics, restocking recommendations and PDF inventory reports",
    version=settings.version,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Custom middleware
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    max_requests=settings.security.rate_limit_requests,
    window_seconds=settings.security.rate_limit_window_seconds,
)
app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def error_response(status_code: int, message: str, detail=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(ErrorResponse(message=message, detail=detail).model_dump(exclude_none=True)),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Invalid request parameters",
        detail=exc.errors(),
    )


@app.exception_handler(ReportRenderTimeout)
async def render_timeout_handler(request: Request, exc: ReportRenderTimeout):
    logger.error("Report generation timed out", path=request.url.path, error=str(exc))
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Report generation timed out")


@app.exception_handler(ReportRenderError)
async def render_error_handler(request: Request, exc: ReportRenderError):
    logger.error("Report generation failed", path=request.url.path, error=str(exc))
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error generating report")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled errors and hide their details from the client."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


# =============================================================================
# ROUTES
# =============================================================================

app.include_router(health_router, prefix="/api/v1", tags=["Health"])
app.include_router(sales_router, prefix="/api/v1/sales", tags=["Sales"])
app.include_router(reports_router, prefix="/api/v1/reports", tags=["Reports"])
app.include_router(stock_router, prefix="/api/v1/stock", tags=["Stock"])


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/api/v1/info")
async def api_info():
    """API information endpoint."""
    return {
        "name": "Inventory Analytics API",
        "version": settings.version,
        "environment": settings.app_env,
        "documentation": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
