# privacydesk/main.py - Application entrypoint
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager
from prometheus_fastapi_instrumentator import Instrumentator
import time

# Core imports
from privacydesk.core.config import settings
from privacydesk.db.database import get_db, init_db

# Import tracing
from privacydesk.core import tracing

# Import API routes
from privacydesk.api.v1 import api_router

# Import middleware
from privacydesk.middleware.security import SecurityHeadersMiddleware
from privacydesk.middleware.cors import setup_cors_middleware

# Import exception handlers
from privacydesk.exceptions.errors import PrivacyDeskError
from privacydesk.exceptions.handlers import (
    domain_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    global_exception_handler,
    starlette_http_exception_handler
)

SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan with database initialization
    """
    tracing.info("PrivacyDesk API startup initiated")

    try:
        await init_db()
    except Exception as e:
        tracing.error(f"Database initialization failed: {e}")
        raise

    tracing.info(f"Environment: {settings.ENVIRONMENT}")
    tracing.info(f"Log Level: {settings.LOG_LEVEL}")
    tracing.info(f"Default SLA: {settings.DEFAULT_SLA_DAYS} days, due soon within {settings.DEFAULT_DUE_SOON_DAYS}")
    tracing.info(f"CORS Origins: {len(settings.cors_origins_list)} configured")
    tracing.info(f"PrivacyDesk API v{SERVICE_VERSION} startup complete")

    yield

    tracing.info("PrivacyDesk API shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="PrivacyDesk API",
    description="DSAR case lifecycle and SLA deadline tracking",
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT == "development" else None
)

# =============================================================================
# MIDDLEWARE SETUP (Order matters!)
# =============================================================================

# Security Headers (protects all responses)
app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.ENVIRONMENT == "production")

# CORS (handles preflight requests)
setup_cors_middleware(app)

# Trace IDs and structured logging; added last so it wraps everything
tracing.setup_tracing(app)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

app.add_exception_handler(PrivacyDeskError, domain_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# =============================================================================
# PROMETHEUS METRICS
# =============================================================================

instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_group_untemplated=False,
    should_instrument_requests_inprogress=True,
    inprogress_labels=True
)
instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

# =============================================================================
# API ROUTES
# =============================================================================

app.include_router(api_router, prefix="/api/v1")


# =============================================================================
# SYSTEM ENDPOINTS
# =============================================================================

@app.get("/health", tags=["System"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check with database connectivity test
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        tracing.error(f"Health check failed: {e}",
                      endpoint="/health",
                      status="failed",
                      error_type=type(e).__name__)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy - database connection failed"
        )

    return {
        "status": "healthy",
        "service": "PrivacyDesk API",
        "version": SERVICE_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": time.time(),
        "trace_id": tracing.get_current_trace_id(),
        "checks": {"database": "connected"}
    }


@app.get("/", tags=["System"])
async def api_information():
    """API information endpoint"""
    return {
        "message": "PrivacyDesk API - DSAR case lifecycle and SLA deadlines",
        "version": SERVICE_VERSION,
        "environment": settings.ENVIRONMENT,
        "status": "operational",
        "trace_id": tracing.get_current_trace_id(),
        "endpoints": {
            "health": "/health",
            "metrics": "/metrics",
            "cases": "/api/v1/cases",
            "reports": "/api/v1/reports/sla",
            "configuration": "/api/v1/sla-config",
            "documentation": "/docs" if settings.ENVIRONMENT == "development" else "Contact administrator"
        },
        "timestamp": time.time()
    }
