from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from privacydesk.core.config import settings
from loguru import logger


def setup_cors_middleware(app: FastAPI) -> None:
    """
    Configure CORS middleware with environment-specific settings
    """
    allowed_origins = list(settings.cors_origins_list)
    if settings.ENVIRONMENT == "development":
        allowed_origins += ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Accept",
            "Content-Type",
            "X-Tenant-Id",
            "X-Actor-Id",
            "X-Trace-Id"
        ],
        expose_headers=["X-Trace-Id"],
        max_age=600,  # Cache preflight requests for 10 minutes
    )

    logger.info(f"✅ CORS configured for {len(allowed_origins)} origins")
