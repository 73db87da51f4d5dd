from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.badge_keys import router as badge_keys_router
from app.api.health import router as health_router
from app.api.metrics_endpoint import router as metrics_router
from app.core.config import SETTINGS
from app.core.errors import BadgeError
from app.core.logging import setup_logging
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="badge-issuer",
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Middleware execution order: last-added runs first (outermost layer).
# RequestContext (outermost) → Metrics → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)


@app.exception_handler(BadgeError)
async def badge_error_handler(_request: Request, exc: BadgeError) -> JSONResponse:
    # The only place a BadgeError becomes an HTTP status.
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "%s: %s",
        type(exc).__name__,
        exc.message,
        extra={"error_type": type(exc).__name__},
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


app.include_router(metrics_router)
app.include_router(badge_keys_router)
app.include_router(health_router)

logger.info(
    "badge-issuer started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
