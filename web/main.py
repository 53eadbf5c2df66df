"""
FastAPI JSON API for the sales dashboard.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, ORJSONResponse
from starlette.middleware.gzip import GZipMiddleware

from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from salesboard.config import validate_config
from salesboard.exceptions import ConfigurationError, DataFetchError, FeedSchemaError, SalesboardError
from salesboard.observability import get_correlation_id, get_logger, metrics, setup_logging
from web.config import LOG_FORMAT, LOG_LEVEL, VERSION
from web.middleware import RequestLoggingMiddleware, RequestTimeoutMiddleware
from web.routes import api
from web.routes.api._deps import limiter
from web.services import dashboard_service

# Configure structured logging
# Use JSON format in production (LOG_FORMAT=json), human-readable otherwise
setup_logging(level=LOG_LEVEL, json_format=(LOG_FORMAT == "json"))
logger = get_logger(__name__)

app = FastAPI(
    title="Salesboard",
    description="Regional sales and advertising analytics",
    version=VERSION,
    default_response_class=ORJSONResponse,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": "Too many requests. Please try again later.",
            "retry_after": exc.detail,
        },
    )


@app.exception_handler(DataFetchError)
@app.exception_handler(FeedSchemaError)
async def feed_error_handler(request: Request, exc: SalesboardError):
    # Upstream details stay in the log; clients get an opaque message
    logger.error(f"Feed unavailable: {exc}", extra={"path": request.url.path})
    metrics.record_error(type(exc).__name__)
    return JSONResponse(
        status_code=502,
        content={
            "error": "Bad Gateway",
            "detail": "Sales feed is unavailable",
            "correlation_id": get_correlation_id(),
        },
    )


# Add request logging middleware (adds correlation IDs and timing)
app.add_middleware(RequestLoggingMiddleware)

# Must be AFTER logging so correlation_id is set when timeout fires
app.add_middleware(RequestTimeoutMiddleware)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(api.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Salesboard API starting...")

    # Validate configuration early - fail fast with clear errors
    try:
        validate_config(require_feed=True)
        logger.info("Configuration validated")
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        raise SystemExit(1)

    # Warm the snapshot; a failure here is retried lazily on first request
    try:
        await dashboard_service.get_snapshot()
    except SalesboardError as e:
        logger.error(f"Initial snapshot load failed: {e}")

    logger.info("Salesboard API ready")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Salesboard API stopped")
