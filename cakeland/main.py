import logging
import os
import time
import uuid

import sentry_sdk
import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from cakeland.api.v1 import admin, auth, cart, coupons, pages, products, wishlist
from cakeland.core.config import settings
from cakeland.core.exceptions import APIError
from cakeland.core.logging_config import configure_logging
from cakeland.core.rate_limiter import limiter
from cakeland.db.session import engine
from cakeland.middleware.csrf import requires_csrf_check, verify_csrf_token
from cakeland.utils.response import error

API_VERSION = "1.0.0"
DEV_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:8080"]

# --------------------------------------------------
# LOGGING & MONITORING
# --------------------------------------------------
configure_logging()
logger = structlog.get_logger()

if settings.ENVIRONMENT == "production" and settings.SENTRY_DSN:
    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=0.1,
            integrations=[FastApiIntegration(), SqlalchemyIntegration()],
        )
        logging.info("Sentry initialized")
    except Exception as exc:
        # The storefront keeps serving without error monitoring.
        logging.warning("Sentry init failed: %s", exc)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=API_VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
)

# --------------------------------------------------
# RATE LIMITING
# --------------------------------------------------
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# --------------------------------------------------
# CORS & HOSTS
# --------------------------------------------------
cors_origins = list(dict.fromkeys(
    settings.BACKEND_CORS_ORIGINS
    + ([settings.FRONTEND_URL] if settings.FRONTEND_URL else [])
    + (DEV_ORIGINS if settings.ENVIRONMENT != "production" else [])
))

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "X-CSRF-Token", "X-Requested-With", "X-Correlation-ID"],
    expose_headers=["X-Process-Time", "X-Correlation-ID", "X-Request-ID"],
    max_age=3600,
)

if settings.ENVIRONMENT == "production":
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)


# --------------------------------------------------
# REQUEST MIDDLEWARE
# --------------------------------------------------
@app.middleware("http")
async def csrf_guard(request: Request, call_next):
    if requires_csrf_check(request) and not verify_csrf_token(request):
        logger.warning("csrf_rejected", method=request.method, path=request.url.path)
        return error(status_code=status.HTTP_403_FORBIDDEN, message="CSRF validation failed")
    return await call_next(request)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Content-Security-Policy"] = "default-src 'self'"
    if settings.ENVIRONMENT == "production":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Bind correlation/request ids to the log context, log the request and time it."""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    request_id = str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    request.state.request_id = request_id
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id, request_id=request_id)

    started = time.perf_counter()
    logger.info(
        "request_started",
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else None,
    )
    try:
        response = await call_next(request)
        elapsed = time.perf_counter() - started
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )
    finally:
        structlog.contextvars.unbind_contextvars("correlation_id", "request_id")

    response.headers["X-Process-Time"] = f"{elapsed:.6f}"
    response.headers["X-Correlation-ID"] = correlation_id
    response.headers["X-Request-ID"] = request_id
    return response


# --------------------------------------------------
# ROUTERS
# --------------------------------------------------
ROUTERS = [
    (auth.router, "auth", "Authentication"),
    (products.router, "products", "Products"),
    (cart.router, "cart", "Cart"),
    (wishlist.router, "wishlist", "Wishlist"),
    (coupons.router, "coupons", "Coupons"),
    (admin.router, "admin", "Admin"),
    (pages.router, "pages", "Pages"),
]

for router, prefix, tag in ROUTERS:
    app.include_router(router, prefix=f"{settings.API_V1_STR}/{prefix}", tags=[tag])


@app.get("/")
def root():
    return {"message": settings.PROJECT_NAME, "docs": app.docs_url, "version": API_VERSION}


@app.get("/health")
def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT, "version": API_VERSION}


@app.get("/health/database")
def database_health_check():
    try:
        with engine.connect() as connection:
            connection.exec_driver_sql("SELECT 1")
    except Exception as exc:
        logger.error("database_unhealthy", detail=str(exc))
        return {"status": "unhealthy", "reason": "Database connectivity check failed"}
    return {"status": "healthy", "pool": engine.pool.status()}


@app.get(f"{settings.API_V1_STR}/version")
def get_version():
    return {"version": API_VERSION, "commit": os.getenv("GIT_COMMIT", "unknown")}


# --------------------------------------------------
# EXCEPTION HANDLERS
# --------------------------------------------------
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return error(status_code=status.HTTP_429_TOO_MANY_REQUESTS, message="Too many requests. Please try again later.")


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    return error(status_code=exc.status_code, message=exc.message, errors=exc.errors)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        message, errors = detail.get("message", "Request failed"), detail.get("errors", [])
    elif isinstance(detail, list):
        message, errors = "Request failed", detail
    else:
        message, errors = str(detail) if detail else "Request failed", []

    response = error(status_code=exc.status_code, message=message, errors=errors)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, message="Validation failed", errors=exc.errors())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_exception", error_type=type(exc).__name__)
    if settings.DEBUG and settings.ENVIRONMENT != "production":
        return error(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=f"Internal server error: {exc}",
            errors=[{"type": type(exc).__name__}],
        )
    return error(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, message="Internal server error")
