"""
app/main.py — FastAPI application entry point
Includes: lifespan management, CORS, burst rate limiting, security headers,
          startup validation, {"erro": ...} error envelope, ping endpoint.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.clients.topic_store import StoreError, get_topic_store
from app.config import get_settings
from app.core import logging as app_logging
from app.core.errors import TopicError
from app.core.logging import setup_logging
from app.core.rate_limiter import RATE_LIMITS, limiter
from app.routers import admin, api

settings = get_settings()

APP_VERSION = "1.0.0"

_PLACEHOLDER_VALUES = ("", "change-me-immediately")


# ──────────────────────────────────────────────────────────────────────────────
# Application Lifespan
# ──────────────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI lifespan: startup → yield → shutdown.
    Startup: initialize logging, validate env, open the topic store.
    """
    setup_logging(settings.log_level)
    logger.info("Topic voting service starting up...")

    _validate_env()

    try:
        get_topic_store()
    except StoreError as exc:
        app_logging.log_error("main", "store_init", exc, {"backend": settings.store_backend})
        logger.warning("Topic store unavailable; requests will fail with 500 until it is reachable.")

    logger.info("Startup complete.")
    yield
    logger.info("Shutting down topic voting service.")
    try:
        store = get_topic_store()
    except StoreError:
        return
    close = getattr(store, "close", None)
    if callable(close):
        close()


def _validate_env() -> None:
    """Warn loudly on placeholder admin credentials or missing store credentials."""
    missing = []
    if settings.admin_secret in _PLACEHOLDER_VALUES:
        missing.append("ADMIN_SECRET")
    if settings.admin_token in _PLACEHOLDER_VALUES:
        missing.append("ADMIN_TOKEN")
    if settings.store_backend == "supabase":
        if not settings.supabase_url:
            missing.append("SUPABASE_URL")
        if not settings.supabase_key:
            missing.append("SUPABASE_KEY")

    if missing:
        msg = f"Missing or placeholder env vars: {', '.join(missing)}"
        logger.critical(msg)
        logger.warning("App will start but admin login and/or persistence may not work as intended.")


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI App
# ──────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Topic Voting API",
    description=(
        "Visitors suggest topics and vote on them (capped per client); "
        "an administrator edits and deletes them."
    ),
    version=APP_VERSION,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url=None,
    lifespan=lifespan,
)

# ── Rate limiting — fastapi/slowapi ───────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    lambda req, exc: JSONResponse(
        status_code=429,
        content={"erro": "Muitas requisições. Tente novamente em instantes."},
    ),
)
app.add_middleware(SlowAPIMiddleware)

# ── CORS — browser client sends credentials ──────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ── Security headers middleware ───────────────────────────────────────────────
@app.middleware("http")
async def add_security_headers(request: Request, call_next) -> Response:
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
    return response


# ── Error envelope: every failure renders as {"erro": ...} ───────────────────
@app.exception_handler(TopicError)
async def topic_error_handler(request: Request, exc: TopicError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"erro": "Requisição inválida."})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"erro": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    app_logging.log_error("main", request.url.path, exc, {"method": request.method})
    return JSONResponse(status_code=500, content={"erro": "Erro interno."})


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(api.router, prefix="/api", tags=["temas"])
app.include_router(admin.router, prefix="/api", tags=["admin"])


# ── Ping keep-alive endpoint ──────────────────────────────────────────────────
@app.get("/api/ping", tags=["health"])
@limiter.limit(RATE_LIMITS["ping"])
async def ping(request: Request):
    """Does NOT touch the topic store."""
    return {"status": "ok", "version": APP_VERSION}
