from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pythonjsonlogger import jsonlogger
from slowapi.errors import RateLimitExceeded

from .config import settings
from .database import Base, engine
from .errors import ServiceError
from .rate_limit import limiter
from .schemas import ApiResponse
from .state import CacheRegistry
from .api import routes_feedback, routes_questions, routes_results
from .api.deps import build_services

logger = logging.getLogger("brainlab")

INTERNAL_ERROR_MESSAGE = "An internal error occurred."
BAD_REQUEST_MESSAGE = "The request is not valid."
TOO_MANY_REQUESTS_MESSAGE = "Too many requests. Please slow down."

# ---------------------------------------------------------------------------
# Structured logging
# ---------------------------------------------------------------------------

def _configure_logging() -> None:
    """Configure structured JSON logging when log_format=json (default)."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == "json":
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    handler.setFormatter(formatter)
    root.addHandler(handler)

_configure_logging()

# Initialise database tables on startup
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    caches = CacheRegistry.from_settings(settings)
    app.state.services = build_services(caches, settings)
    logger.info("BrainLab API started (environment=%s)", settings.environment)
    try:
        yield
    finally:
        caches.close()


app = FastAPI(
    title="BrainLab API",
    version="1.0.0",
    description=(
        "Timed reasoning quiz: question sets, server-timed scoring, "
        "rank and percentile estimation, and a deduplicated leaderboard."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes_questions.router)
app.include_router(routes_results.router)
app.include_router(routes_feedback.router)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ApiResponse.fail(message).model_dump())


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return _envelope(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = BAD_REQUEST_MESSAGE
    if errors:
        message = str(errors[0].get("msg") or message).removeprefix("Value error, ")
    return _envelope(400, message)


@app.exception_handler(RateLimitExceeded)
async def request_rate_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _envelope(429, TOO_MANY_REQUESTS_MESSAGE)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(500, INTERNAL_ERROR_MESSAGE)


@app.get("/", tags=["meta"])
def root() -> dict:
    return {"status": "ok", "service": "brainlab", "version": "1.0.0"}


@app.get("/health", tags=["meta"])
def health() -> dict:
    return {"status": "healthy"}
