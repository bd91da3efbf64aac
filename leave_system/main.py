"""
Leave System - FastAPI application.

Schema creation and the bootstrap admin run once in the lifespan hook.
Every error leaves the API in the same envelope:

    {"success": false, "message": "...", "errors": [{"msg": ..., "code": ...}]}
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

import leave_system.models  # noqa: F401  Force model registration with SQLAlchemy
from leave_system.core.config import settings
from leave_system.core.exceptions import AppException
from leave_system.core.init_system import init_system_data
from leave_system.core.limiter import limiter
from leave_system.core.logging import setup_logging
from leave_system.core.middleware import CorrelationIdMiddleware
from leave_system.database import SessionLocal, init_db
from leave_system.routers.api_router import api_router

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    try:
        init_db()
        init_system_data()
    except Exception:
        logger.exception("Startup failed while preparing the database")
        raise
    logger.info("Database ready")
    yield
    logger.info("Shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Employee leave requests, annual quotas and usage statistics",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Last added runs first: CORS wraps the correlation id
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.request_id_header, "Content-Disposition"],
)


def error_response(status_code: int, message: str, errors: Optional[List[dict]] = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "errors": errors or [{"msg": message}]},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    # loc is ("body" | "query" | "path", field, ...)
    errors = [
        {"field": ".".join(str(part) for part in error["loc"][1:]) or "unknown", "msg": error["msg"]}
        for error in exc.errors()
    ]
    logger.warning("Request validation failed", extra={"path": request.url.path, "errors": errors})
    return error_response(422, "資料格式錯誤", errors)


@app.exception_handler(AppException)
async def handle_app_exception(request: Request, exc: AppException):
    logger.warning(exc.message, extra={"code": exc.error_code, "path": request.url.path})
    error = {"msg": exc.message, "code": exc.error_code}
    if exc.details:
        error["details"] = exc.details
    return error_response(exc.status_code, exc.message, [error])


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    return error_response(500, "An unexpected server error occurred.")


app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/", tags=["Health"])
def root():
    return {
        "message": f"{settings.app_name} API",
        "version": settings.version,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
    }


@app.get("/readiness", tags=["Health"])
def readiness_check():
    """Readiness probe: the database answers a trivial query."""
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Service not ready")
    return {"status": "ready", "components": {"database": "connected"}}
