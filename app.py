#!/usr/bin/env python3
import logging
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from cache import MemoryCache
from comments import CommentManager
from config import (SECRET_KEY, DB_PATH, ALLOWED_ORIGINS, DEFAULT_HOST, DEFAULT_PORT,
                   MAX_REQUEST_SIZE_MB, GZIP_MIN_SIZE, CACHE_CLEANUP_INTERVAL)
from database import DatabaseManager, timestamp
from endpoints import create_auth_router, create_forum_router, create_post_router, create_comment_router
from exceptions import ApiError
from forums import ForumManager
from models import ErrorResponse
from posts import PostManager
from security import SecurityManager
from users import UserManager

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Request size limit (1MB for API requests)
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_SIZE_MB * 1024 * 1024:
            status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
            return JSONResponse(
                status_code=status_code,
                content=ErrorResponse(code=status_code, error="REQUEST_TOO_LARGE",
                                      details=["Request entity too large"]).model_dump()
            )

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith("/api/"):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"

        return response


def _error_name(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase.upper().replace(" ", "_").replace("-", "_")
    except ValueError:
        return "ERROR"


def _field_error(error: dict) -> str:
    field = ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path"))
    message = error["msg"].removeprefix("Value error, ")
    return f"{field}: {message}" if field else message


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc, ApiError):
        error, details = exc.error, exc.detail
    else:
        error = _error_name(exc.status_code)
        details = [exc.detail] if isinstance(exc.detail, str) else list(exc.detail or [])

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(code=exc.status_code, error=error, details=details).model_dump(),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(code=status.HTTP_400_BAD_REQUEST, error="VALIDATION_FAILED",
                              details=[_field_error(error) for error in exc.errors()]).model_dump()
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(code=status.HTTP_500_INTERNAL_SERVER_ERROR, error="INTERNAL_SERVER_ERROR",
                              details=["An unexpected error occurred"]).model_dump()
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    await app.state.db.initialize()
    await app.state.cache.start_cleanup(CACHE_CLEANUP_INTERVAL)
    logger.info("Forum API started")
    yield
    await app.state.cache.stop_cleanup()


def create_app(db_path: str = DB_PATH, secret_key: str = SECRET_KEY,
               cache: Optional[MemoryCache] = None) -> FastAPI:
    """Build the API with its storage, cache and managers wired onto app.state"""
    app = FastAPI(title="Forum API", description="A simple forum web application API",
                  version="1.0.0", lifespan=lifespan)

    db = DatabaseManager(db_path)
    security_manager = SecurityManager(secret_key=secret_key)
    app.state.db = db
    app.state.cache = cache if cache is not None else MemoryCache()
    app.state.security_manager = security_manager
    app.state.forum_manager = ForumManager(db)
    app.state.post_manager = PostManager(db, app.state.cache)
    app.state.comment_manager = CommentManager(db)
    app.state.user_manager = UserManager(db, security_manager)

    app.add_middleware(GZipMiddleware, minimum_size=GZIP_MIN_SIZE)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"]
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(create_auth_router())
    app.include_router(create_forum_router())
    app.include_router(create_post_router())
    app.include_router(create_comment_router())

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "timestamp": timestamp()}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=DEFAULT_HOST, port=DEFAULT_PORT)
