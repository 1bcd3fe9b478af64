#!/usr/bin/env python3

"""
Main application entry point for the Academic Buddy task API.

Architecture: FastAPI application over an async SQLAlchemy database.
Key Features: Lifecycle management, database health checks, error handling, CORS configuration.
"""

import asyncio
import sys

# Add this block to switch asyncio event loop policy on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import errno
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.auth import router as auth_router
from app.api.health import router as health_router
from app.api.tasks import router as tasks_router
from app.config import settings
from app.db import check_db_connection, close_db, init_db
from app.exceptions import AppError, ValidationFailedError
from app.utils.logger import setup_logger

logger = setup_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup...")
    try:
        logger.info("Initializing database...")
        await init_db()
        logger.info("Database initialization complete.")

        logger.info("Checking database connectivity...")
        if await check_db_connection():
            logger.info("Database connectivity confirmed.")
        else:
            logger.critical("Database connectivity check failed.")
            raise SystemExit("Database connection failed.")

    except Exception as e:
        logger.critical(f"Startup error: {e}")
        raise SystemExit(f"Startup failed: {e}") from e

    logger.info("Academic Buddy API startup successful.")

    yield

    logger.info("Academic Buddy API shutdown...")
    await close_db()
    logger.info("Shutdown complete.")


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return "; ".join(parts) or ValidationFailedError.default_detail


def create_app():
    app = FastAPI(title="Academic Buddy API", lifespan=lifespan)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = ValidationFailedError(_describe_validation_error(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(OSError)
    async def oserror_exception_handler(request: Request, exc: OSError):
        logger.error(f"OSError caught: {exc}, errno: {exc.errno}")
        if exc.errno in [errno.ETIMEDOUT, errno.ECONNREFUSED]:
            logger.error(
                f"Returning 503 due to DB connection issue: {settings.db_unavailable_hint}"
            )
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"error": "storage_failure", "detail": settings.db_unavailable_hint},
            )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "internal_error", "detail": "An unexpected OS error occurred"},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
        error = AppError()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(tasks_router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    return app


app = create_app()


def main():
    port = int(settings.server_port)
    host = settings.server_host

    logger.info(f"Starting Academic Buddy API server on {host}:{port}")

    try:
        uvicorn.run(
            "main:app", host=host, port=port, workers=settings.server_workers
        )
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
