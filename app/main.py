"""
FastAPI application entry point.

Sets up the app, lifespan (store connect/disconnect), CORS, logging, error
handlers, and includes API routers.

All persistence calls are awaited Motor I/O, so one process serves many
concurrent requests; handlers share nothing but the connection handle.
"""

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.api import collaboration, users
from app.config import get_settings
from app.database import close_mongo_connection, connect_to_mongo
from app.errors import AppError, StoreError
from app.services.user_store import InMemoryUserStore, MongoUserStore

# Configure logging - single place for log format and level
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: runs on startup and shutdown.
    Builds the user store; with MongoDB it also owns the connection handle.
    """
    settings = get_settings()
    connection = None
    if settings.use_in_memory_store:
        logger.warning("USE_IN_MEMORY_STORE is set; user documents will not be persisted.")
        app.state.user_store = InMemoryUserStore()
    else:
        connection = await connect_to_mongo(settings)
        app.state.user_store = MongoUserStore(connection, settings.users_collection)
    app.state.mongo_connection = connection
    yield
    if connection is not None:
        await close_mongo_connection(connection)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, StoreError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies are client errors, reported like the service-level checks
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc)},
    )


def create_application() -> FastAPI:
    """Factory for the FastAPI app. Keeps main.py clean and testable."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Per-user productivity documents and task-sharing collaboration.",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(collaboration.router, prefix="/api/collaboration", tags=["collaboration"])

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def root() -> str:
        return "Productivity backend is running!"

    @app.get("/health", summary="Store health check")
    async def health(request: Request) -> JSONResponse:
        connection = getattr(request.app.state, "mongo_connection", None)
        if connection is None:
            backend = "memory" if getattr(request.app.state, "user_store", None) else "none"
            return JSONResponse({"status": "ok", "store": backend})
        if await connection.ping():
            return JSONResponse({"status": "ok", "store": "mongodb"})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "degraded", "store": "mongodb"},
        )

    return app


app = create_application()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
