"""FastAPI application entrypoint. No business logic; only wiring, middleware and error translation."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktrack.api import health
from tasktrack.api.v1 import router as v1_router
from tasktrack.core.config import Settings, get_settings
from tasktrack.core.database import Database
from tasktrack.core.errors import AppError, NotFoundError, ValidationError, to_error_response
from tasktrack.core.middleware import setup_middleware
from tasktrack.core.security import TokenService

logger = logging.getLogger("tasktrack")


def configure_logging(settings: Settings) -> None:
    # Timestamps are rendered in UTC to match the Z suffix.
    logging.Formatter.converter = time.gmtime
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database handle at startup (unless one was injected) and dispose it at shutdown."""
    settings: Settings = app.state.settings
    owns_db = app.state.db is None
    if owns_db:
        app.state.db = Database(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            pool_timeout=settings.DB_POOL_TIMEOUT_SEC,
        )
    app.state.started_at = time.monotonic()
    logger.info("Starting TaskTrack API env=%s version=%s", settings.APP_ENV, settings.APP_VERSION)
    if not app.state.db.is_connected():
        logger.warning("Database not reachable at startup; database-backed routes will fail")
    try:
        yield
    finally:
        if owns_db:
            app.state.db.dispose()
            app.state.db = None
        logger.info("TaskTrack API stopped")


def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        details.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """Single translation point from any raised error to the failure envelope."""

    def respond(exc: Exception) -> JSONResponse:
        settings: Settings = app.state.settings
        error = to_error_response(exc, expose_internals=not settings.is_production)
        return JSONResponse(status_code=error.status_code, content=error.body, headers=error.headers)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return respond(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return respond(ValidationError(details=_field_errors(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return respond(NotFoundError(f"Route {request.method} {request.url.path} not found"))
        return respond(exc)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        return respond(exc)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        return respond(exc)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the application. Tests pass their own settings and an in-memory Database."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="TaskTrack API",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tokens = TokenService(settings)
    app.state.db = database
    app.state.started_at = time.monotonic()

    setup_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)
    return app


app = create_app()
