"""FastAPI application for the notice service."""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import fastapi
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_settings
from core.database import (
    create_engine,
    create_session_maker,
    dispose_engine,
    init_db,
)
from core.errors import (
    GENERIC_ERROR_MESSAGE,
    ErrorKind,
    NoticeServiceError,
    error_body,
)
from core.logger import configure_logging
from core.middleware import RequestTimingMiddleware, SecurityHeadersMiddleware
from core.ratelimit import limiter, rate_limit_exceeded_handler
from routes import health_router, notices_router

configure_logging()
logger = logging.getLogger(__name__)


async def notice_service_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Maps a NoticeServiceError to its status code and the standard body."""
    if not isinstance(exc, NoticeServiceError):
        return await global_exception_handler(request, exc)

    if exc.kind is ErrorKind.INTERNAL:
        logger.error(
            "notice.internal_error",
            extra={"path": request.url.path, "error": exc.message},
        )
    else:
        logger.info(
            "notice.request_rejected",
            extra={
                "path": request.url.path,
                "method": request.method,
                "kind": exc.kind.value,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.public_message),
    )


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    # Field validators raise ValueError; report their message as written
    ctx_error = (first.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    field = first.get("loc", ())[-1] if first.get("loc") else None
    return f"{field}: {first['msg']}" if field is not None else first["msg"]


async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Request validation errors become 400 with the first field's message."""
    if not isinstance(exc, RequestValidationError):
        return await global_exception_handler(request, exc)

    logger.warning(
        "request.validation_error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_count": len(exc.errors()),
        },
    )
    return JSONResponse(
        status_code=400,
        content=error_body(400, _first_validation_message(exc)),
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unknown routes, wrong methods and explicit HTTPExceptions."""
    if not isinstance(exc, StarletteHTTPException):
        return await global_exception_handler(request, exc)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unhandled exceptions."""
    logger.exception(
        "unhandled.exception",
        extra={
            "exc_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content=error_body(500, GENERIC_ERROR_MESSAGE),
    )


async def _run_alembic_migrations() -> None:
    """Run Alembic migrations in a subprocess.

    Alembic drives its own synchronous engine; a subprocess keeps it off
    the application's event loop entirely.
    """
    import subprocess
    import sys

    cmd = [
        sys.executable,
        "-c",
        (
            "from alembic import command; "
            "from alembic.config import Config; "
            "command.upgrade(Config('alembic.ini'), 'head')"
        ),
    ]
    cwd = Path(__file__).parent

    result = await asyncio.to_thread(
        lambda: subprocess.run(
            cmd, cwd=cwd, capture_output=True, text=True, timeout=120
        )
    )

    if result.returncode != 0:
        stderr = result.stderr.strip()
        logger.error("migrations.failed", extra={"stderr": stderr})
        raise RuntimeError(f"Alembic migration failed:\n{stderr}")

    logger.info("migrations.complete")


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Create DB engine at startup, dispose on shutdown."""
    settings = get_settings()
    app.state.engine = create_engine()
    app.state.session_maker = create_session_maker(app.state.engine)

    app.state.init_done = False
    app.state.init_error = None

    try:
        async with asyncio.timeout(60):
            await init_db(app.state.engine)

        if settings.run_migrations:
            async with asyncio.timeout(120):
                await _run_alembic_migrations()

        app.state.init_done = True
        logger.info("init.complete")
    except TimeoutError:
        logger.error(
            "init.timeout",
            extra={"hint": "Startup hung, check DB connectivity and migration state"},
        )
        raise RuntimeError("Application startup timed out")
    except Exception as e:
        app.state.init_error = str(e)
        logger.error("init.failed", extra={"error": str(e)}, exc_info=True)
        raise

    try:
        yield
    finally:
        await dispose_engine(app.state.engine)


_settings = get_settings()
_docs_enabled = _settings.enable_docs or _settings.debug

app = fastapi.FastAPI(
    title="Notice Service API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(NoticeServiceError, notice_service_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(SecurityHeadersMiddleware)

if _settings.debug:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Role", "X-Member-No"],
        expose_headers=["X-Request-Duration-Ms", "X-Request-Id"],
        max_age=600,
    )

# Outermost: times the full request and emits the canonical log line.
app.add_middleware(RequestTimingMiddleware)

app.include_router(health_router)
app.include_router(notices_router)
