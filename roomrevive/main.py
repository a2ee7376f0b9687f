import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roomrevive.api.deps import Services, build_services
from roomrevive.api.routes import account, health, redesign
from roomrevive.api.routes.health import VERSION
from roomrevive.config import settings
from roomrevive.errors import RoomReviveError
from roomrevive.logging import configure_logging
from roomrevive.models.contracts import ErrorResponse

configure_logging()

logger = structlog.get_logger()


def _error_response(request: Request, status: int, body: ErrorResponse) -> JSONResponse:
    response = JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))
    response.headers["X-Request-ID"] = getattr(
        request.state, "request_id", request.headers.get("X-Request-ID", "")
    )
    return response


def create_app(services: Services | None = None) -> FastAPI:
    """Build the API. Tests pass their own ``services`` with fakes wired in."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("app_startup", environment=settings.environment, version=VERSION)
        yield
        await app.state.services.aclose()
        logger.info("app_shutdown")

    app = FastAPI(
        title="RoomRevive API",
        version=VERSION,
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.services = services or build_services(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Bind a request ID into the log context and echo it back in X-Request-ID."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(RoomReviveError)
    async def roomrevive_error_handler(request: Request, exc: RoomReviveError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "request_failed",
            path=request.url.path,
            category=exc.category,
            status=exc.status_code,
        )
        return _error_response(
            request,
            exc.status_code,
            ErrorResponse(
                error=exc.message,
                category=exc.category,
                retryable=exc.retryable,
                details=exc.details,
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed bodies get the same error shape as every other failure."""
        messages = []
        for err in exc.errors():
            loc = " → ".join(str(part) for part in err["loc"])
            messages.append(f"{loc}: {err['msg']}")
        return _error_response(
            request,
            400,
            ErrorResponse(
                error="Invalid request body",
                category="invalid_request",
                details="; ".join(messages),
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Generic 500; the cause stays in the logs, never in the response."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return _error_response(
            request,
            500,
            ErrorResponse(
                error="An unexpected error occurred",
                category="internal_error",
                retryable=True,
            ),
        )

    app.include_router(health.router)
    app.include_router(redesign.router, prefix="/api/v1")
    app.include_router(account.router, prefix="/api/v1")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
