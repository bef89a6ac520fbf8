# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from investor_db import get_db_service
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.config import settings
from .routes import applications, dashboard, health, investments
from .schemas.error import ErrorResponse
from .services.errors import (
    OnboardingError,
    PersistenceFailure,
    RecordNotFoundError,
    RemoteOperationFailure,
    StaleTransitionError,
    ValidationError,
)
from .services.notification import (
    get_notification_dispatcher,
    get_notification_outbox,
    init_notification_service,
    run_dispatcher,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Start the notification dispatcher; drain it and release the database pool on shutdown."""
    init_notification_service(settings)
    outbox = get_notification_outbox()
    dispatcher = get_notification_dispatcher()
    task = asyncio.create_task(run_dispatcher(outbox, dispatcher), name="notification-dispatcher")
    yield
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    for event in outbox.pending():
        await dispatcher.fire(event)
    await dispatcher.aclose()
    await get_db_service().dispose()


app = FastAPI(
    title="Investor Onboarding API",
    description="Investment onboarding workflow and investor dashboard",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}

# Checked in order; first match wins.
_ONBOARDING_ERROR_STATUS: list[tuple[type[OnboardingError], int]] = [
    (ValidationError, 422),
    (RecordNotFoundError, 404),
    (StaleTransitionError, 409),
    (PersistenceFailure, 503),
    (RemoteOperationFailure, 503),
]

_RETRY_DETAIL = "The change could not be saved. Please try again."


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", str(uuid.uuid4()))


def _build_error(status_code: int, detail: str, request: Request) -> ErrorResponse:
    return ErrorResponse(
        type="about:blank",
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=_request_id(request),
        instance=request.url.path,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert HTTPException to RFC 7807 Problem Details."""
    body = _build_error(exc.status_code, str(exc.detail), request)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic validation errors to RFC 7807 Problem Details."""
    body = _build_error(422, str(exc.errors()), request)
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(OnboardingError)
async def onboarding_exception_handler(request: Request, exc: OnboardingError):
    """Map workflow errors to status codes; storage failures get a generic retry prompt."""
    status_code = next(
        (code for cls, code in _ONBOARDING_ERROR_STATUS if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.error("Workflow failure on %s: %s", request.url.path, exc)
        detail = _RETRY_DETAIL
    else:
        detail = str(exc)
    body = _build_error(status_code, detail, request)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions -- log and return 500."""
    body = _build_error(500, "An unexpected error occurred.", request)
    logger.exception("Unhandled exception (request_id=%s)", body.request_id)
    return JSONResponse(status_code=500, content=body.model_dump())


# Include routers
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(investments.router, prefix="/api/investments", tags=["investments"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": "Welcome to the Investor Onboarding API"}
