"""
FastAPI application entry point.
"""

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import phone_survey.models  # noqa: F401
from phone_survey.analytics.router import router as analytics_router
from phone_survey.auth.router import router as auth_router
from phone_survey.calls.router import router as call_queue_router
from phone_survey.calls.router import twilio_router as call_placement_router
from phone_survey.config import get_settings
from phone_survey.contacts.router import router as contacts_router
from phone_survey.diagnostics.router import router as diagnostics_router
from phone_survey.shared.database import get_database_manager
from phone_survey.shared.exceptions import AppError
from phone_survey.shared.logging import call_sid_var, correlation_id_var, get_logger, setup_logging
from phone_survey.surveys.router import router as surveys_router
from phone_survey.telephony.webhooks.router import router as twilio_webhooks_router

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    settings = get_settings()

    logger.info("Application starting", extra={"env": settings.app_env})

    yield

    logger.info("Shutting down application")
    await get_database_manager().close()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Phone Survey API",
        description="Automated outbound phone surveys over Twilio",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Domain exceptions -> {error, details?}
    @app.exception_handler(AppError)
    async def _app_error(_: Request, exc: AppError) -> JSONResponse:
        content: dict[str, object] = {"error": exc.message}
        if exc.details is not None:
            content["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=content)

    # Request validation (FastAPI/Pydantic) -> consistent 422 payload
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append(
                {
                    "field": field,
                    "message": error["msg"],
                    "type": error["type"],
                }
            )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Request validation failed", "details": errors},
        )

    @app.middleware("http")
    async def log_context_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        correlation_token = correlation_id_var.set(correlation_id)
        # Twilio webhooks carry the call in the query string
        call_sid_token = call_sid_var.set(request.query_params.get("callSid") or None)
        try:
            response = await call_next(request)
        finally:
            call_sid_var.reset(call_sid_token)
            correlation_id_var.reset(correlation_token)
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth_router)
    app.include_router(contacts_router)
    app.include_router(surveys_router)
    app.include_router(analytics_router)
    app.include_router(call_queue_router)
    app.include_router(call_placement_router)
    app.include_router(twilio_webhooks_router)
    app.include_router(diagnostics_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
