"""FastAPI application for the Cascade Connect back office.

Production-ready API with:
- CRUD for invoices, clients and expenses
- Media uploads (Cloudinary) and the UploadThing proxy
- Outbound email (SendGrid or SMTP) and Square payment links
- Health and readiness checks
- Uniform ``{"error": ...}`` responses
- Prometheus metrics for monitoring

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.api import dependencies, metrics
from services.api.routes.email import router as email_router
from services.api.routes.payments import router as payments_router
from services.api.routes.resources import clients_router, expenses_router, invoices_router
from services.api.routes.uploads import router as uploads_router
from services.db.engine import check_db_connection
from services.shared.errors import ConfigurationError
from services.shared.logging_config import configure_logging

settings = dependencies.settings
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Cascade Connect API",
    description="Invoices, clients, expenses and vendor integrations for Cascade Builder Services",
    version=settings.service_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request metrics.

    Tracks:
    - Request count by method, endpoint, and status
    - Request duration by method and endpoint
    """
    # Skip metrics for /metrics endpoint itself
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path,
    ).observe(duration)

    return response


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first invalid field in the error message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location}: {first.get('msg')}" if location else (
            f"Invalid request: {first.get('msg')}"
        )
    else:
        message = "Invalid request"
    return error_response(422, message)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return error_response(500, str(exc))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return error_response(500, str(exc.orig) if getattr(exc, "orig", None) else str(exc))


class HealthResponse(BaseModel):
    """Health check response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    message: str
    service: str
    version: str
    uploadthing_configured: bool
    cloudinary_configured: bool
    email_provider: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool


@app.get("/api/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe.

    Returns:
        Service status and which integrations are configured
    """
    provider = dependencies.email_provider
    return HealthResponse(
        status="ok",
        message="API is running",
        service=settings.service_name,
        version=settings.service_version,
        uploadthing_configured=settings.uploadthing_configured,
        cloudinary_configured=settings.cloudinary_configured,
        email_provider=provider.provider_name if provider else None,
    )


@app.get("/api/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    """Readiness check endpoint: true once the database answers."""
    return ReadinessResponse(ready=check_db_connection())


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format
    """
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


app.include_router(invoices_router)
app.include_router(clients_router)
app.include_router(expenses_router)
app.include_router(uploads_router)
app.include_router(email_router)
app.include_router(payments_router)
