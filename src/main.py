"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.middleware import CorrelationIdMiddleware
from src.api.routes import router
from src.api.users import router as users_router
from src.api.videos import router as videos_router
from src.config import get_settings
from src.models.response import ErrorResponse
from src.services.errors import ServiceError
from src.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)
    logger = get_logger("main")

    try:
        from src.database import init_database, run_migrations

        await init_database()
        await run_migrations()
        logger.info("database_initialized")
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - account endpoints will return 500",
        )

    logger.info("application_started", log_level=settings.log_level)

    yield

    try:
        from src.database import close_database

        await close_database()
    except Exception as e:
        logger.warning("database_close_failed", error=str(e))

    logger.info("application_shutdown")


app = FastAPI(
    title="VidStream - Accounts API",
    description="Account registration, sessions, channels and video uploads",
    version="0.1.0",
    lifespan=lifespan,
)


def _error_response(
    request: Request, status_code: int, error: str, detail: str
) -> JSONResponse:
    """Build the JSON error body shared by all exception handlers."""
    correlation_id = getattr(request.state, "correlation_id", None) or str(uuid4())
    body = ErrorResponse(
        status_code=status_code,
        error=error,
        detail=detail,
        correlation_id=correlation_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(),
        headers={"X-Correlation-Id": correlation_id},
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Convert service errors into their HTTP status and message."""
    logger = structlog.get_logger()
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "request_failed",
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        detail=exc.message,
    )
    return _error_response(request, exc.status_code, exc.error, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with 400 Bad Request."""
    logger = structlog.get_logger()

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}"
    else:
        detail = "Request validation failed"

    logger.warning("validation_error", detail=detail)
    return _error_response(request, 400, "Validation error", detail)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: never leak driver or library errors."""
    structlog.get_logger().exception("unhandled_exception", error_type=type(exc).__name__)
    return _error_response(request, 500, "Internal error", "Something went wrong")


# Session cookies need credentialed CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(CorrelationIdMiddleware)

app.include_router(users_router)
app.include_router(videos_router)
app.include_router(router)
