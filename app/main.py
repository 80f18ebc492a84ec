"""
Patient Relay API

FastAPI application entry point that ties all components together.
"""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.api.routes import health, notifications, patients
from app.config import settings
from app.core.dispatch.service import NotificationService
from app.core.errors import RelayError, StoreError
from app.core.patients.lookup import PatientLookup
from app.infra.database import close_db, create_engine, verify_connection
from app.infra.notifications import SmtpEmailTransport, TwilioSmsTransport
from app.infra.staging import FileStager


def setup_logging() -> None:
    """Configure logging based on environment."""
    log_level = logging.DEBUG if settings.debug else logging.INFO
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


logger = logging.getLogger(__name__)

# Staged uploads are also served read-only, so the directory must exist
# before the static mount below is created.
upload_dir = Path(settings.upload_dir)
upload_dir.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds the shared store engine and provider clients once, and hands
    them to request handlers through app.state.
    """
    # === STARTUP ===
    setup_logging()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")

    engine = create_engine(settings)
    try:
        await verify_connection(engine)
    except StoreError as e:
        logger.critical(f"Database connection failed: {e.details}")
        await close_db(engine)
        raise

    sms_transport = TwilioSmsTransport.from_settings(settings)

    app.state.engine = engine
    app.state.patient_lookup = PatientLookup(
        engine,
        table_name=settings.patients_table,
        id_column=settings.patient_id_column,
    )
    app.state.notification_service = NotificationService(
        email_transport=SmtpEmailTransport.from_settings(settings),
        sms_transport=sms_transport,
        stager=FileStager(upload_dir),
        sender_email=settings.sender_email,
        sender_phone=settings.twilio_phone_number,
        cleanup_attachment_on_failure=settings.cleanup_attachment_on_failure,
    )

    logger.info(f"Server running on http://{settings.host}:{settings.port}")

    yield

    # === SHUTDOWN ===
    logger.info("Shutting down application...")

    await sms_transport.close()
    logger.info("Twilio client closed")

    await close_db(engine)
    logger.info("Database connections closed")

    logger.info("Shutdown complete")


app = FastAPI(
    title="Patient Relay API",
    description="""
    Thin relay over the patient store and the notification providers.

    ## Features
    - Patient record lookup by identifier
    - Email with an optional file attachment (SMTP)
    - SMS to several phone numbers at once (Twilio)
    """,
    version="1.0.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RelayError)
async def relay_exception_handler(
    request: Request,
    exc: RelayError,
) -> JSONResponse:
    """Map relay errors to their status code and JSON body."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation error",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    # Don't expose internal errors in production
    content = {"error": "Internal server error"}
    if settings.is_development:
        content["details"] = str(exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )


@app.middleware("http")
async def request_timing_middleware(request: Request, call_next):
    """Log request duration in debug mode."""
    start_time = time.time()

    try:
        return await call_next(request)
    finally:
        if settings.debug:
            duration = time.time() - start_time
            logger.debug(
                f"{request.method} {request.url.path} "
                f"completed in {duration:.3f}s"
            )


app.include_router(health.router)
app.include_router(patients.router)
app.include_router(notifications.router)

app.mount(
    settings.uploads_url_prefix,
    StaticFiles(directory=upload_dir),
    name="uploads",
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
