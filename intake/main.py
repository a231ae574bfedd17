import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from intake.api.routes import GENERIC_FAILURE_MESSAGE, INVALID_FORM_MESSAGE, router
from intake.config import Settings, settings as default_settings
from intake.services.image_service import ImageNormalizer
from intake.services.mail_service import MailDispatcher
from intake.services.notification_service import NotificationComposer
from intake.services.submission_service import SubmissionService
from intake.storage.s3_store import S3ObjectStore


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_submission_service(settings: Settings) -> SubmissionService:
    store = None
    if settings.S3_BUCKET:
        store = S3ObjectStore(
            bucket=settings.S3_BUCKET,
            region=settings.AWS_REGION,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )
    normalizer = ImageNormalizer(
        max_dimension=settings.IMAGE_MAX_DIMENSION,
        quality=settings.IMAGE_QUALITY,
        fallback_quality=settings.IMAGE_FALLBACK_QUALITY,
        max_bytes=settings.IMAGE_MAX_BYTES,
        strict=settings.IMAGE_STRICT,
    )
    dispatcher = MailDispatcher(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        secure=settings.SMTP_SECURE,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASS,
        sender=settings.SMTP_FROM,
        timeout=settings.MAIL_TIMEOUT_SECONDS,
    )
    return SubmissionService(
        normalizer=normalizer,
        store=store,
        composer=NotificationComposer(),
        dispatcher=dispatcher,
        recipient=settings.RECEIVER_EMAIL,
        presign_ttl=settings.PRESIGN_TTL_SECONDS,
        key_prefix=settings.S3_KEY_PREFIX,
        image_timeout=settings.IMAGE_TIMEOUT_SECONDS,
        storage_timeout=settings.STORAGE_TIMEOUT_SECONDS,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _configure_logging(settings)
        logger = logging.getLogger(__name__)
        logger.info(
            "Intake receiver starting | port=%s | bucket=%s | smtp=%s",
            settings.PORT,
            settings.S3_BUCKET,
            settings.SMTP_HOST,
        )
        if not settings.S3_BUCKET:
            logger.warning("S3_BUCKET not configured; attached files will be skipped")
        app.state.settings = settings
        app.state.submission_service = build_submission_service(settings)
        yield
        logger.info("Intake receiver shutting down")

    app = FastAPI(title="Business Intake Receiver", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logging.getLogger(__name__).info("[submit] rejected | invalid form | errors=%s", exc.errors())
        return JSONResponse(
            status_code=400,
            content={"ok": False, "message": INVALID_FORM_MESSAGE},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logging.getLogger(__name__).exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content={"ok": False, "message": GENERIC_FAILURE_MESSAGE},
        )

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("intake.main:app", host="0.0.0.0", port=default_settings.PORT, log_level=default_settings.LOG_LEVEL)
