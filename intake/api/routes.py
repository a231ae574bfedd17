import logging

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse

from intake.models.upload import UploadedFile
from intake.schemas.submission import SubmissionFields, SubmitResponse
from intake.services.mail_service import MailError
from intake.services.submission_service import MissingFieldsError

logger = logging.getLogger(__name__)

router = APIRouter()

LIVENESS_TEXT = "Business intake server is running"
SUCCESS_MESSAGE = "Submission received. Notification email sent."
MAIL_FAILURE_MESSAGE = "Failed to send notification email. Please contact the administrator."
GENERIC_FAILURE_MESSAGE = "Server error"
TOO_MANY_FILES_MESSAGE = "Too many files"
FILE_TOO_LARGE_MESSAGE = "File too large"
INVALID_FORM_MESSAGE = "Invalid form data"


def _reply(status_code: int, ok: bool, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=SubmitResponse(ok=ok, message=message).model_dump(),
    )


class UploadLimitExceeded(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


async def _read_uploads(photos: list[UploadFile], max_files: int, max_bytes: int) -> list[UploadedFile]:
    """
    Read multipart files into memory, enforcing the count and per-file size limits.
    Empty unnamed parts (a file input left blank by the browser) are dropped.
    """
    uploads = []
    for photo in photos:
        # Read one byte past the limit so oversize files are detected without buffering them whole
        data = await photo.read(max_bytes + 1)
        if not photo.filename and not data:
            continue
        if len(data) > max_bytes:
            raise UploadLimitExceeded(413, FILE_TOO_LARGE_MESSAGE)
        if len(uploads) >= max_files:
            raise UploadLimitExceeded(400, TOO_MANY_FILES_MESSAGE)
        uploads.append(
            UploadedFile(original_name=photo.filename or "", data=data, content_type=photo.content_type)
        )
    return uploads


@router.get("/", response_class=PlainTextResponse)
async def liveness() -> str:
    return LIVENESS_TEXT


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.post("/submit", response_model=SubmitResponse)
async def submit(
    request: Request,
    business_name: str | None = Form(None),
    address: str | None = Form(None),
    phone: str | None = Form(None),
    discount_rate: str | None = Form(None),
    map_link: str | None = Form(None),
    description: str | None = Form(None),
    promo_tag: str | None = Form(None),
    photos: list[UploadFile] | None = File(None),
) -> JSONResponse:
    submission_service = request.app.state.submission_service
    limits = request.app.state.settings

    try:
        logger.debug(
            "[submit] new request | origin=%s | referer=%s | host=%s",
            request.headers.get("origin"),
            request.headers.get("referer"),
            request.headers.get("host"),
        )
        fields = SubmissionFields(
            business_name=business_name,
            address=address,
            phone=phone,
            discount_rate=discount_rate,
            map_link=map_link,
            description=description,
            promo_tag=promo_tag or "",
        )
        uploads = await _read_uploads(photos or [], limits.MAX_FILES, limits.MAX_FILE_BYTES)
        logger.debug(
            "[submit] files | %s",
            [(u.original_name, u.size) for u in uploads],
        )

        host = request.headers.get("host") or "example.com"
        await submission_service.submit(fields, uploads, sender=f"no-reply@{host.split(':')[0]}")
    except UploadLimitExceeded as exc:
        logger.info("[submit] rejected | reason=%s", exc.message)
        return _reply(exc.status_code, False, exc.message)
    except MissingFieldsError as exc:
        logger.info("[submit] rejected | missing=%s", exc.fields)
        return _reply(400, False, str(exc))
    except MailError as exc:
        logger.error("[submit] mail send failed | error=%s", exc)
        return _reply(500, False, MAIL_FAILURE_MESSAGE)
    except Exception:
        logger.exception("[submit] unhandled error")
        return _reply(500, False, GENERIC_FAILURE_MESSAGE)

    logger.info("[submit] completed | business=%s", fields.business_name)
    return _reply(200, True, SUCCESS_MESSAGE)
