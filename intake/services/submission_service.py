import asyncio
import logging
from collections.abc import Sequence

from intake.models.upload import StoredObject, UploadedFile, UploadOutcome
from intake.schemas.submission import SubmissionFields
from intake.services.filenames import generate_key
from intake.services.image_service import ImageNormalizer
from intake.services.mail_service import MailDispatcher, MailError
from intake.services.notification_service import NotificationComposer
from intake.storage.base import AbstractObjectStore, StorageError

logger = logging.getLogger(__name__)

STORAGE_NOT_CONFIGURED = "storage not configured"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class MissingFieldsError(Exception):
    def __init__(self, fields: list[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(fields)}")
        self.fields = fields


async def _bounded(coro, timeout: float | None):
    if timeout is None:
        return await coro
    return await asyncio.wait_for(coro, timeout)


class SubmissionService:
    def __init__(
        self,
        normalizer: ImageNormalizer,
        store: AbstractObjectStore | None,
        composer: NotificationComposer,
        dispatcher: MailDispatcher,
        recipient: str | None,
        presign_ttl: int = 86400,
        key_prefix: str = "uploads/",
        image_timeout: float | None = None,
        storage_timeout: float | None = None,
    ) -> None:
        self._normalizer = normalizer
        self._store = store
        self._composer = composer
        self._dispatcher = dispatcher
        self._recipient = recipient
        self._presign_ttl = presign_ttl
        self._key_prefix = key_prefix
        self._image_timeout = image_timeout
        self._storage_timeout = storage_timeout

    def validate(self, fields: SubmissionFields) -> None:
        """Raises MissingFieldsError if any required field is empty."""
        missing = fields.missing_fields()
        if missing:
            raise MissingFieldsError(missing)

    async def submit(
        self,
        fields: SubmissionFields,
        files: Sequence[UploadedFile],
        sender: str | None = None,
    ) -> list[UploadOutcome]:
        """
        Validate, store attachments best-effort, then send the notification.
        MissingFieldsError and MailError propagate; per-file failures are recorded as skips.
        """
        self.validate(fields)

        outcomes = await self.process_files(files)
        stored = sum(1 for o in outcomes if o.is_stored)
        logger.info(
            "[submit] files processed | business=%s | stored=%d | skipped=%d",
            fields.business_name,
            stored,
            len(outcomes) - stored,
        )

        message = self._composer.compose(fields, outcomes, self._recipient)
        try:
            await self._dispatcher.send(message, sender=sender)
        except MailError:
            logger.error("[submit] notification failed | business=%s", fields.business_name)
            raise
        return outcomes

    async def process_files(self, files: Sequence[UploadedFile]) -> list[UploadOutcome]:
        if files and self._store is None:
            logger.warning("[submit] S3_BUCKET not configured | skipping %d file(s)", len(files))

        outcomes: list[UploadOutcome] = []
        for upload in files:
            try:
                outcome = await self._process_file(upload)
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
                logger.warning(
                    "[submit] file skipped | name=%s | error=%s", upload.original_name, reason
                )
                outcome = UploadOutcome.skip(upload.original_name, reason)
            outcomes.append(outcome)
        return outcomes

    async def _process_file(self, upload: UploadedFile) -> UploadOutcome:
        if self._store is None:
            return UploadOutcome.skip(upload.original_name, STORAGE_NOT_CONFIGURED)

        try:
            image = await _bounded(
                asyncio.to_thread(self._normalizer.process, upload.data), self._image_timeout
            )
        except asyncio.TimeoutError:
            return UploadOutcome.skip(upload.original_name, "image processing timed out")

        content_type = image.content_type or upload.content_type or DEFAULT_CONTENT_TYPE
        key = generate_key(upload.original_name, prefix=self._key_prefix)

        try:
            await _bounded(
                asyncio.to_thread(self._store.store, image.data, key, content_type),
                self._storage_timeout,
            )
        except asyncio.TimeoutError:
            return UploadOutcome.skip(upload.original_name, "storage upload timed out")

        url = None
        try:
            url = await _bounded(
                asyncio.to_thread(self._store.presign, key, self._presign_ttl),
                self._storage_timeout,
            )
        except (StorageError, asyncio.TimeoutError) as exc:
            logger.warning("[submit] presign failed, keeping file without link | key=%s | error=%s", key, exc)

        logger.info(
            "[submit] file stored | name=%s | key=%s | bytes=%d | optimized=%s",
            upload.original_name,
            key,
            image.size,
            image.optimized,
        )
        return UploadOutcome.ok(upload.original_name, StoredObject(key=key, size=image.size, url=url))
