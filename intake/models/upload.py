from dataclasses import dataclass


@dataclass
class UploadedFile:
    original_name: str
    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class NormalizedImage:
    data: bytes
    content_type: str | None = "image/jpeg"
    optimized: bool = True

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class StoredObject:
    key: str
    size: int
    url: str | None = None


@dataclass(frozen=True)
class UploadOutcome:
    """Result of processing one attachment: either stored or skipped with a reason."""

    original_name: str
    stored: StoredObject | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, original_name: str, stored: StoredObject) -> "UploadOutcome":
        return cls(original_name=original_name, stored=stored)

    @classmethod
    def skip(cls, original_name: str, reason: str) -> "UploadOutcome":
        return cls(original_name=original_name, reason=reason)

    @property
    def is_stored(self) -> bool:
        return self.stored is not None


@dataclass(frozen=True)
class NotificationMessage:
    recipient: str | None
    subject: str
    body: str
