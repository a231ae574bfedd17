import io

import pytest
from PIL import Image

from intake.models.upload import NotificationMessage
from intake.services.mail_service import MailError
from intake.storage.base import AbstractObjectStore, StorageError


def make_image_bytes(width: int, height: int, fmt: str = "JPEG", mode: str = "RGB", exif=None) -> bytes:
    """Render a solid image in memory and return its encoded bytes."""
    color = (200, 40, 40, 128) if mode == "RGBA" else (200, 40, 40)
    img = Image.new(mode, (width, height), color)
    out = io.BytesIO()
    kwargs = {"exif": exif} if exif is not None else {}
    img.save(out, format=fmt, **kwargs)
    return out.getvalue()


class FakeObjectStore(AbstractObjectStore):
    def __init__(self, fail_store_for: set[int] | None = None, fail_presign: bool = False) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.presigned: list[tuple[str, int]] = []
        self._fail_store_for = fail_store_for or set()
        self._fail_presign = fail_presign
        self.calls = 0

    def store(self, data: bytes, key: str, content_type: str) -> None:
        self.calls += 1
        if self.calls in self._fail_store_for:
            raise StorageError("quota exceeded")
        self.objects[key] = (data, content_type)

    def presign(self, key: str, ttl_seconds: int = 86400) -> str:
        if self._fail_presign:
            raise StorageError("signing failed")
        self.presigned.append((key, ttl_seconds))
        return f"https://bucket.example.com/{key}?sig=abc&exp={ttl_seconds}"


class FakeDispatcher:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[NotificationMessage, str | None]] = []
        self._fail = fail

    async def send(self, message: NotificationMessage, sender: str | None = None) -> None:
        if self._fail:
            raise MailError("connection refused")
        self.sent.append((message, sender))


@pytest.fixture
def valid_fields() -> dict:
    return {
        "business_name": "Blue Door Cafe",
        "address": "12 Harbor Road",
        "phone": "010-1234-5678",
        "discount_rate": "10%",
        "map_link": "https://map.example.com/place/123",
        "description": "Cozy cafe.\nOpen daily.",
        "promo_tag": "#coffee",
    }


@pytest.fixture
def image_bytes():
    return make_image_bytes


@pytest.fixture
def store_factory():
    return FakeObjectStore


@pytest.fixture
def dispatcher_factory():
    return FakeDispatcher
