import io
from unittest.mock import patch

import pytest
from PIL import Image

from intake.models.upload import NormalizedImage
from intake.services.image_service import ImageNormalizer, ImageProcessingError


def _size(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size


def test_large_landscape_is_shrunk_to_max_dimension(image_bytes):
    result = ImageNormalizer().normalize(image_bytes(1600, 1200))
    assert result.optimized
    assert result.content_type == "image/jpeg"
    assert _size(result.data) == (800, 600)


def test_large_portrait_is_shrunk_on_height(image_bytes):
    result = ImageNormalizer(max_dimension=500).normalize(image_bytes(1000, 2000))
    assert _size(result.data) == (250, 500)


def test_small_image_is_not_upscaled(image_bytes):
    result = ImageNormalizer().normalize(image_bytes(400, 300))
    assert _size(result.data) == (400, 300)


def test_output_is_jpeg_even_for_png_with_alpha(image_bytes):
    png = image_bytes(1200, 900, fmt="PNG", mode="RGBA")
    result = ImageNormalizer().normalize(png)
    with Image.open(io.BytesIO(result.data)) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"
        assert max(img.size) == 800


def test_exif_orientation_is_applied_before_resize(image_bytes):
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90 degrees clockwise on display
    rotated = image_bytes(1600, 800, exif=exif)
    result = ImageNormalizer().normalize(rotated)
    assert _size(result.data) == (400, 800)


def test_undecodable_bytes_return_original_in_lenient_mode():
    data = b"definitely not an image"
    result = ImageNormalizer().normalize(data)
    assert result.data == data
    assert result.optimized is False
    assert result.content_type is None


def test_undecodable_bytes_raise_in_strict_mode():
    with pytest.raises(ImageProcessingError):
        ImageNormalizer(strict=True).normalize(b"garbage")


def test_process_retries_once_at_fallback_quality_on_original_bytes():
    normalizer = ImageNormalizer(max_bytes=10, quality=60, fallback_quality=45)
    calls = []

    def fake_normalize(data, max_dimension=None, quality=None):
        calls.append((data, quality))
        return NormalizedImage(data=b"x" * 100)

    with patch.object(normalizer, "normalize", side_effect=fake_normalize):
        result = normalizer.process(b"original")

    assert calls == [(b"original", None), (b"original", 45)]
    assert result.size == 100


def test_process_skips_retry_when_small_enough(image_bytes):
    normalizer = ImageNormalizer()
    with patch.object(normalizer, "normalize", wraps=normalizer.normalize) as spy:
        normalizer.process(image_bytes(300, 200))
    assert spy.call_count == 1
