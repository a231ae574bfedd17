import io
import logging

from PIL import Image, ImageOps

from intake.models.upload import NormalizedImage

logger = logging.getLogger(__name__)

_ALPHA_MODES = ("RGBA", "LA", "P", "PA")


class ImageProcessingError(Exception):
    pass


class ImageNormalizer:
    def __init__(
        self,
        max_dimension: int = 800,
        quality: int = 60,
        fallback_quality: int = 45,
        max_bytes: int = 2 * 1024 * 1024,
        strict: bool = False,
    ) -> None:
        self.max_dimension = max_dimension
        self.quality = quality
        self.fallback_quality = fallback_quality
        self.max_bytes = max_bytes
        self.strict = strict

    def process(self, data: bytes) -> NormalizedImage:
        """
        Normalize at the configured quality. If the result is still larger than
        max_bytes, re-encode the original bytes once at the fallback quality.
        """
        result = self.normalize(data)
        if result.size > self.max_bytes:
            logger.info(
                "[image] still too large after normalize | size=%d | retrying at quality=%d",
                result.size,
                self.fallback_quality,
            )
            result = self.normalize(data, quality=self.fallback_quality)
        return result

    def normalize(
        self, data: bytes, max_dimension: int | None = None, quality: int | None = None
    ) -> NormalizedImage:
        """
        Auto-rotate, shrink so the longest side fits max_dimension (never upscale)
        and re-encode as JPEG.

        Lenient mode returns the original bytes (optimized=False) when decoding or
        encoding fails; strict mode raises ImageProcessingError.
        """
        max_dimension = max_dimension or self.max_dimension
        quality = quality or self.quality
        try:
            return NormalizedImage(data=self._encode(data, max_dimension, quality))
        except Exception as exc:
            if self.strict:
                raise ImageProcessingError(f"image normalization failed: {exc}") from exc
            logger.warning("[image] normalize failed, keeping original bytes | error=%s", exc)
            return NormalizedImage(data=data, content_type=None, optimized=False)

    def _encode(self, data: bytes, max_dimension: int, quality: int) -> bytes:
        with Image.open(io.BytesIO(data)) as source:
            img = ImageOps.exif_transpose(source)
            width, height = img.size
            width = width or max_dimension
            height = height or max_dimension
            longest = max(width, height)
            ratio = min(1.0, max_dimension / longest)
            if ratio < 1.0:
                size = (max(1, round(width * ratio)), max(1, round(height * ratio)))
                img = img.resize(size, Image.Resampling.LANCZOS)

            if img.mode in _ALPHA_MODES:
                img = img.convert("RGBA")
                background = Image.new("RGB", img.size, (255, 255, 255))
                background.paste(img, mask=img.getchannel("A"))
                img = background
            elif img.mode != "RGB":
                img = img.convert("RGB")

            out = io.BytesIO()
            img.save(out, format="JPEG", quality=quality, optimize=True, progressive=True)
            return out.getvalue()
