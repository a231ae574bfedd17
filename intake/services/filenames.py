import os
import re
import secrets
import time

DEFAULT_EXTENSION = ".jpg"

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")


def _extension(original_name: str | None) -> str:
    ext = os.path.splitext(original_name or "")[1].lower()
    if not _EXTENSION_RE.match(ext):
        return DEFAULT_EXTENSION
    return ext


def generate_key(original_name: str | None, prefix: str = "uploads/") -> str:
    """
    Build a storage key like ``uploads/1718000000000_a1b2c3d4e5f6.png``.
    Millisecond timestamp plus 48 random bits keeps concurrent calls apart.
    """
    millis = int(time.time() * 1000)
    return f"{prefix}{millis}_{secrets.token_hex(6)}{_extension(original_name)}"
