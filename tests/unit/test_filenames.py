import re

from intake.services.filenames import generate_key

KEY_RE = re.compile(r"^uploads/\d{13}_[0-9a-f]{12}\.[a-z0-9]+$")


def test_key_keeps_original_extension():
    key = generate_key("storefront.PNG")
    assert KEY_RE.match(key)
    assert key.endswith(".png")


def test_key_defaults_to_jpg_without_extension():
    assert generate_key("photo").endswith(".jpg")
    assert generate_key("").endswith(".jpg")
    assert generate_key(None).endswith(".jpg")


def test_key_rejects_unusable_extension():
    assert generate_key("evil.ph p").endswith(".jpg")
    assert generate_key("archive.averyveryverylongext").endswith(".jpg")


def test_keys_are_unique_within_same_instant():
    keys = {generate_key("a.jpg") for _ in range(500)}
    assert len(keys) == 500


def test_custom_prefix():
    assert generate_key("a.jpg", prefix="intake/").startswith("intake/")
