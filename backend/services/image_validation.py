"""MIME helpers for uploaded and fetched images."""

from typing import Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Non-standard spellings browsers and proxies send for the common formats.
IMAGE_MIME_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-jpeg": "image/jpeg",
    "image/jfif": "image/jpeg",
    "image/x-png": "image/png",
    "image/apng": "image/png",
    "image/x-webp": "image/webp",
}

# (offset, magic bytes, mime type)
_SIGNATURES = (
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"\xff\xd8\xff", "image/jpeg"),
    (0, b"GIF87a", "image/gif"),
    (0, b"GIF89a", "image/gif"),
    (8, b"WEBP", "image/webp"),
)


def normalize_image_mime_type(claimed_mime_type: Optional[str]) -> str:
    """
    Lower-case a declared MIME type and strip parameters, quotes and aliases.

    ``'"image/JPG"; q=1'`` becomes ``"image/jpeg"``. Returns ``""`` for
    missing values.
    """
    value = (claimed_mime_type or "").strip().strip("\"'")
    # Some clients send comma-joined values; the first one wins.
    value = value.split(",", 1)[0].split(";", 1)[0].strip().lower()
    return IMAGE_MIME_ALIASES.get(value, value)


def resolve_declared_content_type(claimed_mime_type: Optional[str]) -> str:
    """Content type to store an upload with: the declared one, normalized."""
    return normalize_image_mime_type(claimed_mime_type) or DEFAULT_CONTENT_TYPE


def sniff_image_mime_type(content: bytes) -> Optional[str]:
    """Detect PNG, JPEG, GIF or WebP by magic bytes; ``None`` otherwise."""
    if not content:
        return None
    for offset, magic, mime_type in _SIGNATURES:
        if content[offset : offset + len(magic)] == magic:
            if mime_type == "image/webp" and not content.startswith(b"RIFF"):
                continue
            return mime_type
    return None
