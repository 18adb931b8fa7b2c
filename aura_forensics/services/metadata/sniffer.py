"""Content-based container type detection (never trusts filenames or declared types)."""

from __future__ import annotations

from typing import List, Optional, Tuple

SNIFF_BYTES = 64

_PREFIX_SIGNATURES: List[Tuple[bytes, str]] = [
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
    (b"8BPS", "image/vnd.adobe.photoshop"),
    (b"BM", "image/bmp"),
    (b"%PDF", "application/pdf"),
    (b"ID3", "audio/mpeg"),
    (b"fLaC", "audio/flac"),
    (b"OggS", "audio/ogg"),
    (b"\x1aE\xdf\xa3", "video/x-matroska"),
    (b"PK\x03\x04", "application/zip"),
]

_RIFF_FORMS = {
    b"WEBP": "image/webp",
    b"WAVE": "audio/wav",
    b"AVI ": "video/x-msvideo",
}

_FTYP_BRANDS = {
    b"qt  ": "video/quicktime",
    b"M4A ": "audio/mp4",
    b"M4B ": "audio/mp4",
    b"heic": "image/heic",
    b"heix": "image/heic",
    b"mif1": "image/heif",
    b"avif": "image/avif",
}

# MPEG audio frame sync without an ID3 header
_MPEG_FRAME_SYNC = (b"\xff\xfb", b"\xff\xf3", b"\xff\xf2")


def sniff_mime_type(head: bytes) -> Optional[str]:
    """
    Identify the container from its leading bytes.

    Args:
        head: At least the first few dozen bytes of the file

    Returns:
        MIME type string, or None when the container is not recognised
    """
    if not head:
        return None

    if head[:4] == b"RIFF" and len(head) >= 12:
        return _RIFF_FORMS.get(head[8:12])

    if head[4:8] == b"ftyp":
        return _FTYP_BRANDS.get(head[8:12], "video/mp4")

    for signature, mime in _PREFIX_SIGNATURES:
        if head.startswith(signature):
            return mime

    if head[:2] in _MPEG_FRAME_SYNC:
        return "audio/mpeg"

    return None
