"""
Container-specific technical metadata readers

Each reader turns a file on disk into a flat raw record using exiftool-style
key names (``Software``, ``CreateDate``, ``FileType`` ...). Key normalization
happens afterwards in :mod:`normalizer`.

Readers:
- Images: Pillow (EXIF IFD0 + Exif sub-IFD, PNG text chunks)
- PDF: pypdf document info dictionary
- Audio/Video: mutagen stream info and container tags
- Anything else: best-effort XMP packet scan
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import mutagen
from PIL import ExifTags, Image, UnidentifiedImageError
from pypdf import PdfReader

logger = logging.getLogger(__name__)

RawMetadata = Dict[str, Any]


class MetadataReaderError(Exception):
    """Raised when a reader cannot parse the container it was given."""


FILE_TYPES = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/gif": "GIF",
    "image/tiff": "TIFF",
    "image/webp": "WEBP",
    "image/bmp": "BMP",
    "image/heic": "HEIC",
    "image/heif": "HEIF",
    "image/avif": "AVIF",
    "image/vnd.adobe.photoshop": "PSD",
    "application/pdf": "PDF",
    "application/zip": "ZIP",
    "audio/mpeg": "MP3",
    "audio/wav": "WAV",
    "audio/flac": "FLAC",
    "audio/ogg": "OGG",
    "audio/mp4": "M4A",
    "video/mp4": "MP4",
    "video/quicktime": "MOV",
    "video/x-matroska": "MKV",
    "video/x-msvideo": "AVI",
}

# Pillow tag names that differ from exiftool naming
_PILLOW_TAG_ALIASES = {
    "DateTime": "ModifyDate",
    "DateTimeDigitized": "CreateDate",
}

# IFD pointers are structure, not metadata
_EXIF_POINTER_TAGS = {0x8769, 0x8825, 0xA005, 0x014A}
_EXIF_SUB_IFD = 0x8769

# Whole XMP packets are scanned separately, never copied verbatim
_RAW_PACKET_KEYS = {"XML:com.adobe.xmp", "xmp"}

_PDF_INFO_KEYS = {
    "/Creator": "CreatorTool",
    "/Producer": "Producer",
    "/CreationDate": "CreateDate",
    "/ModDate": "ModifyDate",
}

# Container tags carrying the encoding application or the creation date
_AV_TAG_ALIASES = {
    "tsse": "Software",
    "\xa9too": "Software",
    "encoder": "Software",
    "tenc": "EncodedBy",
    "tdrc": "DateCreated",
    "\xa9day": "DateCreated",
    "date": "DateCreated",
}

_AV_BINARY_TAG_PREFIXES = ("apic", "covr", "metadata_block_picture", "priv", "geob")

_AV_INFO_FIELDS = (
    ("length", "Duration"),
    ("bitrate", "AvgBitrate"),
    ("sample_rate", "SampleRate"),
    ("channels", "AudioChannels"),
    ("bits_per_sample", "BitsPerSample"),
    ("codec", "Codec"),
    ("encoder_info", "EncoderInfo"),
)

# Image containers Pillow opens only through an optional plugin
PLUGIN_IMAGE_TYPES = {"image/heic", "image/heif", "image/avif"}

# XMP packets sit near the start or the end of a container
XMP_SCAN_BYTES = 1024 * 1024

_XMP_FIELDS = {
    "CreatorTool": ("xmp:CreatorTool",),
    "CreateDate": ("xmp:CreateDate",),
    "ModifyDate": ("xmp:ModifyDate",),
    "DateCreated": ("photoshop:DateCreated",),
}


def _xmp_pattern(qualified_name: str) -> "re.Pattern[bytes]":
    name = re.escape(qualified_name.encode("ascii"))
    return re.compile(
        rb"(?:" + name + rb'\s*=\s*"([^"]{1,512})"' + rb"|<" + name + rb">\s*([^<]{1,512})</)"
    )


_XMP_PATTERNS: List[Tuple[str, "re.Pattern[bytes]"]] = [
    (field, _xmp_pattern(qualified))
    for field, names in _XMP_FIELDS.items()
    for qualified in names
]


def scan_xmp(payload: bytes) -> RawMetadata:
    """Pull well-known fields out of an embedded XMP packet, if any."""
    found: RawMetadata = {}
    if b"<x:xmpmeta" not in payload and b"<rdf:RDF" not in payload:
        return found
    for field, pattern in _XMP_PATTERNS:
        if field in found:
            continue
        match = pattern.search(payload)
        if match:
            value = (match.group(1) or match.group(2)).decode("utf-8", errors="replace").strip()
            if value:
                found[field] = value
    return found


def _base_record(mime_type: str) -> RawMetadata:
    return {
        "FileType": FILE_TYPES.get(mime_type, mime_type.split("/")[-1].upper()),
        "MIMEType": mime_type,
    }


def _exif_text(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        try:
            text = bytes(value).decode("ascii").replace("\x00", "").strip()
        except UnicodeDecodeError:
            return None
        return text or None
    return value


def _put_exif(record: RawMetadata, tag_id: int, value: Any) -> None:
    if tag_id in _EXIF_POINTER_TAGS:
        return
    name = ExifTags.TAGS.get(tag_id, f"Tag0x{tag_id:04X}")
    name = _PILLOW_TAG_ALIASES.get(name, name)
    value = _exif_text(value)
    if value is None or value == "":
        return
    record.setdefault(name, value)


def read_image_metadata(path: Path, mime_type: str) -> RawMetadata:
    record = _base_record(mime_type)
    with Image.open(path) as image:
        if image.format:
            record["FileType"] = image.format
        record["ImageWidth"] = image.width
        record["ImageHeight"] = image.height
        record["ColorMode"] = image.mode

        exif = image.getexif()
        for tag_id, value in exif.items():
            _put_exif(record, tag_id, value)
        for tag_id, value in exif.get_ifd(_EXIF_SUB_IFD).items():
            _put_exif(record, tag_id, value)

        dpi = image.info.get("dpi")
        if isinstance(dpi, tuple) and len(dpi) == 2:
            record.setdefault("XResolution", dpi[0])
            record.setdefault("YResolution", dpi[1])
        if image.info.get("icc_profile"):
            record["HasICCProfile"] = True

        # PNG tEXt/iTXt chunks and similar textual info
        for key, value in image.info.items():
            if key in _RAW_PACKET_KEYS or not isinstance(key, str):
                continue
            if isinstance(value, str) and value.strip():
                record.setdefault(key, value.strip())

    return record


def read_pdf_metadata(path: Path, mime_type: str) -> RawMetadata:
    record = _base_record(mime_type)
    reader = PdfReader(str(path))
    header = reader.pdf_header or ""
    if header.startswith("%PDF-"):
        record["PDFVersion"] = header[len("%PDF-"):]
    record["PageCount"] = len(reader.pages)

    info = reader.metadata or {}
    for key in list(info.keys()):
        value = info[key]
        name = _PDF_INFO_KEYS.get(key, str(key).lstrip("/"))
        text = str(value).strip() if value is not None else ""
        if text:
            record[name] = text
    return record


def _tag_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "; ".join(_tag_text(item) for item in value if item is not None)
    return str(value).strip()


def read_av_metadata(path: Path, mime_type: str) -> RawMetadata:
    media = mutagen.File(str(path))
    if media is None:
        raise MetadataReaderError(f"mutagen does not recognise {mime_type}")

    record = _base_record(mime_type)
    info = getattr(media, "info", None)
    for attribute, name in _AV_INFO_FIELDS:
        value = getattr(info, attribute, None)
        if value not in (None, ""):
            record[name] = value

    tags = media.tags
    if tags is not None:
        for key in list(tags.keys()):
            if str(key).lower().startswith(_AV_BINARY_TAG_PREFIXES):
                continue
            text = _tag_text(tags[key])
            if not text:
                continue
            alias = _AV_TAG_ALIASES.get(str(key).lower())
            record.setdefault(alias or str(key), text)
    return record


def read_generic_metadata(path: Path, mime_type: str) -> RawMetadata:
    """Fallback for containers without a dedicated reader."""
    return _base_record(mime_type)


def read_xmp_windows(path: Path, window: int) -> List[bytes]:
    """Leading and trailing slices of the file, where XMP packets are stored."""
    with path.open("rb") as handle:
        head = handle.read(window)
        size = handle.seek(0, os.SEEK_END)
        if size <= window:
            return [head]
        handle.seek(max(0, size - window))
        return [head, handle.read(window)]


Reader = Callable[[Path, str], RawMetadata]

_READERS: List[Tuple[Callable[[str], bool], Reader]] = [
    (lambda mime: mime.startswith("image/"), read_image_metadata),
    (lambda mime: mime == "application/pdf", read_pdf_metadata),
    (lambda mime: mime.startswith(("audio/", "video/")), read_av_metadata),
]


def select_reader(mime_type: str) -> Reader:
    for accepts, reader in _READERS:
        if accepts(mime_type):
            return reader
    return read_generic_metadata


def read_technical_metadata(path: Path, mime_type: str) -> RawMetadata:
    """
    Run the reader for ``mime_type`` and top up missing fields from XMP.

    Image types that Pillow only opens through an optional plugin fall back to
    the generic reader when no plugin is installed.

    Raises:
        MetadataReaderError: if the container could not be parsed
    """
    reader = select_reader(mime_type)
    try:
        record = reader(path, mime_type)
    except MetadataReaderError:
        raise
    except UnidentifiedImageError as exc:
        if mime_type not in PLUGIN_IMAGE_TYPES:
            raise MetadataReaderError(f"{reader.__name__} failed for {mime_type}: {exc}") from exc
        logger.info(f"No Pillow plugin for {mime_type}, reading container generically")
        reader = read_generic_metadata
        record = reader(path, mime_type)
    except Exception as exc:
        raise MetadataReaderError(f"{reader.__name__} failed for {mime_type}: {exc}") from exc

    for payload in read_xmp_windows(path, XMP_SCAN_BYTES):
        for field, value in scan_xmp(payload).items():
            record.setdefault(field, value)

    logger.debug(f"{reader.__name__} read {len(record)} raw fields from {path.name}")
    return record
