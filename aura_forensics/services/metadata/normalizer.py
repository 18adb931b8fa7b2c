"""Key normalization for raw technical metadata records."""

from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime
from typing import Any, Dict, List, Mapping

from aura_forensics.services.matching import as_identifier

# Stable names for well-known reader keys (exiftool naming on the left)
FIELD_MAPPING: Dict[str, str] = {
    "Software": "software",
    "CreatorTool": "creator_tool",
    "Application": "application",
    "ProcessingSoftware": "processing_software",
    "DateTimeOriginal": "date_time_original",
    "CreateDate": "create_date",
    "ModifyDate": "modify_date",
    "DateCreated": "date_created",
    "CreationDate": "creation_date",
    "FileType": "file_type",
    "MIMEType": "mime_type",
    "ColorSpace": "color_space",
    "ICCProfileName": "icc_profile_name",
    "Compression": "compression",
    "ImageWidth": "image_width",
    "ImageHeight": "image_height",
    "BitsPerSample": "bits_per_sample",
    "XResolution": "x_resolution",
    "YResolution": "y_resolution",
    "ResolutionUnit": "resolution_unit",
}

SOFTWARE_IDENTITY_FIELDS = ("software", "creator_tool", "application", "processing_software")

# Timeline check reads the first present field, in this order
DATE_FIELDS = ("date_time_original", "create_date", "modify_date", "date_created", "creation_date")

EXPORT_CHAIN_FIELD = "export_chain_detected"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_key(key: str) -> str:
    mapped = FIELD_MAPPING.get(key)
    if mapped:
        return mapped
    return _NON_ALNUM.sub("_", str(key).lower()).strip("_")


def json_safe(value: Any) -> Any:
    """Coerce reader values (rationals, bytes, tuples, dates) into JSON-safe data."""
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) or math.isinf(value) else value
    if isinstance(value, numbers.Real):
        return json_safe(float(value))
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace").replace("\x00", "").strip()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [json_safe(item) for item in value]
    return str(value)


def software_signatures(metadata: Mapping[str, Any]) -> List[str]:
    """Present software-identity values, in field order."""
    signatures = []
    for field in SOFTWARE_IDENTITY_FIELDS:
        identifier = as_identifier(metadata.get(field))
        if identifier:
            signatures.append(identifier)
    return signatures


def detect_export_chain(metadata: Mapping[str, Any]) -> bool:
    """True when two or more software-identity fields are present."""
    return len(software_signatures(metadata)) > 1


def normalize_metadata(raw: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in raw.items():
        normalized_key = normalize_key(key)
        if not normalized_key:
            continue
        normalized[normalized_key] = json_safe(value)

    normalized[EXPORT_CHAIN_FIELD] = detect_export_chain(normalized)
    return normalized


def populated_field_count(metadata: Mapping[str, Any]) -> int:
    return sum(1 for value in metadata.values() if value is not None and value != "")
