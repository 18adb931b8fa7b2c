"""
Flag checks comparing a normalized metadata record with the declaration.

Every check is pure and independently optional: missing declared or extracted
inputs skip the check silently. Absence of information never raises a flag here.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Callable, List, Mapping, Optional

from aura_forensics.models.declaration import Declaration
from aura_forensics.models.enums import TechnicalFlag
from aura_forensics.services.matching import as_identifier, names_match, undeclared

from .normalizer import DATE_FIELDS, software_signatures

logger = logging.getLogger(__name__)

_EXIF_DATETIME = "%Y:%m:%d %H:%M:%S"
_EXIF_DATE = "%Y:%m:%d"
_PDF_DATE = re.compile(r"^D:(\d{4})")
_BARE_YEAR = re.compile(r"^(\d{4})$")

Check = Callable[[Mapping[str, Any], Declaration], Optional[TechnicalFlag]]


def parse_year(value: Any) -> Optional[int]:
    """Year of a metadata date value, or None when it cannot be parsed."""
    if isinstance(value, (datetime, date)):
        return value.year
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    pdf_match = _PDF_DATE.match(text)
    if pdf_match:
        return int(pdf_match.group(1))

    for candidate, fmt in ((text[:19], _EXIF_DATETIME), (text[:10], _EXIF_DATE)):
        try:
            return datetime.strptime(candidate, fmt).year
        except ValueError:
            pass

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).year
    except ValueError:
        pass

    year_match = _BARE_YEAR.match(text)
    if year_match:
        return int(year_match.group(1))
    return None


def first_date_value(metadata: Mapping[str, Any]) -> Any:
    for field in DATE_FIELDS:
        value = metadata.get(field)
        if value:
            return value
    return None


def check_timeline(metadata: Mapping[str, Any], declaration: Declaration) -> Optional[TechnicalFlag]:
    declared_year = declaration.artist_declaration.execution_year
    if not declared_year:
        return None

    found = first_date_value(metadata)
    if found is None:
        return None

    metadata_year = parse_year(found)
    if metadata_year is None:
        logger.debug(f"Unparseable metadata date ignored: {found!r}")
        return None

    if metadata_year != declared_year:
        logger.info(f"Timeline inconsistency: declared {declared_year}, metadata {metadata_year}")
        return TechnicalFlag.TIMELINE_INCONSISTENCY
    return None


def check_software_signatures(
    metadata: Mapping[str, Any], declaration: Declaration
) -> Optional[TechnicalFlag]:
    detected = software_signatures(metadata)
    if not detected:
        return None

    declared_tools = declaration.declared_tools()
    if not declared_tools:
        logger.info(f"Software detected without any declaration: {detected[0]}")
        return TechnicalFlag.SOFTWARE_SIGNATURE_UNKNOWN

    missing = undeclared(detected, declared_tools)
    if missing:
        logger.info(f"Undeclared software detected: {missing}")
        return TechnicalFlag.UNDECLARED_SOFTWARE
    return None


def check_format(metadata: Mapping[str, Any], declaration: Declaration) -> Optional[TechnicalFlag]:
    declared_format = declaration.artist_declaration.file_format
    detected_format = as_identifier(metadata.get("file_type"))
    if not declared_format or not detected_format:
        return None

    if not names_match(detected_format, declared_format):
        logger.info(f"Format mismatch: declared {declared_format}, detected {detected_format}")
        return TechnicalFlag.FORMAT_VERSION_MISMATCH
    return None


CHECKS: List[Check] = [check_timeline, check_software_signatures, check_format]


def run_checks(metadata: Mapping[str, Any], declaration: Declaration) -> List[TechnicalFlag]:
    """Run every check; returns raised flags (unordered, may repeat)."""
    raised = []
    for check in CHECKS:
        flag = check(metadata, declaration)
        if flag is not None:
            raised.append(flag)
    return raised
