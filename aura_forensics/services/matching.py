"""Software/tool name matching shared by the extractor checks and the tooling dimension."""

from __future__ import annotations

from typing import Any, Iterable, List


def names_match(detected: str, declared: str) -> bool:
    """
    Case-insensitive substring test in either direction.

    Kept deliberately loose: "Photoshop" matches "Adobe Photoshop 2024" and
    vice versa. Short declared tokens can over-match.
    """
    detected_lower = detected.lower()
    declared_lower = declared.lower()
    return declared_lower in detected_lower or detected_lower in declared_lower


def is_declared(detected: str, declared_tools: Iterable[str]) -> bool:
    return any(names_match(detected, declared) for declared in declared_tools)


def undeclared(detected: Iterable[str], declared_tools: Iterable[str]) -> List[str]:
    """Detected identifiers that match none of the declared tools."""
    declared_list = list(declared_tools)
    return [item for item in detected if not is_declared(item, declared_list)]


def as_identifier(value: Any) -> str:
    """Render a metadata value as a comparable identifier ('' when absent)."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(as_identifier(item) for item in value).strip()
    return str(value).strip()
