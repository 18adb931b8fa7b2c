"""Technical metadata extraction and flagging."""

from .extractor import (  # noqa: F401
    ANALYSIS_VERSION,
    EXTRACTION_VERSION,
    MetadataExtractor,
    ordered_flags,
)
from .fetcher import ArtifactFetcher, ArtifactFetchError  # noqa: F401
from .normalizer import normalize_metadata, populated_field_count  # noqa: F401
from .sniffer import sniff_mime_type  # noqa: F401

__all__ = [
    "ANALYSIS_VERSION",
    "EXTRACTION_VERSION",
    "MetadataExtractor",
    "ordered_flags",
    "ArtifactFetcher",
    "ArtifactFetchError",
    "normalize_metadata",
    "populated_field_count",
    "sniff_mime_type",
]
