"""
Metadata Extractor - Technical metadata extraction and flagging

Non-decisional: reads verifiable technical facts from a submitted file and
raises flags for objectively checkable mismatches with the declaration. It
never validates authenticity or determines AI usage.

Entry points:
- extract(): pure extraction, flags are computed later by the consistency engine
- analyze(): extraction plus the timeline/software/format checks

Neither entry point raises past this boundary: fetch, sniff and reader
failures become an empty record with a generic failure marker.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from aura_forensics.models.declaration import Declaration
from aura_forensics.models.enums import TechnicalFlag
from aura_forensics.models.metadata import (
    ExtractionResult,
    MetadataAnalysisResult,
    TechnicalMetadataRecord,
)

from .checks import run_checks
from .fetcher import ArtifactFetcher, ArtifactFetchError
from .normalizer import EXPORT_CHAIN_FIELD, normalize_metadata
from .readers import MetadataReaderError, read_technical_metadata
from .sniffer import SNIFF_BYTES, sniff_mime_type

logger = logging.getLogger(__name__)

ANALYSIS_VERSION = "3.1.0"
EXTRACTION_VERSION = "3.1.0"

# Generic failure markers; the underlying detail is only logged
FETCH_FAILED = "file could not be fetched"
UNIDENTIFIABLE_TYPE = "unidentifiable file type"
READ_FAILED = "technical metadata could not be read"
EXTRACTION_FAILED = "technical metadata extraction failed"


class ExtractionFailure(Exception):
    """Internal signal for an extraction that produced no usable record."""

    def __init__(self, reason: str, detail: str = "") -> None:
        super().__init__(detail or reason)
        self.reason = reason
        self.detail = detail


def ordered_flags(flags: Iterable[TechnicalFlag]) -> List[TechnicalFlag]:
    """Deduplicate and order flags by the vocabulary declaration order."""
    present: Set[TechnicalFlag] = set(flags)
    return [flag for flag in TechnicalFlag if flag in present]


def has_technical_fields(metadata: TechnicalMetadataRecord) -> bool:
    return any(key != EXPORT_CHAIN_FIELD for key in metadata)


class MetadataExtractor:
    """Fetch, sniff, read and normalize technical metadata for one file."""

    def __init__(self, fetcher: Optional[ArtifactFetcher] = None) -> None:
        self.fetcher = fetcher or ArtifactFetcher()

    async def _read_record(self, file_url: str) -> TechnicalMetadataRecord:
        try:
            async with self.fetcher.download(file_url) as path:
                with open(path, "rb") as handle:
                    head = handle.read(SNIFF_BYTES)

                mime_type = sniff_mime_type(head)
                if mime_type is None:
                    raise ExtractionFailure(UNIDENTIFIABLE_TYPE, f"no signature matched {head[:8]!r}")

                logger.info(f"Detected container type: {mime_type}")
                raw = await asyncio.to_thread(read_technical_metadata, path, mime_type)
        except ArtifactFetchError as exc:
            raise ExtractionFailure(FETCH_FAILED, str(exc)) from exc
        except MetadataReaderError as exc:
            raise ExtractionFailure(READ_FAILED, str(exc)) from exc

        return normalize_metadata(raw)

    async def extract(self, file_url: str) -> ExtractionResult:
        """
        Extract a normalized technical metadata record.

        Returns:
            ExtractionResult with ``extracted_at`` on success, or an empty
            record with ``extraction_error`` on any failure
        """
        extraction_id = str(uuid.uuid4())
        logger.info(f"[{extraction_id}] Starting technical extraction")

        try:
            metadata = await self._read_record(file_url)
        except ExtractionFailure as failure:
            logger.warning(f"[{extraction_id}] Extraction failed ({failure.reason}): {failure.detail}")
            return ExtractionResult(
                metadata={},
                extraction_version=EXTRACTION_VERSION,
                extraction_error=failure.reason,
            )
        except Exception as exc:
            logger.error(f"[{extraction_id}] Unexpected extraction error: {exc}", exc_info=True)
            return ExtractionResult(
                metadata={},
                extraction_version=EXTRACTION_VERSION,
                extraction_error=EXTRACTION_FAILED,
            )

        logger.info(f"[{extraction_id}] Extraction completed: {len(metadata)} fields")
        return ExtractionResult(
            metadata=metadata,
            extraction_version=EXTRACTION_VERSION,
            extracted_at=datetime.now(timezone.utc),
        )

    async def analyze(
        self,
        case_id: str,
        declaration: Declaration,
        file_url: Optional[str] = None,
    ) -> MetadataAnalysisResult:
        """
        Flag objectively checkable mismatches between a file and its declaration.

        No file, an unidentifiable type or an empty record short-circuit to
        METADATA_MISSING; the comparison checks are then skipped entirely.
        """
        analysis_id = str(uuid.uuid4())
        generated_at = datetime.now(timezone.utc)
        logger.info(f"[{analysis_id}] Starting non-decisional metadata analysis for case {case_id}")

        flags: Set[TechnicalFlag] = set()

        if not file_url:
            logger.info(f"[{analysis_id}] No file associated, flag: METADATA_MISSING")
            flags.add(TechnicalFlag.METADATA_MISSING)
        else:
            try:
                metadata = await self._read_record(file_url)
            except ExtractionFailure as failure:
                logger.warning(f"[{analysis_id}] {failure.reason}: {failure.detail}")
                flags.add(TechnicalFlag.METADATA_MISSING)
            except Exception as exc:
                logger.error(f"[{analysis_id}] Analysis error: {exc}", exc_info=True)
                flags.add(TechnicalFlag.METADATA_MISSING)
            else:
                if not has_technical_fields(metadata):
                    flags.add(TechnicalFlag.METADATA_MISSING)
                else:
                    flags.update(run_checks(metadata, declaration))

        result = MetadataAnalysisResult(
            case_id=case_id,
            metadata_flags=ordered_flags(flags),
            analysis_version=ANALYSIS_VERSION,
            generated_at=generated_at,
        )
        logger.info(f"[{analysis_id}] Analysis completed. Flags: {len(result.metadata_flags)}")
        return result
