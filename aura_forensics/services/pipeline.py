"""
Forensic Pipeline - Stage orchestration and persistence

Composes the analysis stages in-process (metadata analysis, extraction,
signals, consistency) for one case. Every stage reads the case's frozen
declaration and the most recently persisted prior outputs, appends its own
output plus an audit log entry, and returns its result.

A persistence failure after a result is computed is logged and the result is
still returned; the computation already happened and is reproducible.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from aura_forensics.models.case import (
    AuditCase,
    AuditLogEntry,
    EvidenceMetadataRecord,
    SignalRecord,
)
from aura_forensics.models.consistency import (
    ConsistencyEvaluation,
    EvidenceManifest,
    TechnicalEvidence,
)
from aura_forensics.models.declaration import Declaration
from aura_forensics.models.metadata import ExtractionResult, MetadataAnalysisResult
from aura_forensics.models.signals import SignalResult

from .case_store import CaseStore, get_case_store
from .consistency.engine import ENGINE_VERSION, ConsistencyEngine
from .errors import CaseNotFoundError, MetadataUnavailableError, StoreError
from .metadata.extractor import ANALYSIS_VERSION, EXTRACTION_VERSION, MetadataExtractor
from .signals.aggregation import has_metadata_integrity
from .signals.aggregator import SIGNAL_ANALYSIS_VERSION, SignalAggregator

logger = logging.getLogger(__name__)

PIPELINE_VERSION = "3.1.0_full"

ACTION_METADATA_ANALYSIS = "metadata_analysis_executed"
ACTION_METADATA_EXTRACTED = "metadata_extracted"
ACTION_SIGNALS = "ai_signal_analysis_executed"
ACTION_CONSISTENCY = "consistency_evaluation_executed"

ANALYZER_ACTOR_ID = f"metadata-analyzer-{ANALYSIS_VERSION}"
EXTRACTOR_ACTOR_ID = f"evidence-metadata-forensics-{EXTRACTION_VERSION}"
SIGNALS_ACTOR_ID = f"ai-signal-detection-{SIGNAL_ANALYSIS_VERSION}"
CONSISTENCY_ACTOR_ID = f"consistency-engine-{ENGINE_VERSION}"

INCOMPLETE_EVIDENCE = "incomplete evidence entry"

ManifestInput = Union[EvidenceManifest, Mapping[str, Any], None]


@dataclass
class CaseContext:
    case: AuditCase
    declaration: Declaration


class ForensicPipeline:
    """Run analysis stages for a case against a case store."""

    def __init__(
        self,
        store: Optional[CaseStore] = None,
        extractor: Optional[MetadataExtractor] = None,
        aggregator: Optional[SignalAggregator] = None,
        engine: Optional[ConsistencyEngine] = None,
    ) -> None:
        self.store = store or get_case_store()
        self.extractor = extractor or MetadataExtractor()
        self.aggregator = aggregator or SignalAggregator()
        self.engine = engine or ConsistencyEngine()

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------

    def load_case(self, case_id: str) -> CaseContext:
        """
        Raises:
            CaseNotFoundError: no case with this id was opened
        """
        case = self.store.get_case(case_id)
        if case is None:
            raise CaseNotFoundError(case_id)

        intake = self.store.get_intake(case.intake_frozen_id)
        if intake is None:
            logger.warning(f"Case {case_id} has no frozen intake, reading an empty declaration")
        declaration = Declaration.from_intake(intake.intake_json if intake else {})
        return CaseContext(case=case, declaration=declaration)

    def _persist(self, description: str, write: Callable[[], None]) -> bool:
        try:
            write()
            return True
        except StoreError as exc:
            logger.error(f"Failed to persist {description}: {exc}")
            return False

    def _audit(self, case_id: str, action: str, details: Dict[str, Any], actor_id: str) -> None:
        entry = AuditLogEntry(case_id=case_id, action=action, details=details, actor_id=actor_id)
        self._persist(f"audit log '{action}' for {case_id}", lambda: self.store.append_audit_log(entry))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def analyze_metadata(
        self, case_id: str, file_url: Optional[str] = None
    ) -> MetadataAnalysisResult:
        context = self.load_case(case_id)
        result = await self.extractor.analyze(case_id, context.declaration, file_url)

        self._audit(
            case_id,
            ACTION_METADATA_ANALYSIS,
            {
                "flags_count": len(result.metadata_flags),
                "flags": [flag.value for flag in result.metadata_flags],
                "analysis_version": result.analysis_version,
            },
            ANALYZER_ACTOR_ID,
        )
        return result

    async def _extract_one(self, case_id: str, evidence_id: str, file_url: str) -> ExtractionResult:
        extraction = await self.extractor.extract(file_url)
        record = EvidenceMetadataRecord(
            case_id=case_id,
            evidence_id=evidence_id,
            metadata=extraction.metadata,
            extraction_version=extraction.extraction_version,
            extracted_at=extraction.extracted_at or datetime.now(timezone.utc),
            extraction_error=extraction.extraction_error,
        )
        self.store.append_evidence_metadata(record)
        return extraction

    async def extract_metadata(
        self, case_id: str, evidences: Sequence[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        """
        Extract and store metadata for every evidence entry.

        Incomplete or failing entries are collected in the audit log and never
        abort their siblings.
        """
        self.load_case(case_id)

        processed = 0
        errors: List[Dict[str, Any]] = []

        for evidence in evidences:
            evidence = evidence if isinstance(evidence, Mapping) else {}
            evidence_id = evidence.get("evidence_id")
            file_url = evidence.get("file_url")
            if not evidence_id or not file_url:
                errors.append({"evidence_id": evidence_id, "error": INCOMPLETE_EVIDENCE})
                continue

            try:
                extraction = await self._extract_one(case_id, str(evidence_id), str(file_url))
            except StoreError as exc:
                logger.error(f"Failed to persist metadata for evidence {evidence_id}: {exc}")
                errors.append({"evidence_id": evidence_id, "error": "metadata could not be stored"})
                continue

            if extraction.succeeded:
                processed += 1
                logger.info(f"Metadata extracted for evidence {evidence_id}")
            else:
                errors.append({"evidence_id": evidence_id, "error": extraction.extraction_error})

        details: Dict[str, Any] = {
            "evidences_processed": processed,
            "total_evidences": len(evidences),
        }
        if errors:
            details["errors"] = errors
        self._audit(case_id, ACTION_METADATA_EXTRACTED, details, EXTRACTOR_ACTOR_ID)

        return {
            "case_id": case_id,
            "evidences_processed": processed,
            "metadata_extracted": processed > 0,
        }

    def latest_metadata(self, case_id: str) -> Dict[str, Any]:
        """
        Raises:
            MetadataUnavailableError: nothing extracted yet, or the latest extraction failed
        """
        record = self.store.latest_evidence_metadata(case_id)
        if record is None or not record.metadata:
            raise MetadataUnavailableError(case_id)
        return record.metadata

    def run_signals(self, case_id: str) -> SignalResult:
        self.load_case(case_id)
        metadata = self.latest_metadata(case_id)
        return self._signals_for(case_id, metadata)

    def _signals_for(self, case_id: str, metadata: Dict[str, Any]) -> SignalResult:
        result = self.aggregator.run_signals(metadata)

        record = SignalRecord(case_id=case_id, result=result)
        self._persist(f"signal result for {case_id}", lambda: self.store.append_signal_result(record))
        self._audit(
            case_id,
            ACTION_SIGNALS,
            {
                "signals_count": len(result.ai_signals),
                "aggregated_score": result.aggregated_score,
                "confidence": result.confidence.value,
                "metadata_integrity": has_metadata_integrity(metadata),
            },
            SIGNALS_ACTOR_ID,
        )
        return result

    def evaluate_consistency(
        self, case_id: str, evidence_manifest: ManifestInput = None
    ) -> ConsistencyEvaluation:
        """Evaluate against the latest persisted flags, metadata and signals."""
        context = self.load_case(case_id)

        flags_entry = self.store.latest_audit_log(case_id, ACTION_METADATA_ANALYSIS)
        metadata_record = self.store.latest_evidence_metadata(case_id)
        signal_record = self.store.latest_signal_result(case_id)

        evidence = TechnicalEvidence(
            metadata_flags=flags_entry.details.get("flags", []) if flags_entry else [],
            extracted_metadata=metadata_record.metadata if metadata_record else {},
            ai_signals=signal_record.result if signal_record else None,
        )
        return self._evaluate(context, evidence, evidence_manifest)

    def _evaluate(
        self,
        context: CaseContext,
        evidence: TechnicalEvidence,
        evidence_manifest: ManifestInput,
    ) -> ConsistencyEvaluation:
        case_id = context.case.case_id
        manifest = dict(evidence_manifest) if isinstance(evidence_manifest, Mapping) else evidence_manifest
        evaluation = self.engine.evaluate(case_id, context.declaration, evidence, manifest)

        result = evaluation.result
        self._audit(
            case_id,
            ACTION_CONSISTENCY,
            {
                "consistency_result": result.consistency_result.value,
                "affected_dimensions": [dimension.value for dimension in result.affected_dimensions],
                "dimension_results": {
                    dimension.value: level.value
                    for dimension, level in evaluation.dimension_results.items()
                },
                "engine_version": result.engine_version,
            },
            CONSISTENCY_ACTOR_ID,
        )
        return evaluation

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    async def run_pipeline(
        self,
        case_id: str,
        file_urls: Optional[Sequence[str]] = None,
        evidence_manifest: ManifestInput = None,
    ) -> Dict[str, Any]:
        """
        Run every stage in order for one case.

        Sequence: metadata analysis (first file) -> extraction (all files) ->
        signals (skipped without extracted metadata) -> consistency.
        """
        context = self.load_case(case_id)
        file_urls = [url for url in (file_urls or []) if url]
        steps: Dict[str, Any] = {}
        generated_at = datetime.now(timezone.utc)

        logger.info(f"Running full pipeline for case {case_id} over {len(file_urls)} file(s)")

        flags: List[str] = []
        if file_urls:
            analysis = await self.analyze_metadata(case_id, file_urls[0])
            steps["metadata_analysis"] = analysis.model_dump(mode="json")
            flags = [flag.value for flag in analysis.metadata_flags]

            evidences = [
                {"evidence_id": f"EVIDENCE_{index}", "file_url": url}
                for index, url in enumerate(file_urls, start=1)
            ]
            steps["metadata_extraction"] = await self.extract_metadata(case_id, evidences)

        signals: Optional[SignalResult] = None
        metadata: Dict[str, Any] = {}
        try:
            metadata = self.latest_metadata(case_id)
        except MetadataUnavailableError:
            logger.info(f"No extracted metadata for case {case_id}, skipping signal detection")
        else:
            signals = self._signals_for(case_id, metadata)
            steps["ai_signal_detection"] = {"case_id": case_id, **signals.model_dump(mode="json")}

        evidence = TechnicalEvidence(
            metadata_flags=flags,
            extracted_metadata=metadata,
            ai_signals=signals,
        )
        evaluation = self._evaluate(context, evidence, evidence_manifest)
        steps["consistency_evaluation"] = evaluation.result.model_dump(mode="json")

        return {
            "case_id": case_id,
            "pipeline_version": PIPELINE_VERSION,
            "steps": steps,
            "generated_at": generated_at.isoformat(),
        }
