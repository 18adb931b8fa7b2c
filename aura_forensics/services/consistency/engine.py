"""
Consistency Engine - Evidence vs declaration comparison

Non-decisional: contrasts declared claims with technical evidence along four
independent dimensions and reports where they disagree. It does not detect AI,
decide authenticity, recompute the GIT level or interpret intent.

Steps:
1. Normalize the declaration into expectations (GIT table, control claim)
2. Evaluate PROCESS, CONTROL, TOOLING and EVIDENCE_COMPLETENESS
3. Fold the dimension verdicts into a global verdict by precedence
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Union

from aura_forensics.models.consistency import (
    ConsistencyEvaluation,
    ConsistencyResult,
    EvidenceManifest,
    TechnicalEvidence,
)
from aura_forensics.models.declaration import Declaration
from aura_forensics.models.enums import ConsistencyLevel, Dimension

from .dimensions import (
    evaluate_control,
    evaluate_evidence_completeness,
    evaluate_process,
    evaluate_tooling,
)
from .expectations import normalize_declaration

logger = logging.getLogger(__name__)

ENGINE_VERSION = "2.4.0"


def global_consistency(levels: Iterable[ConsistencyLevel]) -> ConsistencyLevel:
    """CONTRADICTORY > WEAK > CONSISTENT."""
    return ConsistencyLevel.worst(*levels)


def affected_dimensions(results: Dict[Dimension, ConsistencyLevel]) -> List[Dimension]:
    return [
        dimension
        for dimension in Dimension
        if results.get(dimension, ConsistencyLevel.CONSISTENT) is not ConsistencyLevel.CONSISTENT
    ]


def _coerce(model, value):
    if isinstance(value, model):
        return value
    if isinstance(value, dict):
        try:
            return model.model_validate(value)
        except ValueError as exc:
            logger.warning(f"Malformed {model.__name__} ignored: {exc}")
    return model()


class ConsistencyEngine:
    """Stateless evaluator; safe to share between concurrent evaluations."""

    def evaluate(
        self,
        case_id: str,
        declaration: Union[Declaration, Dict[str, Any], None],
        technical_evidence: Union[TechnicalEvidence, Dict[str, Any], None] = None,
        evidence_manifest: Union[EvidenceManifest, Dict[str, Any], None] = None,
    ) -> ConsistencyEvaluation:
        """
        Compare a frozen declaration with the technical evidence of a case.

        Args:
            case_id: Case identifier
            declaration: Frozen declaration (model or raw intake mapping)
            technical_evidence: Flags, extracted metadata and optional signals
            evidence_manifest: What evidence was supplied for the case

        Returns:
            ConsistencyEvaluation with the published result and per-dimension verdicts

        Missing or malformed inputs never raise; they degrade the affected
        dimension toward WEAK or leave it CONSISTENT when it does not apply.
        """
        evaluation_id = f"{case_id}_{uuid.uuid4().hex[:8]}"
        logger.info(f"[{evaluation_id}] Starting consistency evaluation")

        if not isinstance(declaration, Declaration):
            declaration = Declaration.from_intake(declaration)
        evidence = _coerce(TechnicalEvidence, technical_evidence)
        manifest = _coerce(EvidenceManifest, evidence_manifest)

        expectations = normalize_declaration(declaration)
        logger.info(
            f"[{evaluation_id}] Declared GIT: {expectations.git_level}, "
            f"classifiable={expectations.classifiable}"
        )

        dimension_results: Dict[Dimension, ConsistencyLevel] = {
            Dimension.PROCESS: evaluate_process(expectations, manifest, evidence),
            Dimension.CONTROL: evaluate_control(expectations, manifest, evidence),
            Dimension.TOOLING: evaluate_tooling(declaration, evidence),
            Dimension.EVIDENCE_COMPLETENESS: evaluate_evidence_completeness(declaration, manifest),
        }
        logger.info(
            f"[{evaluation_id}] Dimension results: "
            + ", ".join(f"{dim.value}={level.value}" for dim, level in dimension_results.items())
        )

        result = ConsistencyResult(
            case_id=case_id,
            consistency_result=global_consistency(dimension_results.values()),
            affected_dimensions=affected_dimensions(dimension_results),
            engine_version=ENGINE_VERSION,
            evaluated_at=datetime.now(timezone.utc),
        )
        logger.info(f"[{evaluation_id}] Evaluation completed: {result.consistency_result.value}")
        return ConsistencyEvaluation(result=result, dimension_results=dimension_results)
