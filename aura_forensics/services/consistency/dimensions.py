"""
Per-dimension consistency evaluators.

Each evaluator reads its own slice of declaration and evidence and folds the
rules it applies with "worst wins", so a stronger verdict is never masked by
a weaker rule checked earlier.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from aura_forensics.models.consistency import EvidenceManifest, TechnicalEvidence
from aura_forensics.models.declaration import Declaration
from aura_forensics.models.enums import (
    ConfidenceBand,
    ConsistencyLevel,
    EvidenceRequirement,
    TechnicalFlag,
)
from aura_forensics.services.matching import is_declared, undeclared
from aura_forensics.services.metadata.normalizer import software_signatures
from aura_forensics.services.signals.detectors import NO_MODEL_LABEL
from aura_forensics.services.signals.panel import FINGERPRINT_KEY

from .expectations import Expectations

logger = logging.getLogger(__name__)

CONSISTENT = ConsistencyLevel.CONSISTENT
WEAK = ConsistencyLevel.WEAK
CONTRADICTORY = ConsistencyLevel.CONTRADICTORY


def signal_reading(evidence: TechnicalEvidence) -> Tuple[ConfidenceBand, float]:
    """Confidence band and aggregated score; absent signals read as LOW / 0.0."""
    if evidence.ai_signals is None:
        return ConfidenceBand.LOW, 0.0
    return evidence.ai_signals.confidence, evidence.ai_signals.aggregated_score


def evaluate_process(
    expectations: Expectations,
    manifest: EvidenceManifest,
    evidence: TechnicalEvidence,
) -> ConsistencyLevel:
    level = CONSISTENT

    git = expectations.git_expectation
    if git is None:
        level = WEAK
    else:
        if git.source_files is EvidenceRequirement.REQUIRED and not manifest.has_source_files:
            level = ConsistencyLevel.worst(level, WEAK)
        if git.process_evidence is EvidenceRequirement.REQUIRED and not manifest.has_process_evidence:
            level = ConsistencyLevel.worst(level, WEAK)

    confidence, score = signal_reading(evidence)

    if expectations.expects_no_ai_signals:
        if confidence is ConfidenceBand.HIGH and score > 0.7:
            level = ConsistencyLevel.worst(level, CONTRADICTORY)
        elif confidence is ConfidenceBand.MEDIUM and score > 0.6:
            level = ConsistencyLevel.worst(level, WEAK)

    if expectations.expects_ai_signals:
        if confidence is ConfidenceBand.LOW and score < 0.3:
            level = ConsistencyLevel.worst(level, WEAK)

    return level


def evaluate_control(
    expectations: Expectations,
    manifest: EvidenceManifest,
    evidence: TechnicalEvidence,
) -> ConsistencyLevel:
    if not expectations.expects_high_control_evidence:
        return CONSISTENT

    level = CONSISTENT
    if not (
        manifest.has_iteration_files
        or manifest.has_layered_files
        or manifest.has_multiple_versions
    ):
        level = WEAK

    confidence, score = signal_reading(evidence)
    if confidence is ConfidenceBand.HIGH and score > 0.8:
        level = ConsistencyLevel.worst(level, CONTRADICTORY)

    return level


def detected_identifiers(evidence: TechnicalEvidence) -> List[str]:
    """Software identities from the record plus a matched fingerprint model."""
    identifiers = software_signatures(evidence.extracted_metadata)

    if evidence.ai_signals is not None:
        reading = evidence.ai_signals.ai_signals.get(FINGERPRINT_KEY)
        model = reading.model if reading is not None else None
        if model and model != NO_MODEL_LABEL and not is_declared(model, identifiers):
            identifiers.append(model)

    return identifiers


def evaluate_tooling(declaration: Declaration, evidence: TechnicalEvidence) -> ConsistencyLevel:
    flags = evidence.metadata_flags
    if TechnicalFlag.UNDECLARED_SOFTWARE in flags:
        return CONTRADICTORY
    if TechnicalFlag.SOFTWARE_SIGNATURE_UNKNOWN in flags:
        return WEAK

    missing = undeclared(detected_identifiers(evidence), declaration.declared_tools())
    if missing:
        logger.debug(f"Undeclared tool identifiers: {missing}")

    if len(missing) > 1:
        return CONTRADICTORY
    if len(missing) == 1:
        return WEAK
    return CONSISTENT


def _promised_item_found(promised: str, manifest: EvidenceManifest) -> bool:
    promised_lower = promised.lower()
    for item in manifest.files:
        if item.type and item.type.lower() in promised_lower:
            return True
        if item.name and item.name.lower() in promised_lower:
            return True
    return False


def evaluate_evidence_completeness(
    declaration: Declaration, manifest: EvidenceManifest
) -> ConsistencyLevel:
    promised = declaration.process_declaration.evidence_promised
    if not promised:
        return CONSISTENT

    missing = [item for item in promised if not _promised_item_found(item, manifest)]
    if len(missing) == len(promised):
        return CONTRADICTORY
    if missing:
        return WEAK
    return CONSISTENT
