"""
Consistency Models - Evidence inputs and verdict outputs of the consistency engine
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .enums import ConfidenceBand, ConsistencyLevel, Dimension, TechnicalFlag
from .signals import DetectorReading, SignalBundle

logger = logging.getLogger(__name__)


class EvidenceItem(BaseModel):
    """One supplied evidence artifact"""

    type: Optional[str] = None
    name: Optional[str] = None

    @field_validator("type", "name", mode="before")
    @classmethod
    def text_or_none(cls, v):
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()


class EvidenceManifest(BaseModel):
    """
    What evidence exists for a case.

    Produced by the evidence-registration workflow; every field defaults to
    "not supplied" so a partial manifest is read cautiously.
    """

    model_config = ConfigDict(extra="ignore")

    has_source_files: bool = False
    has_process_evidence: bool = False
    has_iteration_files: bool = False
    has_layered_files: bool = False
    has_multiple_versions: bool = False
    files: List[EvidenceItem] = Field(default_factory=list)

    @field_validator(
        "has_source_files",
        "has_process_evidence",
        "has_iteration_files",
        "has_layered_files",
        "has_multiple_versions",
        mode="before",
    )
    @classmethod
    def only_true_counts(cls, v):
        return v is True

    @field_validator("files", mode="before")
    @classmethod
    def items_as_mappings(cls, v):
        if not isinstance(v, (list, tuple)):
            return []
        return [item for item in v if isinstance(item, (dict, EvidenceItem))]


class SignalEvidence(BaseModel):
    """
    Signal reading as consumed by the consistency engine.

    Accepts a persisted SignalResult as well as the published
    ``/analysis/ai-signals`` body, which carries no ``analyzed_at``. Only the
    band, the aggregated score and the fingerprint entry are read.
    """

    model_config = ConfigDict(extra="ignore")

    ai_signals: SignalBundle = Field(default_factory=dict)
    aggregated_score: float = Field(..., ge=0.0, le=1.0)
    confidence: ConfidenceBand
    analysis_version: Optional[str] = None
    analyzed_at: Optional[datetime] = None

    @field_validator("ai_signals", mode="before")
    @classmethod
    def valid_readings(cls, v):
        if not isinstance(v, dict):
            return {}
        readings = {}
        for key, reading in v.items():
            try:
                readings[key] = DetectorReading.model_validate(
                    reading.model_dump() if isinstance(reading, BaseModel) else reading
                )
            except ValidationError as exc:
                logger.warning(f"Ignoring malformed detector reading '{key}': {exc}")
        return readings


class TechnicalEvidence(BaseModel):
    """
    Prior-stage outputs the consistency engine compares against.

    Each field is read on its own: a malformed field is dropped and logged
    while the remaining fields still reach the evaluation.
    """

    metadata_flags: List[TechnicalFlag] = Field(default_factory=list)
    extracted_metadata: Dict[str, Any] = Field(default_factory=dict)
    ai_signals: Optional[SignalEvidence] = None

    @field_validator("metadata_flags", mode="before")
    @classmethod
    def known_flags(cls, v):
        if not isinstance(v, (list, tuple)):
            return []
        flags = []
        for item in v:
            try:
                flags.append(TechnicalFlag(item))
            except ValueError:
                logger.warning(f"Ignoring unknown metadata flag: {item!r}")
        return flags

    @field_validator("extracted_metadata", mode="before")
    @classmethod
    def metadata_mapping(cls, v):
        return v if isinstance(v, dict) else {}

    @field_validator("ai_signals", mode="before")
    @classmethod
    def signal_reading(cls, v):
        if v is None:
            return None
        if isinstance(v, BaseModel):
            v = v.model_dump()
        try:
            return SignalEvidence.model_validate(v)
        except ValidationError as exc:
            logger.warning(f"Ignoring malformed signal result: {exc}")
            return None


class ConsistencyResult(BaseModel):
    """Global consistency verdict for one evaluation"""

    case_id: str
    consistency_result: ConsistencyLevel
    affected_dimensions: List[Dimension] = Field(default_factory=list)
    engine_version: str
    evaluated_at: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "case_id": "AURA-2025-03-K2J9QX",
                "consistency_result": "WEAK",
                "affected_dimensions": ["PROCESS"],
                "engine_version": "2.4.0",
                "evaluated_at": "2025-03-14T10:23:02Z",
            }
        }
    )


class ConsistencyEvaluation(BaseModel):
    """Published result plus the per-dimension verdicts behind it"""

    result: ConsistencyResult
    dimension_results: Dict[Dimension, ConsistencyLevel]
