"""
Signal Models - Per-detector readings and the aggregated signal result
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import ConfidenceBand


class DetectorReading(BaseModel):
    """Score/reliability pair produced by one detector"""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=0.0, le=1.0, description="Detector score (0-1)")
    reliability: float = Field(..., ge=0.0, le=1.0, description="Detector reliability (0-1)")
    model: Optional[str] = Field(
        default=None,
        description="Matched generator label (model fingerprinting only)",
    )


SignalBundle = Dict[str, DetectorReading]


class SignalResult(BaseModel):
    """Output of one signal aggregation run"""

    ai_signals: SignalBundle = Field(default_factory=dict)
    aggregated_score: float = Field(..., ge=0.0, le=1.0)
    confidence: ConfidenceBand
    analysis_version: str
    analyzed_at: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ai_signals": {
                    "clip": {"score": 0.62, "reliability": 0.6},
                    "fingerprint": {"score": 0.2, "reliability": 0.3, "model": "No detectable"},
                },
                "aggregated_score": 0.47,
                "confidence": "LOW",
                "analysis_version": "3.2.0",
                "analyzed_at": "2025-03-14T10:22:40Z",
            }
        }
    )
