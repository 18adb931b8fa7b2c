"""Pure aggregation and banding of detector readings."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import numpy as np

from aura_forensics.models.enums import ConfidenceBand
from aura_forensics.models.signals import SignalBundle
from aura_forensics.services.metadata.normalizer import populated_field_count

HIGH_MIN_SCORES = 4
MEDIUM_MIN_SCORES = 3
LOW_VARIANCE_THRESHOLD = 0.05
HIGH_RELIABILITY_THRESHOLD = 0.7
HIGH_RELIABILITY_MIN_COUNT = 3
INTEGRITY_MIN_FIELDS = 5


def weighted_aggregate(bundle: SignalBundle) -> float:
    """Reliability-weighted mean score; 0.0 when total reliability is zero."""
    if not bundle:
        return 0.0
    scores = np.array([reading.score for reading in bundle.values()], dtype=float)
    weights = np.array([reading.reliability for reading in bundle.values()], dtype=float)
    total_weight = weights.sum()
    if total_weight <= 0:
        return 0.0
    return float((scores * weights).sum() / total_weight)


def has_metadata_integrity(metadata: Mapping[str, Any]) -> bool:
    return populated_field_count(metadata) > INTEGRITY_MIN_FIELDS


def confidence_band(
    scores: Sequence[float],
    reliabilities: Sequence[float],
    integrity: bool,
) -> ConfidenceBand:
    """
    Band an aggregated score by agreement and coverage.

    HIGH needs at least four low-variance scores, three highly reliable
    detectors and metadata integrity; MEDIUM needs three scores and integrity.
    """
    if len(scores) == 0:
        return ConfidenceBand.LOW

    variance = float(np.var(np.asarray(scores, dtype=float)))
    reliable = sum(1 for value in reliabilities if value > HIGH_RELIABILITY_THRESHOLD)

    if (
        len(scores) >= HIGH_MIN_SCORES
        and variance < LOW_VARIANCE_THRESHOLD
        and reliable >= HIGH_RELIABILITY_MIN_COUNT
        and integrity
    ):
        return ConfidenceBand.HIGH
    if len(scores) >= MEDIUM_MIN_SCORES and integrity:
        return ConfidenceBand.MEDIUM
    return ConfidenceBand.LOW
