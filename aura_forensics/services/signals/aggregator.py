"""
Signal Aggregator - Auxiliary multi-signal scoring

Runs a panel of independent detectors over an extracted metadata record and
folds their readings into a reliability-weighted score and a confidence band.
The output is auxiliary input for a human reviewer; it never determines AI usage.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from aura_forensics.models.signals import SignalBundle, SignalResult

from .aggregation import confidence_band, has_metadata_integrity, weighted_aggregate
from .detectors import Detector, build_default_panel

logger = logging.getLogger(__name__)

SIGNAL_ANALYSIS_VERSION = "3.2.0"


class SignalAggregator:
    """Run a detector panel and aggregate the readings."""

    def __init__(self, detectors: Optional[List[Detector]] = None) -> None:
        self.detectors = list(detectors) if detectors is not None else build_default_panel()

    def collect(self, metadata: Mapping[str, Any]) -> SignalBundle:
        """Run every detector; a detector that fails is left out of the bundle."""
        bundle: SignalBundle = {}
        for detector in self.detectors:
            try:
                bundle[detector.key] = detector(metadata)
            except Exception as exc:
                logger.error(f"Detector '{detector.key}' failed, omitting it: {exc}", exc_info=True)
        return bundle

    def run_signals(self, metadata: Mapping[str, Any]) -> SignalResult:
        run_id = str(uuid.uuid4())
        logger.info(f"[{run_id}] Running {len(self.detectors)} signal detectors")

        metadata = metadata if isinstance(metadata, Mapping) else {}
        bundle = self.collect(metadata)
        integrity = has_metadata_integrity(metadata)

        readings = list(bundle.values())
        result = SignalResult(
            ai_signals=bundle,
            aggregated_score=weighted_aggregate(bundle),
            confidence=confidence_band(
                [reading.score for reading in readings],
                [reading.reliability for reading in readings],
                integrity,
            ),
            analysis_version=SIGNAL_ANALYSIS_VERSION,
            analyzed_at=datetime.now(timezone.utc),
        )

        logger.info(
            f"[{run_id}] Signals aggregated: {len(bundle)} readings, "
            f"score={result.aggregated_score:.3f}, confidence={result.confidence.value}, "
            f"integrity={integrity}"
        )
        return result
