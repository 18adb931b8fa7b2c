"""Auxiliary signal detection and aggregation."""

from .aggregation import (  # noqa: F401
    confidence_band,
    has_metadata_integrity,
    weighted_aggregate,
)
from .aggregator import SIGNAL_ANALYSIS_VERSION, SignalAggregator  # noqa: F401
from .detectors import (  # noqa: F401
    KNOWN_GENERATORS,
    Detector,
    ModelFingerprintDetector,
    PlaceholderDetector,
    build_default_panel,
)
from .panel import DetectorSpec, PanelConfigError, load_panel_specs  # noqa: F401

__all__ = [
    "confidence_band",
    "has_metadata_integrity",
    "weighted_aggregate",
    "SIGNAL_ANALYSIS_VERSION",
    "SignalAggregator",
    "KNOWN_GENERATORS",
    "Detector",
    "ModelFingerprintDetector",
    "PlaceholderDetector",
    "build_default_panel",
    "DetectorSpec",
    "PanelConfigError",
    "load_panel_specs",
]
