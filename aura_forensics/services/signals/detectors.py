"""
Signal detectors

Every detector maps a technical metadata record to one DetectorReading. The
default panel is placeholder-only: scores are derived deterministically from
the record so replays of the same case reproduce the same bundle. Real models
plug in behind the same ``Detector`` protocol.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

from aura_forensics.models.signals import DetectorReading
from aura_forensics.services.hashing import canonical_json
from aura_forensics.services.matching import as_identifier

from .panel import FINGERPRINT_KEY, PANEL_ORDER, DetectorSpec, load_panel_specs

logger = logging.getLogger(__name__)


KNOWN_GENERATORS = ["Stable Diffusion", "DALL-E", "Midjourney", "Adobe Firefly"]
NO_MODEL_LABEL = "No detectable"


class Detector(Protocol):
    key: str

    def __call__(self, metadata: Mapping[str, Any]) -> DetectorReading:
        ...


def _unit_fraction(key: str, metadata: Mapping[str, Any]) -> float:
    digest = hashlib.sha256(f"{key}:{canonical_json(dict(metadata))}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") / float(1 << 64)


class PlaceholderDetector:
    """Stand-in detector scoring within a configured range."""

    def __init__(self, spec: DetectorSpec) -> None:
        self.spec = spec
        self.key = spec.key

    def __call__(self, metadata: Mapping[str, Any]) -> DetectorReading:
        span = self.spec.score_max - self.spec.score_min
        score = self.spec.score_min + _unit_fraction(self.key, metadata) * span
        return DetectorReading(score=round(score, 4), reliability=self.spec.reliability)


class ModelFingerprintDetector:
    """Looks for a known generator name in the ``software`` field."""

    key = FINGERPRINT_KEY

    def __init__(self, known_generators: Optional[List[str]] = None) -> None:
        self.known_generators = list(known_generators or KNOWN_GENERATORS)

    def match(self, metadata: Mapping[str, Any]) -> Optional[str]:
        software = as_identifier(metadata.get("software")).lower()
        if not software:
            return None
        for generator in self.known_generators:
            if generator.lower() in software:
                return generator
        return None

    def __call__(self, metadata: Mapping[str, Any]) -> DetectorReading:
        generator = self.match(metadata)
        if generator:
            return DetectorReading(score=0.8, reliability=0.9, model=generator)
        return DetectorReading(score=0.2, reliability=0.3, model=NO_MODEL_LABEL)


def build_default_panel(specs: Optional[Dict[str, DetectorSpec]] = None) -> List[Detector]:
    """Instantiate the default panel in bundle order."""
    specs = specs if specs is not None else load_panel_specs()
    panel: List[Detector] = []
    for key in PANEL_ORDER:
        if key == FINGERPRINT_KEY:
            panel.append(ModelFingerprintDetector())
        elif key in specs:
            panel.append(PlaceholderDetector(specs[key]))
        else:
            logger.warning(f"No spec configured for detector '{key}', skipping")
    return panel
