"""Detector panel configuration for the signal aggregator."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from aura_forensics.config.settings import settings

_PANEL_FILE: Optional[Path] = Path(settings.SIGNAL_PANEL_FILE) if settings.SIGNAL_PANEL_FILE else None

# Panel order is the order detectors run and appear in the signal bundle
PANEL_ORDER: List[str] = ["clip", "noise", "spectral", "fingerprint", "dataset"]

FINGERPRINT_KEY = "fingerprint"


class PanelConfigError(ValueError):
    """Raised when a panel override file contains an invalid entry."""


@dataclass
class DetectorSpec:
    """Score range and fixed reliability of one placeholder detector."""

    key: str
    score_min: float
    score_max: float
    reliability: float

    def copy(self) -> "DetectorSpec":
        return DetectorSpec(
            key=self.key,
            score_min=self.score_min,
            score_max=self.score_max,
            reliability=self.reliability,
        )

    def validate(self) -> "DetectorSpec":
        for name in ("score_min", "score_max", "reliability"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise PanelConfigError(f"{self.key}.{name}={value} outside [0, 1]")
        if self.score_min > self.score_max:
            raise PanelConfigError(f"{self.key}: score_min above score_max")
        return self


def _default_specs() -> Dict[str, DetectorSpec]:
    return {
        "clip": DetectorSpec(key="clip", score_min=0.5, score_max=0.8, reliability=0.6),
        "noise": DetectorSpec(key="noise", score_min=0.4, score_max=0.8, reliability=0.7),
        "spectral": DetectorSpec(key="spectral", score_min=0.3, score_max=0.8, reliability=0.6),
        "dataset": DetectorSpec(key="dataset", score_min=0.2, score_max=0.7, reliability=0.5),
    }


def _load_panel_file() -> Dict[str, DetectorSpec]:
    if _PANEL_FILE is None or not _PANEL_FILE.exists():
        return {}

    with open(_PANEL_FILE, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    defaults = _default_specs()
    specs: Dict[str, DetectorSpec] = {}
    for item in data.get("detectors", []):
        key = item["key"]
        base = defaults.get(key)
        if base is None:
            raise PanelConfigError(f"unknown placeholder detector: {key}")
        spec = DetectorSpec(
            key=key,
            score_min=float(item.get("score_min", base.score_min)),
            score_max=float(item.get("score_max", base.score_max)),
            reliability=float(item.get("reliability", base.reliability)),
        )
        specs[key] = spec.validate()
    return specs


def load_panel_specs() -> Dict[str, DetectorSpec]:
    base = _default_specs()
    overrides = _load_panel_file()
    base.update({key: value for key, value in overrides.items()})
    return {key: spec.copy() for key, spec in base.items()}
