import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from aura_forensics.models.enums import ConfidenceBand  # noqa: E402
from aura_forensics.models.signals import DetectorReading  # noqa: E402
from aura_forensics.services.signals.aggregation import (  # noqa: E402
    confidence_band,
    has_metadata_integrity,
    weighted_aggregate,
)


def test_weighted_aggregate_weights_by_reliability():
    bundle = {
        "a": DetectorReading(score=0.8, reliability=0.9),
        "b": DetectorReading(score=0.2, reliability=0.3),
    }

    expected = (0.8 * 0.9 + 0.2 * 0.3) / (0.9 + 0.3)
    assert weighted_aggregate(bundle) == pytest.approx(expected)


def test_weighted_aggregate_is_zero_without_reliability():
    bundle = {
        "a": DetectorReading(score=0.9, reliability=0.0),
        "b": DetectorReading(score=0.7, reliability=0.0),
    }
    assert weighted_aggregate(bundle) == 0.0
    assert weighted_aggregate({}) == 0.0


def test_no_scores_is_low():
    assert confidence_band([], [], integrity=True) is ConfidenceBand.LOW


def test_high_requires_agreement_reliability_and_integrity():
    scores = [0.70, 0.72, 0.74, 0.71]
    reliable = [0.8, 0.8, 0.9, 0.5]

    assert confidence_band(scores, reliable, integrity=True) is ConfidenceBand.HIGH
    assert confidence_band(scores, reliable, integrity=False) is ConfidenceBand.LOW
    assert confidence_band(scores, [0.8, 0.8, 0.5, 0.5], integrity=True) is ConfidenceBand.MEDIUM


def test_high_variance_caps_at_medium():
    scores = [0.1, 0.9, 0.1, 0.9]
    assert confidence_band(scores, [0.9] * 4, integrity=True) is ConfidenceBand.MEDIUM


def test_reliability_threshold_is_strict():
    scores = [0.5, 0.5, 0.5, 0.5]
    assert confidence_band(scores, [0.7] * 4, integrity=True) is ConfidenceBand.MEDIUM


def test_fewer_than_three_scores_is_low():
    assert confidence_band([0.5, 0.5], [0.9, 0.9], integrity=True) is ConfidenceBand.LOW


_BAND_ORDER = {ConfidenceBand.LOW: 0, ConfidenceBand.MEDIUM: 1, ConfidenceBand.HIGH: 2}


@pytest.mark.parametrize("integrity", [True, False])
@pytest.mark.parametrize("base", [0.2, 0.5, 0.75])
def test_adding_agreeing_reliable_scores_never_lowers_band(integrity, base):
    two = confidence_band([base, base + 0.01], [0.7, 0.8], integrity)
    four = confidence_band([base, base + 0.01, base + 0.02, base], [0.7, 0.8, 0.9, 0.8], integrity)

    assert _BAND_ORDER[four] >= _BAND_ORDER[two]


def test_metadata_integrity_needs_more_than_five_populated_fields():
    five = {f"field_{index}": index + 1 for index in range(5)}
    six = dict(five, extra="value")

    assert not has_metadata_integrity(five)
    assert has_metadata_integrity(six)
    assert not has_metadata_integrity(dict(five, blank="", missing=None))
