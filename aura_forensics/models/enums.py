"""
Closed vocabularies shared by every analysis stage.

Flags, verdict levels, dimensions and confidence bands are fixed enumerations;
stages never emit free-form strings in their place.
"""

from enum import Enum


class TechnicalFlag(str, Enum):
    """Objectively checkable technical observation (a fact, never a weight)."""

    METADATA_MISSING = "METADATA_MISSING"
    UNDECLARED_SOFTWARE = "UNDECLARED_SOFTWARE"
    TIMELINE_INCONSISTENCY = "TIMELINE_INCONSISTENCY"
    FORMAT_VERSION_MISMATCH = "FORMAT_VERSION_MISMATCH"
    SOFTWARE_SIGNATURE_UNKNOWN = "SOFTWARE_SIGNATURE_UNKNOWN"
    # Reserved vocabulary: no current check emits it
    EXPORT_CHAIN_BREAK = "EXPORT_CHAIN_BREAK"


class ConfidenceBand(str, Enum):
    """Discrete band for an aggregated signal score"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class ConsistencyLevel(str, Enum):
    """Per-dimension and global consistency verdict"""

    CONSISTENT = "CONSISTENT"
    WEAK = "WEAK"
    CONTRADICTORY = "CONTRADICTORY"

    @property
    def severity(self) -> int:
        return _LEVEL_SEVERITY[self]

    @classmethod
    def worst(cls, *levels: "ConsistencyLevel") -> "ConsistencyLevel":
        """Fold levels by precedence: CONTRADICTORY > WEAK > CONSISTENT."""
        result = cls.CONSISTENT
        for level in levels:
            if level.severity > result.severity:
                result = level
        return result


_LEVEL_SEVERITY = {
    ConsistencyLevel.CONSISTENT: 0,
    ConsistencyLevel.WEAK: 1,
    ConsistencyLevel.CONTRADICTORY: 2,
}


class Dimension(str, Enum):
    """Independent axis of declaration/evidence comparison"""

    PROCESS = "PROCESS"
    CONTROL = "CONTROL"
    TOOLING = "TOOLING"
    EVIDENCE_COMPLETENESS = "EVIDENCE_COMPLETENESS"


class AIPresenceExpectation(str, Enum):
    EXPECTED_ABSENT = "EXPECTED_ABSENT"
    PARTIAL_ALLOWED = "PARTIAL_ALLOWED"
    EXPECTED_PRESENT = "EXPECTED_PRESENT"


class EvidenceRequirement(str, Enum):
    REQUIRED = "REQUIRED"
    EXPECTED = "EXPECTED"
    OPTIONAL = "OPTIONAL"
    NOT_EXPECTED = "NOT_EXPECTED"
