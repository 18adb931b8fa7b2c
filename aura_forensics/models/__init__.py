"""
AURA Forensic Models
Declarations, stage results and case-store records
"""

from .enums import (
    AIPresenceExpectation,
    ConfidenceBand,
    ConsistencyLevel,
    Dimension,
    EvidenceRequirement,
    TechnicalFlag,
)
from .declaration import (
    AIToolDeclaration,
    ArtistDeclaration,
    Declaration,
    GenesisDeclaration,
    ProcessDeclaration,
)
from .metadata import ExtractionResult, MetadataAnalysisResult, TechnicalMetadataRecord
from .signals import DetectorReading, SignalBundle, SignalResult
from .consistency import (
    ConsistencyEvaluation,
    ConsistencyResult,
    EvidenceItem,
    EvidenceManifest,
    SignalEvidence,
    TechnicalEvidence,
)
from .case import (
    AuditCase,
    AuditLogEntry,
    EvidenceMetadataRecord,
    FrozenIntake,
    SignalRecord,
)

__all__ = [
    # Vocabularies
    "TechnicalFlag",
    "ConfidenceBand",
    "ConsistencyLevel",
    "Dimension",
    "AIPresenceExpectation",
    "EvidenceRequirement",
    # Declaration
    "Declaration",
    "GenesisDeclaration",
    "ProcessDeclaration",
    "ArtistDeclaration",
    "AIToolDeclaration",
    # Stage results
    "TechnicalMetadataRecord",
    "MetadataAnalysisResult",
    "ExtractionResult",
    "DetectorReading",
    "SignalBundle",
    "SignalResult",
    "EvidenceItem",
    "EvidenceManifest",
    "SignalEvidence",
    "TechnicalEvidence",
    "ConsistencyResult",
    "ConsistencyEvaluation",
    # Case store
    "FrozenIntake",
    "AuditCase",
    "AuditLogEntry",
    "EvidenceMetadataRecord",
    "SignalRecord",
]
