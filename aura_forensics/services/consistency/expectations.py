"""Declared GIT level and control claims normalized into technical expectations."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from aura_forensics.models.declaration import Declaration
from aura_forensics.models.enums import AIPresenceExpectation, EvidenceRequirement


@dataclass(frozen=True)
class GitExpectation:
    """What evidence a given GIT level leads one to expect."""

    description: str
    ai_in_final: AIPresenceExpectation
    source_files: EvidenceRequirement
    process_evidence: EvidenceRequirement


GIT_EXPECTATIONS: Mapping[int, GitExpectation] = MappingProxyType(
    {
        0: GitExpectation(
            description="Ancestral origin: physical or analog process, digitization is documentary only",
            ai_in_final=AIPresenceExpectation.EXPECTED_ABSENT,
            source_files=EvidenceRequirement.REQUIRED,
            process_evidence=EvidenceRequirement.REQUIRED,
        ),
        1: GitExpectation(
            description="Manual origin: editable source file with unflattened layers",
            ai_in_final=AIPresenceExpectation.EXPECTED_ABSENT,
            source_files=EvidenceRequirement.REQUIRED,
            process_evidence=EvidenceRequirement.EXPECTED,
        ),
        2: GitExpectation(
            description="AI-augmented concept: AI in ideation, no algorithmic signal in the final file",
            ai_in_final=AIPresenceExpectation.EXPECTED_ABSENT,
            source_files=EvidenceRequirement.EXPECTED,
            process_evidence=EvidenceRequirement.EXPECTED,
        ),
        3: GitExpectation(
            description="Cyborg collaboration: partial algorithmic signals with substantial human editing",
            ai_in_final=AIPresenceExpectation.PARTIAL_ALLOWED,
            source_files=EvidenceRequirement.EXPECTED,
            process_evidence=EvidenceRequirement.EXPECTED,
        ),
        4: GitExpectation(
            description="Hybrid AI: strong algorithmic signals coherent with generative origin",
            ai_in_final=AIPresenceExpectation.EXPECTED_PRESENT,
            source_files=EvidenceRequirement.OPTIONAL,
            process_evidence=EvidenceRequirement.OPTIONAL,
        ),
        5: GitExpectation(
            description="Prompt-based curation: dominant, consistent algorithmic signals",
            ai_in_final=AIPresenceExpectation.EXPECTED_PRESENT,
            source_files=EvidenceRequirement.NOT_EXPECTED,
            process_evidence=EvidenceRequirement.NOT_EXPECTED,
        ),
    }
)


@dataclass(frozen=True)
class Expectations:
    git_level: Optional[int]
    git_expectation: Optional[GitExpectation]
    expects_no_ai_signals: bool
    expects_ai_signals: bool
    expects_source_files: bool
    expects_process_evidence: bool
    expects_high_control_evidence: bool

    @property
    def classifiable(self) -> bool:
        return self.git_expectation is not None


def normalize_declaration(declaration: Declaration) -> Expectations:
    """Derive expectations from declared values only; evidence never feeds in."""
    git_level = declaration.declared_git_level
    no_ai_claimed = declaration.process_declaration.no_ai_in_final
    classified = git_level is not None

    return Expectations(
        git_level=git_level,
        git_expectation=GIT_EXPECTATIONS.get(git_level) if classified else None,
        expects_no_ai_signals=(classified and git_level <= 2) or no_ai_claimed,
        expects_ai_signals=classified and git_level >= 3,
        expects_source_files=classified and git_level <= 1,
        expects_process_evidence=classified and git_level == 0,
        expects_high_control_evidence=declaration.claims_high_control,
    )
