"""
Declaration Models - Frozen artist declaration as read by the analysis stages

The declaration is owned by the intake workflow and is read-only here. Parsing
is lenient on purpose of degrading toward caution: malformed leaves become
None/empty instead of failing the whole document.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

HIGH_CONTROL_LABELS = frozenset({"high", "alto"})


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _clean_text_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [text for text in (_clean_text(item) for item in value) if text]


def _section(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class AIToolDeclaration(_FrozenModel):
    """Single declared AI tool (engine name and/or custom label)."""

    engine: Optional[str] = None
    custom_label: Optional[str] = None

    @field_validator("engine", "custom_label", mode="before")
    @classmethod
    def text_or_none(cls, v):
        return _clean_text(v)


class GenesisDeclaration(_FrozenModel):
    declared_git_level: Optional[int] = Field(
        default=None,
        description="Declared GIT level 0-5; None when missing or malformed",
    )
    ai_tools_declared: List[AIToolDeclaration] = Field(default_factory=list)

    @field_validator("declared_git_level", mode="before")
    @classmethod
    def git_level_in_range(cls, v):
        if isinstance(v, bool):
            return None
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        elif isinstance(v, str) and v.strip().isdigit():
            v = int(v.strip())
        if isinstance(v, int) and 0 <= v <= 5:
            return v
        return None

    @field_validator("ai_tools_declared", mode="before")
    @classmethod
    def tools_as_mappings(cls, v):
        if not isinstance(v, (list, tuple)):
            return []
        return [item for item in v if isinstance(item, dict)]


class ProcessDeclaration(_FrozenModel):
    software_used: List[str] = Field(default_factory=list)
    no_ai_in_final: bool = False
    evidence_promised: List[str] = Field(default_factory=list)

    @field_validator("software_used", "evidence_promised", mode="before")
    @classmethod
    def text_list(cls, v):
        return _clean_text_list(v)

    @field_validator("no_ai_in_final", mode="before")
    @classmethod
    def strict_flag(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in ("true", "yes", "1")
        return bool(v)


class ArtistDeclaration(_FrozenModel):
    execution_year: Optional[int] = None
    file_format: Optional[str] = None

    @field_validator("execution_year", mode="before")
    @classmethod
    def year_or_none(cls, v):
        if isinstance(v, bool):
            return None
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v if isinstance(v, int) else None

    @field_validator("file_format", mode="before")
    @classmethod
    def format_text(cls, v):
        return _clean_text(v)


class Declaration(_FrozenModel):
    """
    Frozen declaration consumed by the extractor checks and the consistency engine.

    Only declared values live here. Nothing computed by this service is ever
    written back into a declaration.
    """

    genesis_declaration: GenesisDeclaration = Field(default_factory=GenesisDeclaration)
    process_declaration: ProcessDeclaration = Field(default_factory=ProcessDeclaration)
    artist_declaration: ArtistDeclaration = Field(default_factory=ArtistDeclaration)
    declared_human_control: Optional[str] = None

    @field_validator(
        "genesis_declaration", "process_declaration", "artist_declaration", mode="before"
    )
    @classmethod
    def section_mapping(cls, v):
        if isinstance(v, BaseModel):
            return v
        return _section(v)

    @field_validator("declared_human_control", mode="before")
    @classmethod
    def control_text(cls, v):
        text = _clean_text(v)
        return text.lower() if text else None

    @classmethod
    def from_intake(cls, intake: Any) -> "Declaration":
        """Parse a frozen intake document; never raises."""
        try:
            return cls.model_validate(_section(intake))
        except ValidationError as exc:
            logger.warning(f"Declaration could not be parsed, using empty declaration: {exc}")
            return cls()

    @property
    def declared_git_level(self) -> Optional[int]:
        return self.genesis_declaration.declared_git_level

    @property
    def claims_high_control(self) -> bool:
        return self.declared_human_control in HIGH_CONTROL_LABELS

    def declared_tools(self) -> List[str]:
        """Every declared engine, custom label and software entry, in declaration order."""
        tools: List[str] = []
        for tool in self.genesis_declaration.ai_tools_declared:
            if tool.engine:
                tools.append(tool.engine)
            if tool.custom_label:
                tools.append(tool.custom_label)
        tools.extend(self.process_declaration.software_used)
        return tools
