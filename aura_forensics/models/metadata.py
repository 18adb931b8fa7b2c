"""
Metadata Models - Outputs of the metadata extractor

Two result shapes exist: the flagging result of ``analyze`` (exactly four
fields) and the pure extraction result of ``extract``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import TechnicalFlag

TechnicalMetadataRecord = Dict[str, Any]


class MetadataAnalysisResult(BaseModel):
    """Flags raised for one analysis run. No other fields are ever attached."""

    case_id: str = Field(..., description="Case identifier")
    metadata_flags: List[TechnicalFlag] = Field(
        default_factory=list,
        description="Deduplicated technical flags, in vocabulary order",
    )
    analysis_version: str = Field(..., description="Semantic version of the flag rules")
    generated_at: datetime = Field(..., description="When the analysis ran (UTC)")

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "case_id": "AURA-2025-03-K2J9QX",
                "metadata_flags": ["UNDECLARED_SOFTWARE"],
                "analysis_version": "3.1.0",
                "generated_at": "2025-03-14T10:21:07Z",
            }
        },
    )


class ExtractionResult(BaseModel):
    """
    Pure technical metadata extracted from one file.

    Exactly one of ``extracted_at`` and ``extraction_error`` is set. A failed
    extraction always carries an empty ``metadata`` record.
    """

    metadata: TechnicalMetadataRecord = Field(default_factory=dict)
    extraction_version: str
    extracted_at: Optional[datetime] = None
    extraction_error: Optional[str] = Field(
        default=None,
        description="Generic failure marker; internal details are only logged",
    )

    @property
    def succeeded(self) -> bool:
        return self.extraction_error is None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
