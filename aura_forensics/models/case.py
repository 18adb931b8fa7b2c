"""
Case Models - Records kept by the append-only case store
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import uuid

from pydantic import BaseModel, Field

from .signals import SignalResult


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FrozenIntake(BaseModel):
    """Write-once intake document, addressed by its canonical hash"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    intake_json: Dict[str, Any]
    client_hash: str
    server_hash: str = Field(..., description="SHA-256 of the canonical intake JSON")
    hash_match: bool
    received_at: datetime = Field(default_factory=utc_now)


class AuditCase(BaseModel):
    case_id: str
    intake_frozen_id: str
    intake_hash: str
    status: str = "draft"
    created_at: datetime = Field(default_factory=utc_now)


class AuditLogEntry(BaseModel):
    case_id: str
    action: str
    details: Dict[str, Any] = Field(default_factory=dict)
    actor_type: str = "system"
    actor_id: str
    created_at: datetime = Field(default_factory=utc_now)


class EvidenceMetadataRecord(BaseModel):
    case_id: str
    evidence_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    extraction_version: str
    extracted_at: datetime = Field(default_factory=utc_now)
    extraction_error: Optional[str] = None


class SignalRecord(BaseModel):
    case_id: str
    result: SignalResult
