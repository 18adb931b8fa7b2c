"""
Intake Service - Forensic intake freezing

Validates only the protocol header of an intake document, content-addresses it
by its canonical SHA-256 and opens a draft audit case. The document body is
frozen as received; nothing is recomputed or corrected here.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from aura_forensics.config.settings import settings
from aura_forensics.models.case import AuditCase, AuditLogEntry, FrozenIntake

from .case_store import CaseStore, get_case_store
from .errors import ProtocolValidationError, StoreError
from .hashing import content_hash

logger = logging.getLogger(__name__)

INTAKE_ACTOR_ID = "intake-service"
CASE_ID_ALPHABET = string.ascii_uppercase + string.digits
CASE_ID_SUFFIX_LENGTH = 6
CASE_ID_ATTEMPTS = 3

_PROTOCOL_FIELDS = ("phase", "version", "generated_at")


@dataclass
class IntakeReceipt:
    success: bool
    case_id: str


def generate_case_id(now: Optional[datetime] = None) -> str:
    """AURA-YYYY-MM-XXXXXX with six random uppercase alphanumerics."""
    now = now or datetime.now(timezone.utc)
    suffix = "".join(secrets.choice(CASE_ID_ALPHABET) for _ in range(CASE_ID_SUFFIX_LENGTH))
    return f"AURA-{now.year}-{now.month:02d}-{suffix}"


def validate_protocol_header(intake: Any, supported_version: Optional[str] = None) -> None:
    """
    Raises:
        ProtocolValidationError: if the aura_protocol header is missing,
            incomplete or declares an unsupported version
    """
    supported_version = supported_version or settings.SUPPORTED_PROTOCOL_VERSION
    header = intake.get("aura_protocol") if isinstance(intake, dict) else None
    if not isinstance(header, dict) or not all(header.get(field) for field in _PROTOCOL_FIELDS):
        raise ProtocolValidationError("missing AURA protocol metadata")
    if header["version"] != supported_version:
        raise ProtocolValidationError(f"unsupported protocol version: {header['version']}")


class IntakeService:
    """Freeze intake documents into the case store."""

    def __init__(self, store: Optional[CaseStore] = None) -> None:
        self.store = store or get_case_store()

    def freeze(self, intake_data: Dict[str, Any], client_hash: str) -> IntakeReceipt:
        """
        Freeze an intake document and open its audit case.

        Raises:
            ProtocolValidationError: protocol header invalid
            DuplicateDeclarationError: an identical document was already frozen
            StoreError: the store rejected a write
        """
        validate_protocol_header(intake_data)

        server_hash = content_hash(intake_data)
        hash_match = client_hash == server_hash
        if not hash_match:
            logger.warning(f"Client hash differs from server hash {server_hash[:12]}")

        frozen = self.store.freeze_intake(
            FrozenIntake(
                intake_json=intake_data,
                client_hash=client_hash,
                server_hash=server_hash,
                hash_match=hash_match,
            )
        )

        case = self._open_case(frozen)

        self.store.append_audit_log(
            AuditLogEntry(
                case_id=case.case_id,
                action="intake_frozen",
                details={"intake_frozen_id": frozen.id, "hash_match": hash_match},
                actor_id=INTAKE_ACTOR_ID,
            )
        )

        logger.info(f"Intake frozen as case {case.case_id} (hash_match={hash_match})")
        return IntakeReceipt(success=True, case_id=case.case_id)

    def _open_case(self, frozen: FrozenIntake) -> AuditCase:
        last_error: Optional[StoreError] = None
        for _ in range(CASE_ID_ATTEMPTS):
            case = AuditCase(
                case_id=generate_case_id(),
                intake_frozen_id=frozen.id,
                intake_hash=frozen.server_hash,
            )
            try:
                return self.store.create_case(case)
            except StoreError as exc:
                logger.warning(f"Case id collision on {case.case_id}, retrying")
                last_error = exc
        raise StoreError("could not allocate a unique case id") from last_error
