"""
Append-only case store

Frozen intakes are write-once and content-addressed by their canonical hash.
Every analysis stage appends; nothing is updated in place, and "latest" always
means the most recently appended record. Two backends share one interface:
Redis for deployments and an in-process store for single-node runs and tests.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Dict, List, Optional, Protocol, Tuple, Type, TypeVar

import redis
from pydantic import BaseModel

from aura_forensics.config.redis_config import get_redis_client
from aura_forensics.config.settings import settings
from aura_forensics.models.case import (
    AuditCase,
    AuditLogEntry,
    EvidenceMetadataRecord,
    FrozenIntake,
    SignalRecord,
)

from .errors import DuplicateDeclarationError, StoreError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class CaseStore(Protocol):
    def freeze_intake(self, intake: FrozenIntake) -> FrozenIntake:
        ...

    def get_intake(self, intake_id: str) -> Optional[FrozenIntake]:
        ...

    def create_case(self, case: AuditCase) -> AuditCase:
        ...

    def get_case(self, case_id: str) -> Optional[AuditCase]:
        ...

    def append_audit_log(self, entry: AuditLogEntry) -> None:
        ...

    def latest_audit_log(self, case_id: str, action: str) -> Optional[AuditLogEntry]:
        ...

    def append_evidence_metadata(self, record: EvidenceMetadataRecord) -> None:
        ...

    def latest_evidence_metadata(self, case_id: str) -> Optional[EvidenceMetadataRecord]:
        ...

    def append_signal_result(self, record: SignalRecord) -> None:
        ...

    def latest_signal_result(self, case_id: str) -> Optional[SignalRecord]:
        ...


class InMemoryCaseStore:
    """Lock-guarded in-process store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._intakes: Dict[str, FrozenIntake] = {}
        self._intake_by_hash: Dict[str, str] = {}
        self._cases: Dict[str, AuditCase] = {}
        self._audit_logs: Dict[Tuple[str, str], List[AuditLogEntry]] = defaultdict(list)
        self._evidence_metadata: Dict[str, List[EvidenceMetadataRecord]] = defaultdict(list)
        self._signals: Dict[str, List[SignalRecord]] = defaultdict(list)

    def freeze_intake(self, intake: FrozenIntake) -> FrozenIntake:
        with self._lock:
            if intake.server_hash in self._intake_by_hash:
                raise DuplicateDeclarationError(intake.server_hash)
            self._intake_by_hash[intake.server_hash] = intake.id
            self._intakes[intake.id] = intake
        return intake

    def get_intake(self, intake_id: str) -> Optional[FrozenIntake]:
        with self._lock:
            return self._intakes.get(intake_id)

    def create_case(self, case: AuditCase) -> AuditCase:
        with self._lock:
            if case.case_id in self._cases:
                raise StoreError(f"case id already in use: {case.case_id}")
            self._cases[case.case_id] = case
        return case

    def get_case(self, case_id: str) -> Optional[AuditCase]:
        with self._lock:
            return self._cases.get(case_id)

    def append_audit_log(self, entry: AuditLogEntry) -> None:
        with self._lock:
            self._audit_logs[(entry.case_id, entry.action)].append(entry)

    def latest_audit_log(self, case_id: str, action: str) -> Optional[AuditLogEntry]:
        with self._lock:
            entries = self._audit_logs.get((case_id, action))
            return entries[-1] if entries else None

    def append_evidence_metadata(self, record: EvidenceMetadataRecord) -> None:
        with self._lock:
            self._evidence_metadata[record.case_id].append(record)

    def latest_evidence_metadata(self, case_id: str) -> Optional[EvidenceMetadataRecord]:
        with self._lock:
            records = self._evidence_metadata.get(case_id)
            return records[-1] if records else None

    def append_signal_result(self, record: SignalRecord) -> None:
        with self._lock:
            self._signals[record.case_id].append(record)

    def latest_signal_result(self, case_id: str) -> Optional[SignalRecord]:
        with self._lock:
            records = self._signals.get(case_id)
            return records[-1] if records else None


class RedisCaseStore:
    """Redis-backed store: SET NX for write-once keys, lists for append-only logs."""

    def __init__(self, redis_client: "redis.Redis", namespace: Optional[str] = None) -> None:
        self.redis_client = redis_client
        self.namespace = namespace or settings.REDIS_NAMESPACE

    def _key(self, *parts: str) -> str:
        return ":".join((self.namespace,) + parts)

    def _set_once(self, key: str, value: str) -> bool:
        try:
            return bool(self.redis_client.set(key, value, nx=True))
        except redis.RedisError as exc:
            raise StoreError(f"write to {key} failed: {exc}") from exc

    def _get(self, key: str, model: Type[RecordT]) -> Optional[RecordT]:
        try:
            raw = self.redis_client.get(key)
        except redis.RedisError as exc:
            raise StoreError(f"read of {key} failed: {exc}") from exc
        return model.model_validate_json(raw) if raw else None

    def _append(self, key: str, record: BaseModel) -> None:
        try:
            self.redis_client.rpush(key, record.model_dump_json())
        except redis.RedisError as exc:
            raise StoreError(f"append to {key} failed: {exc}") from exc

    def _latest(self, key: str, model: Type[RecordT]) -> Optional[RecordT]:
        try:
            raw = self.redis_client.lindex(key, -1)
        except redis.RedisError as exc:
            raise StoreError(f"read of {key} failed: {exc}") from exc
        return model.model_validate_json(raw) if raw else None

    def freeze_intake(self, intake: FrozenIntake) -> FrozenIntake:
        if not self._set_once(self._key("intake_hash", intake.server_hash), intake.id):
            raise DuplicateDeclarationError(intake.server_hash)
        if not self._set_once(self._key("intake", intake.id), intake.model_dump_json()):
            raise StoreError(f"intake id already in use: {intake.id}")
        return intake

    def get_intake(self, intake_id: str) -> Optional[FrozenIntake]:
        return self._get(self._key("intake", intake_id), FrozenIntake)

    def create_case(self, case: AuditCase) -> AuditCase:
        if not self._set_once(self._key("case", case.case_id), case.model_dump_json()):
            raise StoreError(f"case id already in use: {case.case_id}")
        return case

    def get_case(self, case_id: str) -> Optional[AuditCase]:
        return self._get(self._key("case", case_id), AuditCase)

    def append_audit_log(self, entry: AuditLogEntry) -> None:
        self._append(self._key("audit", entry.case_id, entry.action), entry)

    def latest_audit_log(self, case_id: str, action: str) -> Optional[AuditLogEntry]:
        return self._latest(self._key("audit", case_id, action), AuditLogEntry)

    def append_evidence_metadata(self, record: EvidenceMetadataRecord) -> None:
        self._append(self._key("evidence_metadata", record.case_id), record)

    def latest_evidence_metadata(self, case_id: str) -> Optional[EvidenceMetadataRecord]:
        return self._latest(self._key("evidence_metadata", case_id), EvidenceMetadataRecord)

    def append_signal_result(self, record: SignalRecord) -> None:
        self._append(self._key("signals", record.case_id), record)

    def latest_signal_result(self, case_id: str) -> Optional[SignalRecord]:
        return self._latest(self._key("signals", case_id), SignalRecord)


_default_store: Optional[CaseStore] = None


def get_case_store() -> CaseStore:
    """Return the process-wide case store, chosen by STORE_BACKEND."""

    global _default_store
    if _default_store is None:
        if settings.STORE_BACKEND == "redis":
            try:
                _default_store = RedisCaseStore(get_redis_client())
                logger.info("Using Redis case store")
            except redis.RedisError as exc:
                logger.warning(f"Redis unavailable ({exc}), falling back to in-memory case store")
        if _default_store is None:
            _default_store = InMemoryCaseStore()
    return _default_store


__all__ = [
    "CaseStore",
    "InMemoryCaseStore",
    "RedisCaseStore",
    "get_case_store",
]
