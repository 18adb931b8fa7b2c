import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
import redis

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from aura_forensics.models.case import (  # noqa: E402
    AuditCase,
    AuditLogEntry,
    EvidenceMetadataRecord,
    FrozenIntake,
    SignalRecord,
)
from aura_forensics.models.enums import ConfidenceBand  # noqa: E402
from aura_forensics.models.signals import SignalResult  # noqa: E402
from aura_forensics.services import case_store as case_store_module  # noqa: E402
from aura_forensics.services.case_store import InMemoryCaseStore, RedisCaseStore  # noqa: E402
from aura_forensics.services.errors import DuplicateDeclarationError, StoreError  # noqa: E402

CASE_ID = "AURA-2025-03-K2J9QX"


class FakeRedis:
    """Minimal in-process stand-in for the redis commands the store uses."""

    def __init__(self, fail: bool = False):
        self.values = {}
        self.lists = {}
        self.fail = fail

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("connection refused")

    def set(self, key, value, nx=False):
        self._check()
        if nx and key in self.values:
            return None
        self.values[key] = value.encode("utf-8")
        return True

    def get(self, key):
        self._check()
        return self.values.get(key)

    def rpush(self, key, value):
        self._check()
        self.lists.setdefault(key, []).append(value.encode("utf-8"))
        return len(self.lists[key])

    def lindex(self, key, index):
        self._check()
        items = self.lists.get(key, [])
        try:
            return items[index]
        except IndexError:
            return None


def _intake(server_hash="a" * 64):
    return FrozenIntake(
        intake_json={"aura_protocol": {"version": "1.0.0"}},
        client_hash=server_hash,
        server_hash=server_hash,
        hash_match=True,
    )


def _signal_record(score):
    return SignalRecord(
        case_id=CASE_ID,
        result=SignalResult(
            aggregated_score=score,
            confidence=ConfidenceBand.LOW,
            analysis_version="3.2.0",
            analyzed_at=datetime.now(timezone.utc),
        ),
    )


@pytest.fixture(params=["memory", "redis"])
def store(request):
    if request.param == "memory":
        return InMemoryCaseStore()
    return RedisCaseStore(FakeRedis(), namespace="test:aura")


def test_intake_is_frozen_once_per_hash(store):
    frozen = store.freeze_intake(_intake())

    assert store.get_intake(frozen.id) == frozen
    with pytest.raises(DuplicateDeclarationError):
        store.freeze_intake(_intake())


def test_case_ids_are_unique(store):
    case = AuditCase(case_id=CASE_ID, intake_frozen_id="intake-1", intake_hash="a" * 64)
    store.create_case(case)

    assert store.get_case(CASE_ID).status == "draft"
    with pytest.raises(StoreError):
        store.create_case(case)


def test_unknown_records_read_as_none(store):
    assert store.get_case("AURA-2025-01-NOPE00") is None
    assert store.get_intake("missing") is None
    assert store.latest_audit_log(CASE_ID, "intake_frozen") is None
    assert store.latest_evidence_metadata(CASE_ID) is None
    assert store.latest_signal_result(CASE_ID) is None


def test_latest_is_most_recently_appended(store):
    for evidence_id in ("EVIDENCE_1", "EVIDENCE_2"):
        store.append_evidence_metadata(
            EvidenceMetadataRecord(
                case_id=CASE_ID,
                evidence_id=evidence_id,
                metadata={"file_type": "PNG"},
                extraction_version="3.1.0",
            )
        )
    store.append_signal_result(_signal_record(0.1))
    store.append_signal_result(_signal_record(0.9))

    assert store.latest_evidence_metadata(CASE_ID).evidence_id == "EVIDENCE_2"
    assert store.latest_signal_result(CASE_ID).result.aggregated_score == 0.9


def test_audit_logs_are_kept_per_action(store):
    store.append_audit_log(
        AuditLogEntry(case_id=CASE_ID, action="metadata_analysis_executed", details={"flags": []}, actor_id="a")
    )
    store.append_audit_log(
        AuditLogEntry(case_id=CASE_ID, action="metadata_extracted", details={"evidences_processed": 1}, actor_id="b")
    )

    latest = store.latest_audit_log(CASE_ID, "metadata_analysis_executed")
    assert latest.details == {"flags": []}
    assert latest.actor_type == "system"


def test_redis_keys_are_namespaced():
    client = FakeRedis()
    store = RedisCaseStore(client, namespace="test:aura")

    frozen = store.freeze_intake(_intake("b" * 64))

    assert client.values[f"test:aura:intake_hash:{'b' * 64}"] == frozen.id.encode("utf-8")
    assert f"test:aura:intake:{frozen.id}" in client.values


def test_redis_errors_surface_as_store_errors():
    store = RedisCaseStore(FakeRedis(fail=True), namespace="test:aura")

    with pytest.raises(StoreError):
        store.freeze_intake(_intake())
    with pytest.raises(StoreError):
        store.latest_signal_result(CASE_ID)


def test_unreachable_redis_falls_back_to_memory(monkeypatch):
    def refuse():
        raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(case_store_module.settings, "STORE_BACKEND", "redis")
    monkeypatch.setattr(case_store_module, "get_redis_client", refuse)
    monkeypatch.setattr(case_store_module, "_default_store", None)

    store = case_store_module.get_case_store()

    assert isinstance(store, InMemoryCaseStore)
    assert case_store_module.get_case_store() is store
