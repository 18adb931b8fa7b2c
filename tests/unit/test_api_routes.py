import sys
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from aura_forensics.api.routes import analysis as analysis_module  # noqa: E402
from aura_forensics.api.routes import intake as intake_module  # noqa: E402
from aura_forensics.models.metadata import ExtractionResult, MetadataAnalysisResult  # noqa: E402
from aura_forensics.services.case_store import InMemoryCaseStore  # noqa: E402
from aura_forensics.services.hashing import content_hash  # noqa: E402
from aura_forensics.services.intake import IntakeService  # noqa: E402
from aura_forensics.services.pipeline import ForensicPipeline  # noqa: E402

INTAKE = {
    "aura_protocol": {"phase": "intake", "version": "1.0.0", "generated_at": "2025-03-14T10:00:00Z"},
    "genesis_declaration": {"declared_git_level": 0},
    "process_declaration": {"software_used": ["Krita"], "evidence_promised": ["sketch", "layered_psd"]},
}


class StubExtractor:
    async def extract(self, file_url):
        if "missing" in file_url:
            return ExtractionResult(extraction_version="3.1.0", extraction_error="file could not be fetched")
        return ExtractionResult(
            metadata={
                "file_type": "PNG",
                "mime_type": "image/png",
                "software": "Krita 5.2",
                "image_width": 800,
                "image_height": 600,
                "color_mode": "RGB",
                "export_chain_detected": False,
            },
            extraction_version="3.1.0",
            extracted_at=datetime.now(timezone.utc),
        )

    async def analyze(self, case_id, declaration, file_url=None):
        return MetadataAnalysisResult(
            case_id=case_id,
            metadata_flags=[] if file_url else ["METADATA_MISSING"],
            analysis_version="3.1.0",
            generated_at=datetime.now(timezone.utc),
        )


class ExplodingPipeline:
    def evaluate_consistency(self, case_id, evidence_manifest=None):
        raise RuntimeError("store offline at 10.0.0.7")


@pytest.fixture
def store():
    return InMemoryCaseStore()


@pytest.fixture
def client(monkeypatch, store):
    app = FastAPI()
    app.include_router(intake_module.router)
    app.include_router(analysis_module.router)

    pipeline = ForensicPipeline(store=store, extractor=StubExtractor())
    intake_service = IntakeService(store=store)

    monkeypatch.setattr(analysis_module, "get_pipeline", lambda: pipeline)
    monkeypatch.setattr(intake_module, "get_intake_service", lambda: intake_service)

    return TestClient(app)


def _freeze(client, document=INTAKE):
    return client.post("/intake-freeze", json={"intake_data": document, "client_hash": content_hash(document)})


def test_intake_freeze_creates_case(client):
    response = _freeze(client)

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["case_id"].startswith("AURA-")


def test_intake_freeze_requires_both_fields(client):
    response = client.post("/intake-freeze", json={"intake_data": INTAKE})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["error"] == "INCOMPLETE_DATA"
    assert detail["required"] == ["intake_data", "client_hash"]


def test_intake_freeze_rejects_bad_protocol(client):
    document = dict(INTAKE, aura_protocol={"phase": "intake", "version": "2.0.0", "generated_at": "x"})

    response = _freeze(client, document)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INVALID_PROTOCOL"


def test_intake_freeze_rejects_duplicates(client):
    assert _freeze(client).status_code == 201

    response = _freeze(client)

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "DUPLICATE_DECLARATION"


def test_metadata_analysis_returns_exact_shape(client):
    case_id = _freeze(client).json()["case_id"]

    response = client.post("/analysis/metadata", json={"case_id": case_id})

    assert response.status_code == 200
    payload = response.json()
    assert set(payload) == {"case_id", "metadata_flags", "analysis_version", "generated_at"}
    assert payload["metadata_flags"] == ["METADATA_MISSING"]


def test_unknown_case_is_404(client):
    response = client.post("/analysis/metadata", json={"case_id": "AURA-2025-01-NOPE00"})

    assert response.status_code == 404
    assert response.json()["detail"] == {"error": "CASE_NOT_FOUND", "message": "Case not found"}


def test_missing_case_id_is_400(client):
    for path in ("/analysis/metadata", "/analysis/ai-signals", "/analysis/consistency", "/analysis/pipeline"):
        response = client.post(path, json={})
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "INCOMPLETE_DATA"


def test_extract_then_signals(client):
    case_id = _freeze(client).json()["case_id"]

    early = client.post("/analysis/ai-signals", json={"case_id": case_id})
    assert early.status_code == 400
    assert early.json()["detail"]["error"] == "METADATA_NOT_AVAILABLE"

    extracted = client.post(
        "/analysis/metadata-extract",
        json={
            "case_id": case_id,
            "evidences": [
                {"evidence_id": "EV-1", "file_url": "https://files.test/final.png"},
                {"evidence_id": "EV-2", "file_url": "https://files.test/missing.png"},
            ],
        },
    )
    assert extracted.status_code == 200
    assert extracted.json() == {"case_id": case_id, "evidences_processed": 1, "metadata_extracted": True}

    response = client.post("/analysis/ai-signals", json={"case_id": case_id})
    assert response.status_code == 400

    client.post(
        "/analysis/metadata-extract",
        json={"case_id": case_id, "evidences": [{"evidence_id": "EV-3", "file_url": "https://files.test/final.png"}]},
    )
    response = client.post("/analysis/ai-signals", json={"case_id": case_id})
    assert response.status_code == 200
    payload = response.json()
    assert list(payload["ai_signals"]) == ["clip", "noise", "spectral", "fingerprint", "dataset"]
    assert payload["confidence"] in {"LOW", "MEDIUM", "HIGH"}


def test_consistency_endpoint_returns_published_result(client):
    case_id = _freeze(client).json()["case_id"]

    response = client.post(
        "/analysis/consistency",
        json={"case_id": case_id, "evidence_list": {"files": [{"type": "sketch"}]}},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["consistency_result"] == "WEAK"
    assert payload["affected_dimensions"] == ["PROCESS", "EVIDENCE_COMPLETENESS"]
    assert "dimension_results" not in payload


def test_internal_errors_are_generic(client, monkeypatch):
    monkeypatch.setattr(analysis_module, "get_pipeline", lambda: ExplodingPipeline())

    response = client.post("/analysis/consistency", json={"case_id": "AURA-2025-01-ABC123"})

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["error"] == "TECHNICAL_ANALYSIS_FAILED"
    assert "10.0.0.7" not in detail["message"]


def test_pipeline_endpoint(client):
    case_id = _freeze(client).json()["case_id"]

    response = client.post(
        "/analysis/pipeline",
        json={"case_id": case_id, "file_urls": ["https://files.test/final.png"]},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["pipeline_version"] == "3.1.0_full"
    assert set(payload["steps"]) == {
        "metadata_analysis",
        "metadata_extraction",
        "ai_signal_detection",
        "consistency_evaluation",
    }


def test_health_lists_principles_and_endpoints():
    from aura_forensics.app_factory import create_app

    response = TestClient(create_app()).get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert "Does not determine AI usage" in payload["principles"]
    assert payload["endpoints"]["pipeline"] == "POST /analysis/pipeline"
