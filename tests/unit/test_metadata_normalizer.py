import math
import sys
from datetime import datetime
from fractions import Fraction
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from aura_forensics.services.metadata.normalizer import (  # noqa: E402
    json_safe,
    normalize_key,
    normalize_metadata,
    populated_field_count,
    software_signatures,
)


def test_well_known_keys_use_stable_names():
    assert normalize_key("Software") == "software"
    assert normalize_key("CreatorTool") == "creator_tool"
    assert normalize_key("DateTimeOriginal") == "date_time_original"
    assert normalize_key("MIMEType") == "mime_type"
    assert normalize_key("XResolution") == "x_resolution"


def test_unknown_keys_are_lowercased_and_collapsed():
    assert normalize_key("Lens Model") == "lens_model"
    assert normalize_key("--Weird::Key--") == "weird_key"
    assert normalize_key("ISO") == "iso"


def test_export_chain_requires_two_software_fields():
    single = normalize_metadata({"Software": "Photoshop"})
    chained = normalize_metadata({"Software": "Photoshop", "CreatorTool": "Lightroom"})

    assert single["export_chain_detected"] is False
    assert chained["export_chain_detected"] is True


def test_values_become_json_safe():
    record = normalize_metadata(
        {
            "XResolution": Fraction(300, 1),
            "UserComment": b"hello\x00",
            "CreateDate": datetime(2024, 5, 1, 12, 0, 0),
            "Offsets": (1, 2),
        }
    )

    assert record["x_resolution"] == 300.0
    assert record["usercomment"] == "hello"
    assert record["create_date"] == "2024-05-01T12:00:00"
    assert record["offsets"] == [1, 2]
    assert json_safe(math.nan) is None


def test_software_signatures_in_field_order_and_skip_blanks():
    record = {"creator_tool": "Lightroom", "software": "Photoshop", "application": "  "}
    assert software_signatures(record) == ["Photoshop", "Lightroom"]


def test_populated_field_count_ignores_empty_values():
    assert populated_field_count({"a": 1, "b": None, "c": "", "d": False}) == 2
