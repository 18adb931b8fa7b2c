import sys
from datetime import datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from aura_forensics.models.declaration import Declaration  # noqa: E402
from aura_forensics.models.enums import TechnicalFlag  # noqa: E402
from aura_forensics.services.metadata.checks import (  # noqa: E402
    check_format,
    check_software_signatures,
    check_timeline,
    parse_year,
    run_checks,
)


def _declaration(**sections):
    return Declaration.from_intake(sections)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2021:06:01 10:00:00", 2021),
        ("2021:06:01", 2021),
        ("2021-06-01T10:00:00Z", 2021),
        ("2021-06-01T10:00:00+02:00", 2021),
        ("D:20190301120000Z", 2019),
        ("2018", 2018),
        (datetime(2020, 1, 1), 2020),
        ("not a date", None),
        ("0000:00:00 00:00:00", None),
        (None, None),
    ],
)
def test_parse_year(value, expected):
    assert parse_year(value) == expected


def test_timeline_mismatch_is_flagged():
    declaration = _declaration(artist_declaration={"execution_year": 2020})
    metadata = {"create_date": "2023:01:01 00:00:00"}

    assert check_timeline(metadata, declaration) is TechnicalFlag.TIMELINE_INCONSISTENCY


def test_timeline_uses_first_present_date_field():
    declaration = _declaration(artist_declaration={"execution_year": 2020})
    metadata = {"date_time_original": "2020:05:05 00:00:00", "modify_date": "2024:01:01 00:00:00"}

    assert check_timeline(metadata, declaration) is None


def test_unparseable_date_raises_no_flag():
    declaration = _declaration(artist_declaration={"execution_year": 2020})
    assert check_timeline({"create_date": "sometime in spring"}, declaration) is None


def test_software_without_any_declared_tool_is_unknown():
    assert (
        check_software_signatures({"software": "GIMP 2.10"}, _declaration())
        is TechnicalFlag.SOFTWARE_SIGNATURE_UNKNOWN
    )


def test_software_matching_is_case_insensitive_in_both_directions():
    declaration = _declaration(process_declaration={"software_used": ["Adobe Photoshop 2024"]})
    assert check_software_signatures({"software": "photoshop"}, declaration) is None

    declaration = _declaration(genesis_declaration={"ai_tools_declared": [{"engine": "Midjourney"}]})
    assert check_software_signatures({"software": "midjourney-v6-export"}, declaration) is None


def test_any_undeclared_signature_is_flagged():
    declaration = _declaration(process_declaration={"software_used": ["Procreate"]})
    metadata = {"software": "Procreate 5", "creator_tool": "Adobe Firefly"}

    assert check_software_signatures(metadata, declaration) is TechnicalFlag.UNDECLARED_SOFTWARE


def test_format_mismatch_needs_both_sides():
    declaration = _declaration(artist_declaration={"file_format": "PNG"})

    assert check_format({"file_type": "JPEG"}, declaration) is TechnicalFlag.FORMAT_VERSION_MISMATCH
    assert check_format({"file_type": "png"}, declaration) is None
    assert check_format({}, declaration) is None


def test_missing_file_format_never_yields_format_mismatch():
    metadata = {"file_type": "TIFF", "software": "Photoshop"}
    for declaration in (
        _declaration(),
        _declaration(artist_declaration={"execution_year": 2022}),
        _declaration(artist_declaration={"file_format": "   "}),
        _declaration(artist_declaration={"file_format": 42}),
    ):
        assert TechnicalFlag.FORMAT_VERSION_MISMATCH not in run_checks(metadata, declaration)


def test_run_checks_collects_independent_flags():
    declaration = _declaration(
        artist_declaration={"execution_year": 2019, "file_format": "PNG"},
        process_declaration={"software_used": ["Krita"]},
    )
    metadata = {"software": "Photoshop", "create_date": "2024:02:02 00:00:00", "file_type": "JPEG"}

    flags = run_checks(metadata, declaration)

    assert set(flags) == {
        TechnicalFlag.TIMELINE_INCONSISTENCY,
        TechnicalFlag.UNDECLARED_SOFTWARE,
        TechnicalFlag.FORMAT_VERSION_MISMATCH,
    }
