import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from aura_forensics.services.metadata.sniffer import sniff_mime_type  # noqa: E402


@pytest.mark.parametrize(
    "head, expected",
    [
        (b"\xff\xd8\xff\xe0\x00\x10JFIF", "image/jpeg"),
        (b"\x89PNG\r\n\x1a\n\x00\x00", "image/png"),
        (b"GIF89a\x01\x00", "image/gif"),
        (b"II*\x00\x08\x00", "image/tiff"),
        (b"8BPS\x00\x01", "image/vnd.adobe.photoshop"),
        (b"%PDF-1.7\n", "application/pdf"),
        (b"ID3\x04\x00", "audio/mpeg"),
        (b"RIFF\x24\x00\x00\x00WAVEfmt ", "audio/wav"),
        (b"RIFF\x24\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"\x00\x00\x00\x18ftypmp42\x00\x00", "video/mp4"),
        (b"\x00\x00\x00\x14ftypqt  \x00\x00", "video/quicktime"),
        (b"fLaC\x00\x00", "audio/flac"),
        (b"OggS\x00\x02", "audio/ogg"),
        (b"PK\x03\x04\x14\x00", "application/zip"),
    ],
)
def test_known_signatures(head, expected):
    assert sniff_mime_type(head) == expected


def test_unknown_content_is_not_identified():
    assert sniff_mime_type(b"just some plain text") is None
    assert sniff_mime_type(b"") is None


def test_unknown_riff_form_is_not_identified():
    assert sniff_mime_type(b"RIFF\x00\x00\x00\x00XXXX") is None
