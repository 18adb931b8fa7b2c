import sys
import wave
from pathlib import Path

import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo
from pypdf import PdfWriter

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from aura_forensics.services.metadata import readers  # noqa: E402
from aura_forensics.services.metadata.readers import (  # noqa: E402
    MetadataReaderError,
    read_technical_metadata,
    read_xmp_windows,
    scan_xmp,
    select_reader,
)


def _jpeg_with_exif(path: Path) -> Path:
    image = Image.new("RGB", (8, 8), "white")
    exif = Image.Exif()
    exif[0x0131] = "Adobe Photoshop 25.0"
    exif[0x0132] = "2023:04:05 10:00:00"
    image.save(path, "JPEG", exif=exif)
    return path


def test_jpeg_exif_fields_use_exiftool_names(tmp_path):
    path = _jpeg_with_exif(tmp_path / "art.jpg")

    record = read_technical_metadata(path, "image/jpeg")

    assert record["FileType"] == "JPEG"
    assert record["MIMEType"] == "image/jpeg"
    assert record["Software"] == "Adobe Photoshop 25.0"
    assert record["ModifyDate"] == "2023:04:05 10:00:00"
    assert record["ImageWidth"] == 8
    assert record["ImageHeight"] == 8


def test_png_text_chunks_are_read(tmp_path):
    path = tmp_path / "art.png"
    info = PngInfo()
    info.add_text("Software", "Krita 5.2")
    Image.new("RGBA", (4, 4)).save(path, "PNG", pnginfo=info)

    record = read_technical_metadata(path, "image/png")

    assert record["FileType"] == "PNG"
    assert record["Software"] == "Krita 5.2"


def test_pdf_info_dictionary_is_mapped(tmp_path):
    path = tmp_path / "portfolio.pdf"
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    writer.add_metadata(
        {
            "/Creator": "Inkscape 1.3",
            "/Producer": "Cairo 1.18",
            "/CreationDate": "D:20220301120000Z",
        }
    )
    with open(path, "wb") as handle:
        writer.write(handle)

    record = read_technical_metadata(path, "application/pdf")

    assert record["FileType"] == "PDF"
    assert record["CreatorTool"] == "Inkscape 1.3"
    assert record["Producer"] == "Cairo 1.18"
    assert record["CreateDate"] == "D:20220301120000Z"
    assert record["PageCount"] == 1


def test_wav_stream_info_is_read(tmp_path):
    path = tmp_path / "tone.wav"
    with wave.open(str(path), "wb") as handle:
        handle.setnchannels(1)
        handle.setsampwidth(2)
        handle.setframerate(8000)
        handle.writeframes(b"\x00\x00" * 800)

    record = read_technical_metadata(path, "audio/wav")

    assert record["FileType"] == "WAV"
    assert record["SampleRate"] == 8000
    assert record["AudioChannels"] == 1


def test_corrupt_container_raises_reader_error(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"\xff\xd8\xff" + b"\x00" * 32)

    with pytest.raises(MetadataReaderError):
        read_technical_metadata(path, "image/jpeg")


def test_unknown_types_fall_back_to_generic_reader(tmp_path):
    path = tmp_path / "bundle.zip"
    path.write_bytes(
        b"PK\x03\x04"
        + b'<x:xmpmeta><rdf:RDF><rdf:Description xmp:CreatorTool="Procreate 5"/>'
        + b"<xmp:CreateDate>2021-06-01T10:00:00</xmp:CreateDate></rdf:RDF></x:xmpmeta>"
    )

    assert select_reader("application/zip").__name__ == "read_generic_metadata"
    record = read_technical_metadata(path, "application/zip")

    assert record["FileType"] == "ZIP"
    assert record["CreatorTool"] == "Procreate 5"
    assert record["CreateDate"] == "2021-06-01T10:00:00"


def test_xmp_scan_ignores_payload_without_packet():
    assert scan_xmp(b'xmp:CreatorTool="Nope"') == {}


def test_heic_without_pillow_plugin_is_read_generically(tmp_path):
    path = tmp_path / "capture.heic"
    path.write_bytes(
        b"\x00\x00\x00\x18ftypheic\x00\x00\x00\x00mif1heic"
        + b"\x00" * 64
        + b'<x:xmpmeta><rdf:Description xmp:CreatorTool="Apple iPhone 15"/></x:xmpmeta>'
    )

    record = read_technical_metadata(path, "image/heic")

    assert record["FileType"] == "HEIC"
    assert record["MIMEType"] == "image/heic"
    assert record["CreatorTool"] == "Apple iPhone 15"


def test_xmp_scan_reads_only_head_and_tail(tmp_path, monkeypatch):
    packet = b'<x:xmpmeta><rdf:Description xmp:CreatorTool="%s"/></x:xmpmeta>'
    path = tmp_path / "archive.zip"
    path.write_bytes(
        b"PK\x03\x04"
        + b"\x00" * 4096
        + packet % b"Middle Tool"
        + b"\x00" * 4096
        + b'<x:xmpmeta><xmp:ModifyDate>2022-02-02T08:00:00</xmp:ModifyDate></x:xmpmeta>'
    )
    monkeypatch.setattr(readers, "XMP_SCAN_BYTES", 512)

    record = read_technical_metadata(path, "application/zip")

    assert record["ModifyDate"] == "2022-02-02T08:00:00"
    assert "CreatorTool" not in record


def test_small_files_are_scanned_in_one_window(tmp_path):
    path = tmp_path / "tiny.bin"
    path.write_bytes(b"0123456789")

    assert read_xmp_windows(path, 64) == [b"0123456789"]
    assert read_xmp_windows(path, 4) == [b"0123", b"6789"]
