import pytest

from clipvault.ingest.sniff import SNIFF_LEN, detect_content_type
from tests.conftest import JPEG_HEADER, MP4_HEADER, PNG_HEADER


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (MP4_HEADER + b"\x00" * 64, "video/mp4"),
        (PNG_HEADER + b"\x00" * 32, "image/png"),
        (JPEG_HEADER, "image/jpeg"),
        (b"GIF89a\x01\x00", "image/gif"),
        (b"RIFF\x24\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"\x1a\x45\xdf\xa3\x9f\x42\x86\x81", "video/webm"),
        (b"plain text upload", "application/octet-stream"),
        (b"", "application/octet-stream"),
    ],
)
def test_detect_content_type(header, expected):
    assert detect_content_type(header) == expected


def test_quicktime_brand_is_not_mp4():
    header = b"\x00\x00\x00\x14ftypqt  \x00\x00\x00\x00qt  "
    assert detect_content_type(header) == "application/octet-stream"


def test_mp4_brand_found_among_compatible_brands():
    header = b"\x00\x00\x00\x1cftypisom\x00\x00\x02\x00isomiso2mp41"
    assert detect_content_type(header) == "video/mp4"


def test_truncated_ftyp_box_is_rejected():
    # Declares a 32-byte box but only 16 bytes were received.
    header = b"\x00\x00\x00\x20ftypmp42\x00\x00\x00\x00"
    assert detect_content_type(header) == "application/octet-stream"


def test_only_leading_window_is_considered():
    header = b"\x00" * SNIFF_LEN + PNG_HEADER
    assert detect_content_type(header) == "application/octet-stream"
