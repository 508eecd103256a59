from conftest import valid_pdf_bytes
import pytest

from gemini_extract.conversion import validate_pdf
from gemini_extract.conversion.validation import discard

pytestmark = pytest.mark.unit


def test_valid_pdf(tmp_path):
    path = tmp_path / "ok.pdf"
    path.write_bytes(valid_pdf_bytes(200))
    assert validate_pdf(path)


def test_missing_file_is_invalid(tmp_path):
    assert not validate_pdf(tmp_path / "absent.pdf")


def test_directory_is_invalid(tmp_path):
    assert not validate_pdf(tmp_path)


def test_fifty_byte_output_is_invalid(tmp_path):
    path = tmp_path / "tiny.pdf"
    path.write_bytes(valid_pdf_bytes(50))
    assert not validate_pdf(path)


def test_minimum_size_is_inclusive(tmp_path):
    path = tmp_path / "edge.pdf"
    path.write_bytes(valid_pdf_bytes(100))
    assert validate_pdf(path, min_size=100)
    assert not validate_pdf(path, min_size=101)


def test_wrong_signature_is_invalid(tmp_path):
    path = tmp_path / "fake.pdf"
    path.write_bytes(b"PK\x03\x04" + b"0" * 500)
    assert not validate_pdf(path)


def test_discard_tolerates_missing_files(tmp_path):
    path = tmp_path / "gone.pdf"
    path.write_bytes(b"x")
    discard(path)
    discard(path)
    assert not path.exists()
