"""
Tests for PDF validation and text extraction.
"""

import fitz
import pytest

from redline.core.config import Settings
from redline.services.pdf_processor import PDFProcessingError, PDFProcessor


def make_pdf(*pages):
    """Build a PDF with one page per text; empty strings give blank pages."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def processor():
    return PDFProcessor()


def test_extract_document_from_bytes(processor):
    """Each page becomes one cleaned text string."""
    data = make_pdf("1. Introduction\nHello world", "2. Scope\nAll services")

    document = processor.extract_document_from_bytes(data, "contract.pdf")

    assert document.name == "contract.pdf"
    assert len(document.pages) == 2
    assert document.pages[0].splitlines() == ["1. Introduction", "Hello world"]
    assert "All services" in document.pages[1]
    assert "Hello world" in document.full_text


def test_blank_pages_are_kept(processor):
    """Blank pages stay in place as empty strings."""
    data = make_pdf("First page text", "", "Third page text")

    document = processor.extract_document_from_bytes(data, "gaps.pdf")

    assert len(document.pages) == 3
    assert document.pages[1] == ""
    assert "Third page text" in document.pages[2]


def test_extract_document_from_path(processor, tmp_path):
    """Documents on disk are named after the file by default."""
    path = tmp_path / "policy.pdf"
    path.write_bytes(make_pdf("Policy text goes here"))

    document = processor.extract_document(path)

    assert document.name == "policy.pdf"
    assert "Policy text goes here" in document.pages[0]


def test_invalid_bytes_rejected(processor):
    """Data that is not a PDF raises a processing error."""
    with pytest.raises(PDFProcessingError):
        processor.extract_document_from_bytes(b"this is not a pdf file " * 20, "fake.pdf")


def test_too_small_rejected(processor):
    """Tiny uploads are rejected before parsing."""
    with pytest.raises(PDFProcessingError, match="too small"):
        processor.extract_document_from_bytes(b"%PDF-1.7", "tiny.pdf")


def test_too_large_rejected(processor):
    """Uploads above the size limit are rejected."""
    processor.settings = Settings(max_file_size_mb=0)

    with pytest.raises(PDFProcessingError, match="too large"):
        processor.extract_document_from_bytes(make_pdf("some text"), "big.pdf")


def test_page_limit_enforced(processor):
    """Documents over the page limit are rejected."""
    processor.settings = Settings(pdf_max_pages=1)

    with pytest.raises(PDFProcessingError, match="too many pages"):
        processor.extract_document_from_bytes(make_pdf("one", "two"), "long.pdf")


def test_validate_missing_file(processor, tmp_path):
    """Validation fails for files that do not exist."""
    with pytest.raises(PDFProcessingError, match="File not found"):
        processor.validate_pdf(tmp_path / "missing.pdf")


def test_clean_page_text_drops_artifacts(processor):
    """Object syntax, page numbers and one-character lines are removed."""
    raw = "12\nReal line\nx\n<< /Type /Page >>\n1.2.3\n  Another line  "

    assert processor.clean_page_text(raw) == "Real line\nAnother line"


def test_cleanup_temp_files(processor, tmp_path):
    """Temporary files and directories are deleted, missing ones ignored."""
    file_path = tmp_path / "upload.pdf"
    file_path.write_bytes(b"data")
    dir_path = tmp_path / "job"
    dir_path.mkdir()
    (dir_path / "inner.pdf").write_bytes(b"data")

    processor.cleanup_temp_files([file_path, dir_path, tmp_path / "gone.pdf"])

    assert not file_path.exists()
    assert not dir_path.exists()
