"""
PDF Processing Service

This service turns PDF files into :class:`Document` objects for comparison:
- Validation of size, page count and file type
- Per-page plain-text extraction with PyMuPDF
- Removal of PDF object artefacts and page-number noise
- Detection of documents that are most likely scanned images

Blank pages are kept as empty strings so page numbers stay aligned with the
source file.
"""

import re
import shutil
from pathlib import Path
from typing import List, Optional, Union

import fitz  # PyMuPDF

from redline.core.config import get_settings
from redline.core.logging import get_logger
from redline.models.comparison import Document

logger = get_logger(__name__)

PDF_ARTIFACT_MARKERS = (
    " 0 R",
    "<<",
    ">>",
    "/Type",
    "/Filter",
    "/Length",
    "/Subtype",
    "/Producer",
    "/Creator",
)
NUMBERS_ONLY = re.compile(r"^[\d\s.]+$")


class PDFProcessingError(Exception):
    """Raised when PDF processing fails."""

    pass


class PDFProcessor:
    """
    Service for extracting page text from PDF documents.

    Attributes:
        settings: Application settings
        temp_dir: Temporary directory for uploaded files
    """

    def __init__(self):
        """Initialize the PDF processor with configuration."""
        self.settings = get_settings()
        self.temp_dir = Path(self.settings.temp_dir)
        self.temp_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            "pdf_processor_initialized",
            temp_dir=str(self.temp_dir),
            max_pages=self.settings.pdf_max_pages
        )

    def validate_pdf(self, file_path: Path) -> None:
        """
        Validate that a file is a valid PDF.

        Args:
            file_path: Path to the PDF file

        Raises:
            PDFProcessingError: If file is invalid or not a PDF
        """
        if not file_path.exists():
            raise PDFProcessingError(f"File not found: {file_path}")

        self._validate_size(file_path.stat().st_size)

        try:
            doc = fitz.open(file_path)
        except Exception as e:
            raise PDFProcessingError(f"Invalid PDF file: {e}")

        try:
            self._validate_document(doc)
        finally:
            doc.close()

        logger.info("pdf_validated", file_path=str(file_path))

    def extract_document(self, file_path: Union[str, Path], name: Optional[str] = None) -> Document:
        """
        Extract a document from a PDF on disk.

        Args:
            file_path: Path to the PDF file
            name: Document name; defaults to the file name

        Returns:
            Document with one cleaned text string per page

        Raises:
            PDFProcessingError: If validation or extraction fails
        """
        file_path = Path(file_path)
        self.validate_pdf(file_path)

        try:
            doc = fitz.open(file_path)
        except Exception as e:
            raise PDFProcessingError(f"Invalid PDF file: {e}")

        return self._extract(doc, name or file_path.name)

    def extract_document_from_bytes(self, data: bytes, name: str) -> Document:
        """
        Extract a document from PDF bytes, such as an upload.

        Args:
            data: Raw PDF bytes
            name: Document name

        Returns:
            Document with one cleaned text string per page

        Raises:
            PDFProcessingError: If validation or extraction fails
        """
        self._validate_size(len(data))

        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise PDFProcessingError(f"Invalid PDF file: {e}")

        try:
            self._validate_document(doc)
        except PDFProcessingError:
            doc.close()
            raise

        return self._extract(doc, name)

    def clean_page_text(self, text: str) -> str:
        """
        Drop artefact lines from extracted page text.

        Removes PDF object syntax that leaks into some extractions, lines
        shorter than two characters and lines made only of digits and dots
        (page numbers, leaders).
        """
        kept: List[str] = []

        for raw_line in text.splitlines():
            line = raw_line.strip()
            if len(line) < 2:
                continue
            if any(marker in line for marker in PDF_ARTIFACT_MARKERS):
                continue
            if NUMBERS_ONLY.match(line):
                continue
            kept.append(line)

        return "\n".join(kept)

    def cleanup_temp_files(self, file_paths: List[Path]) -> None:
        """
        Clean up temporary files.

        Args:
            file_paths: List of file paths to delete
        """
        if not self.settings.cleanup_temp_files:
            logger.debug("cleanup_disabled", message="Temp file cleanup is disabled")
            return

        for file_path in file_paths:
            file_path = Path(file_path)
            try:
                if file_path.is_file():
                    file_path.unlink()
                    logger.debug("temp_file_deleted", path=str(file_path))
                elif file_path.is_dir():
                    shutil.rmtree(file_path)
                    logger.debug("temp_dir_deleted", path=str(file_path))
            except OSError as e:
                logger.warning(
                    "temp_file_cleanup_failed",
                    path=str(file_path),
                    error=str(e)
                )

    def _validate_size(self, size: int) -> None:
        if size < self.settings.min_file_size_bytes:
            raise PDFProcessingError(f"File too small: {size} bytes")

        if size > self.settings.max_file_size_bytes:
            raise PDFProcessingError(
                f"File too large: {size} bytes "
                f"(max: {self.settings.max_file_size_bytes})"
            )

    def _validate_document(self, doc: "fitz.Document") -> None:
        if not doc.is_pdf:
            raise PDFProcessingError("File is not a PDF")
        if doc.needs_pass:
            raise PDFProcessingError("PDF is password protected")
        if doc.page_count == 0:
            raise PDFProcessingError("PDF has no pages")
        if doc.page_count > self.settings.pdf_max_pages:
            raise PDFProcessingError(
                f"PDF has too many pages: {doc.page_count} "
                f"(max: {self.settings.pdf_max_pages})"
            )

    def _extract(self, doc: "fitz.Document", name: str) -> Document:
        logger.info("pdf_extraction_started", document_name=name, pages=doc.page_count)

        try:
            pages = [self.clean_page_text(page.get_text("text")) for page in doc]
        except Exception as e:
            logger.error(
                "pdf_extraction_failed",
                document_name=name,
                error=str(e),
                exc_info=True
            )
            raise PDFProcessingError(f"Failed to extract text from {name}: {e}")
        finally:
            doc.close()

        document = Document.from_pages(name, pages)
        char_count = len(document.full_text)

        if char_count < self.settings.min_extracted_chars:
            logger.warning(
                "pdf_likely_scanned",
                document_name=name,
                extracted_chars=char_count,
                message="Very little text extracted; the PDF may be a scanned image"
            )

        logger.info(
            "pdf_extraction_completed",
            document_name=name,
            pages=len(pages),
            blank_pages=sum(1 for page in pages if not page),
            extracted_chars=char_count
        )

        return document
