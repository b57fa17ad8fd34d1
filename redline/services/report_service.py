"""
Report Rendering Service

Renders a :class:`ComparisonResult` as a paginated PDF report with PyMuPDF:
summary figures first, then the changed sections with their narratives, then
the most severe line-level changes.
"""

import textwrap
from typing import List, Optional, Tuple

import fitz  # PyMuPDF

from redline.core.config import get_settings
from redline.core.logging import get_logger
from redline.models.comparison import (
    ChangeType,
    ComparisonResult,
    DiffSegment,
    SectionChangeType,
    SectionComparison,
    Severity,
)
from redline.services.severity import SeverityClassifier

logger = get_logger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")
MARGIN = 56
LINE_HEIGHT = 15
WRAP_WIDTH = 95

CHANGE_COLORS = {
    SectionChangeType.ADDED: (0.0, 0.5, 0.0),
    SectionChangeType.DELETED: (0.75, 0.0, 0.0),
    SectionChangeType.MODIFIED: (0.8, 0.5, 0.0),
    SectionChangeType.UNCHANGED: (0.4, 0.4, 0.4),
}
SEVERITY_ORDER = {Severity.MAJOR: 0, Severity.MODERATE: 1, Severity.MINOR: 2}


class ReportGenerationError(Exception):
    """Raised when report rendering fails."""

    pass


class _PageWriter:
    """Writes lines top to bottom, starting a new page when one fills up."""

    def __init__(self, doc: "fitz.Document"):
        self.doc = doc
        self.page = None
        self.y = 0.0
        self.new_page()

    def new_page(self) -> None:
        self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        self.y = MARGIN

    def line(
        self,
        text: str,
        fontsize: float = 10,
        bold: bool = False,
        indent: float = 0,
        color: Tuple[float, float, float] = (0, 0, 0)
    ) -> None:
        if self.y + LINE_HEIGHT > PAGE_HEIGHT - MARGIN:
            self.new_page()
        self.page.insert_text(
            (MARGIN + indent, self.y),
            text,
            fontsize=fontsize,
            fontname="hebo" if bold else "helv",
            color=color
        )
        self.y += LINE_HEIGHT if fontsize <= 11 else LINE_HEIGHT + fontsize / 2

    def paragraph(self, text: str, indent: float = 0, **kwargs) -> None:
        width = WRAP_WIDTH - int(indent / 5)
        for line in textwrap.wrap(text, width=width) or [""]:
            self.line(line, indent=indent, **kwargs)

    def gap(self, lines: float = 1) -> None:
        self.y += LINE_HEIGHT * lines


class ReportService:
    """
    Service for exporting comparison results as PDF.

    Attributes:
        settings: Application settings
        classifier: Severity classifier used for the overall risk level
        max_segments: Maximum diff segments listed in the report
    """

    def __init__(
        self,
        classifier: Optional[SeverityClassifier] = None,
        max_segments: Optional[int] = None
    ):
        """Initialize the report service with configuration."""
        self.settings = get_settings()
        self.classifier = classifier or SeverityClassifier()
        self.max_segments = max_segments if max_segments is not None else self.settings.report_max_segments

        logger.info("report_service_initialized", max_segments=self.max_segments)

    def generate_pdf_report(self, result: ComparisonResult) -> bytes:
        """
        Render a comparison result as a PDF document.

        Args:
            result: Comparison result to render

        Returns:
            PDF file contents

        Raises:
            ReportGenerationError: If rendering fails
        """
        logger.info(
            "report_generation_started",
            document_a=result.document_a_name,
            document_b=result.document_b_name
        )

        doc = fitz.open()
        try:
            writer = _PageWriter(doc)
            self._write_summary(writer, result)
            self._write_sections(writer, result.section_comparisons)
            self._write_segments(writer, result.diff_segments)

            doc.set_metadata({
                "title": f"Comparison of {result.document_a_name} and {result.document_b_name}",
                "creator": self.settings.api_title,
            })
            data = doc.tobytes(garbage=3, deflate=True)
            page_count = doc.page_count
        except Exception as e:
            logger.error("report_generation_failed", error=str(e), exc_info=True)
            raise ReportGenerationError(f"Failed to generate report: {e}")
        finally:
            doc.close()

        logger.info("report_generation_completed", pages=page_count, size_bytes=len(data))

        return data

    def _write_summary(self, writer: _PageWriter, result: ComparisonResult) -> None:
        risk_level, risk_description = self.classifier.overall_risk(result)
        stats = result.change_statistics
        diff_stats = result.diff_statistics

        writer.line("Document Comparison Report", fontsize=18, bold=True)
        writer.gap(0.5)
        writer.line(f"Document A: {result.document_a_name}")
        writer.line(f"Document B: {result.document_b_name}")
        writer.line(f"Generated: {result.timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        writer.gap()

        writer.line("Summary", fontsize=14, bold=True)
        writer.line(f"Overall similarity: {result.overall_similarity:.1%}")
        writer.line(f"Risk level: {risk_level}", bold=True)
        writer.paragraph(risk_description, indent=12)
        if result.overall_summary:
            writer.paragraph(result.overall_summary)
        writer.gap()

        writer.line("Section changes", fontsize=14, bold=True)
        writer.line(f"Added: {stats.added_sections}", indent=12)
        writer.line(f"Deleted: {stats.deleted_sections}", indent=12)
        writer.line(f"Modified: {stats.modified_sections}", indent=12)
        writer.line(f"Unchanged: {stats.unchanged_sections}", indent=12)
        writer.line(f"Changed: {stats.change_percentage:.0f}% of {stats.total_sections} sections", indent=12)
        writer.gap()

        writer.line("Line changes", fontsize=14, bold=True)
        writer.line(
            f"Inserted: {diff_stats.inserted}   Deleted: {diff_stats.deleted}   "
            f"Modified: {diff_stats.modified}   Unchanged: {diff_stats.unchanged}",
            indent=12
        )
        writer.line(
            f"Major: {diff_stats.major}   Moderate: {diff_stats.moderate}   Minor: {diff_stats.minor}",
            indent=12
        )
        writer.gap()

    def _write_sections(self, writer: _PageWriter, comparisons: List[SectionComparison]) -> None:
        changed = [c for c in comparisons if c.change_type != SectionChangeType.UNCHANGED]

        writer.line("Changed sections", fontsize=14, bold=True)
        if not changed:
            writer.line("No section-level changes.", indent=12)
            writer.gap()
            return

        for comparison in changed:
            section = comparison.section_a or comparison.section_b
            title = section.title if section is not None and section.title else "Untitled"
            pages = " / ".join(
                f"{label} p.{page}"
                for label, page in (("A", comparison.page_number_a), ("B", comparison.page_number_b))
                if page is not None
            )
            header = f"[{comparison.change_type.value}] {title}"
            writer.paragraph(header, bold=True, color=CHANGE_COLORS[comparison.change_type])

            details = f"Severity: {comparison.severity.value}   Pages: {pages}"
            if comparison.similarity_score is not None:
                details += f"   Similarity: {comparison.similarity_score:.0%}"
            writer.line(details, fontsize=9, indent=12)

            if comparison.narrative_summary:
                writer.paragraph(comparison.narrative_summary, indent=12, fontsize=9)
            writer.gap(0.5)

        writer.gap()

    def _write_segments(self, writer: _PageWriter, segments: List[DiffSegment]) -> None:
        notable = [
            s for s in segments
            if s.change_type != ChangeType.UNCHANGED and s.severity != Severity.MINOR
        ]
        notable.sort(key=lambda s: SEVERITY_ORDER[s.severity])
        shown = notable[:self.max_segments]

        writer.line("Key line changes", fontsize=14, bold=True)
        if not shown:
            writer.line("No moderate or major line changes.", indent=12)
            return

        for segment in shown:
            page = segment.page_number_b if segment.page_number_b is not None else segment.page_number_a
            location = f" (page {page})" if page is not None else ""
            writer.line(
                f"{segment.severity.value} {segment.change_type.value.lower()}{location}",
                fontsize=9,
                bold=True
            )
            if segment.previous_text:
                writer.paragraph(f"- {segment.previous_text}", indent=12, fontsize=9)
            writer.paragraph(
                f"{'+' if segment.change_type != ChangeType.DELETED else '-'} {segment.text}",
                indent=12,
                fontsize=9
            )

        if len(notable) > len(shown):
            writer.gap(0.5)
            writer.line(f"... and {len(notable) - len(shown)} more", fontsize=9, indent=12)
