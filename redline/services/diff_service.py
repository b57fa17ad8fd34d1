"""
Diff Comparison Service

This service compares two documents line by line and produces a flat,
page-ordered list of diff segments:
- Pages are compared pairwise by index
- Each segment keeps the page number it came from on each side
- Replaced lines that still resemble each other are reported as modified
- Pages present on one side only become pure insertions or deletions
"""

import difflib
from typing import List, Optional

from redline.core.config import get_settings
from redline.core.logging import get_logger
from redline.models.comparison import ChangeType, DiffSegment, DiffStatistics, Document, Severity

logger = get_logger(__name__)


class DiffComparisonError(Exception):
    """Raised when diff comparison fails."""

    pass


class DiffService:
    """
    Service for computing page-aware line diffs between two documents.

    This service uses Python's difflib for the line alignment and pairs
    replaced lines by position to detect in-place modifications.

    Attributes:
        settings: Application settings
        line_match_threshold: Minimum line similarity for a modified pairing
    """

    def __init__(self, line_match_threshold: Optional[float] = None):
        """Initialize the diff service with configuration."""
        self.settings = get_settings()
        self.line_match_threshold = (
            line_match_threshold
            if line_match_threshold is not None
            else self.settings.line_match_threshold
        )

        logger.info(
            "diff_service_initialized",
            line_match_threshold=self.line_match_threshold
        )

    def compute_page_aware_diff(self, document_a: Document, document_b: Document) -> List[DiffSegment]:
        """
        Compare two documents page by page.

        Args:
            document_a: Original document
            document_b: Revised document

        Returns:
            Diff segments ordered by page, then by diff order within the page

        Raises:
            DiffComparisonError: If comparison fails
        """
        logger.info(
            "page_diff_started",
            document_a=document_a.name,
            document_b=document_b.name,
            pages_a=len(document_a.pages),
            pages_b=len(document_b.pages)
        )

        try:
            segments: List[DiffSegment] = []
            max_pages = max(len(document_a.pages), len(document_b.pages))

            for page_index in range(max_pages):
                page_number = page_index + 1
                lines_a = self._split_lines(document_a.pages[page_index]) if page_index < len(document_a.pages) else []
                lines_b = self._split_lines(document_b.pages[page_index]) if page_index < len(document_b.pages) else []

                if not lines_a and not lines_b:
                    continue

                if lines_a and lines_b:
                    segments.extend(self._diff_lines(lines_a, lines_b, page_number, page_number))
                elif lines_a:
                    segments.extend(
                        DiffSegment(change_type=ChangeType.DELETED, text=line, page_number_a=page_number)
                        for line in lines_a
                    )
                else:
                    segments.extend(
                        DiffSegment(change_type=ChangeType.INSERTED, text=line, page_number_b=page_number)
                        for line in lines_b
                    )

        except Exception as e:
            logger.error(
                "page_diff_failed",
                document_a=document_a.name,
                document_b=document_b.name,
                error=str(e),
                exc_info=True
            )
            raise DiffComparisonError(f"Failed to compare documents: {e}")

        logger.info(
            "page_diff_completed",
            document_a=document_a.name,
            document_b=document_b.name,
            segments=len(segments)
        )

        return segments

    def compute_inline_diff(self, text_a: str, text_b: str) -> List[DiffSegment]:
        """
        Line diff of two plain texts without page attribution.

        Args:
            text_a: Original text
            text_b: Revised text

        Returns:
            Diff segments in diff order
        """
        return self._diff_lines(self._split_lines(text_a), self._split_lines(text_b), None, None)

    def _split_lines(self, text: Optional[str]) -> List[str]:
        """Stripped, non-blank lines of a text."""
        if not text:
            return []
        return [line.strip() for line in text.splitlines() if line.strip()]

    def _diff_lines(
        self,
        lines_a: List[str],
        lines_b: List[str],
        page_a: Optional[int],
        page_b: Optional[int]
    ) -> List[DiffSegment]:
        """
        Diff two line lists with SequenceMatcher.

        Args:
            lines_a: Lines of the original side
            lines_b: Lines of the revised side
            page_a: Page number stamped on segments that exist in A
            page_b: Page number stamped on segments that exist in B

        Returns:
            Diff segments in diff order
        """
        segments: List[DiffSegment] = []
        matcher = difflib.SequenceMatcher(None, lines_a, lines_b, autojunk=False)

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                for line in lines_a[i1:i2]:
                    segments.append(DiffSegment(
                        change_type=ChangeType.UNCHANGED,
                        text=line,
                        page_number_a=page_a,
                        page_number_b=page_b
                    ))
            elif tag == "delete":
                for line in lines_a[i1:i2]:
                    segments.append(DiffSegment(change_type=ChangeType.DELETED, text=line, page_number_a=page_a))
            elif tag == "insert":
                for line in lines_b[j1:j2]:
                    segments.append(DiffSegment(change_type=ChangeType.INSERTED, text=line, page_number_b=page_b))
            elif tag == "replace":
                segments.extend(self._pair_replaced(lines_a[i1:i2], lines_b[j1:j2], page_a, page_b))

        return segments

    def _pair_replaced(
        self,
        old_lines: List[str],
        new_lines: List[str],
        page_a: Optional[int],
        page_b: Optional[int]
    ) -> List[DiffSegment]:
        """
        Pair the lines of a replaced block by position.

        Pairs that are still similar become one modified segment; the rest are
        reported as a deletion followed by an insertion.
        """
        segments: List[DiffSegment] = []
        paired = min(len(old_lines), len(new_lines))

        for old_line, new_line in zip(old_lines, new_lines):
            ratio = difflib.SequenceMatcher(None, old_line, new_line).ratio()
            if ratio >= self.line_match_threshold:
                segments.append(DiffSegment(
                    change_type=ChangeType.MODIFIED,
                    text=new_line,
                    previous_text=old_line,
                    page_number_a=page_a,
                    page_number_b=page_b
                ))
            else:
                segments.append(DiffSegment(change_type=ChangeType.DELETED, text=old_line, page_number_a=page_a))
                segments.append(DiffSegment(change_type=ChangeType.INSERTED, text=new_line, page_number_b=page_b))

        for old_line in old_lines[paired:]:
            segments.append(DiffSegment(change_type=ChangeType.DELETED, text=old_line, page_number_a=page_a))
        for new_line in new_lines[paired:]:
            segments.append(DiffSegment(change_type=ChangeType.INSERTED, text=new_line, page_number_b=page_b))

        return segments

    def generate_diff_summary(self, segments: List[DiffSegment]) -> DiffStatistics:
        """
        Generate a summary of diff segments.

        Args:
            segments: List of diff segments

        Returns:
            Counts by change type and severity
        """
        summary = DiffStatistics(
            inserted=sum(1 for s in segments if s.change_type == ChangeType.INSERTED),
            deleted=sum(1 for s in segments if s.change_type == ChangeType.DELETED),
            modified=sum(1 for s in segments if s.change_type == ChangeType.MODIFIED),
            unchanged=sum(1 for s in segments if s.change_type == ChangeType.UNCHANGED),
            major=sum(1 for s in segments if s.severity == Severity.MAJOR),
            moderate=sum(1 for s in segments if s.severity == Severity.MODERATE),
            minor=sum(1 for s in segments if s.severity == Severity.MINOR)
        )

        logger.info("diff_summary_generated", **summary.model_dump())

        return summary
