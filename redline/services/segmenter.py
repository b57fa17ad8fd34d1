"""
Section Segmentation Service

Splits per-page text into titled sections using header heuristics:
- Numbered headings (1., 1.1, IV., A.) followed by a capitalised word
- All-uppercase lines
- Short title-case lines

Fragments shorter than the configured minimum are folded into the preceding
section on the same page.
"""

import re
import uuid
from typing import List, Optional

from redline.core.logging import get_logger
from redline.models.comparison import Document, Section, SectionType
from redline.models.rules import SegmentationRules
from redline.services.normalizer import TextNormalizer

logger = get_logger(__name__)

NUMBERED_HEADING = re.compile(
    r"^(?:\d+(?:\.\d+)+\.?|\d+\.|[IVXLC]+\.|[A-Za-z][.)])\s+[A-Z]"
)
NUMERIC_PREFIX = re.compile(r"^\s*\d+\.")


class SectionSegmenter:
    """
    Service that turns page text into :class:`Section` objects.

    Attributes:
        rules: Header detection thresholds and stop words
        normalizer: Normalizer applied to section titles
    """

    def __init__(
        self,
        rules: Optional[SegmentationRules] = None,
        normalizer: Optional[TextNormalizer] = None
    ):
        self.rules = rules or SegmentationRules()
        self.normalizer = normalizer or TextNormalizer()

    def segment_document(self, document: Document) -> List[Section]:
        """
        Segment every page of a document.

        Args:
            document: Document whose pages are segmented (pages numbered from 1)

        Returns:
            Sections in page order
        """
        sections: List[Section] = []
        for page_index, page_text in enumerate(document.pages):
            sections.extend(self.segment(page_text, page_index + 1, document.name))

        logger.debug(
            "document_segmented",
            document_name=document.name,
            pages=len(document.pages),
            sections=len(sections)
        )

        return sections

    def segment(self, page_text: str, page_number: int, document_name: str) -> List[Section]:
        """
        Split one page of text into sections.

        Args:
            page_text: Text of the page
            page_number: 1-based page number
            document_name: Name of the owning document

        Returns:
            Ordered sections; empty when the page has no text
        """
        sections: List[Section] = []
        title = ""
        section_type = SectionType.CONTENT
        content_lines: List[str] = []

        for raw_line in (page_text or "").splitlines():
            line = raw_line.strip()
            if not line:
                continue

            if self.is_likely_header(line):
                if content_lines:
                    sections.append(
                        self._build_section(title, section_type, content_lines, page_number, document_name)
                    )
                title = self.normalizer.normalize_title(line)
                section_type = self.determine_section_type(line)
                content_lines = [line]
            else:
                content_lines.append(line)

        if content_lines:
            sections.append(
                self._build_section(title, section_type, content_lines, page_number, document_name)
            )

        return self.merge_short_sections(sections)

    def is_likely_header(self, line: str) -> bool:
        """
        Decide whether a stripped line looks like a section header.

        Args:
            line: Non-empty, stripped line

        Returns:
            True for numbered headings, all-caps lines and short title-case lines
        """
        if len(line) > self.rules.max_header_length:
            return False

        if NUMBERED_HEADING.match(line):
            return True

        if (
            len(line) >= self.rules.min_all_caps_length
            and line.upper() == line
            and any(ch.isalpha() for ch in line)
        ):
            return True

        words = line.split()
        if len(words) <= self.rules.max_title_words and all(
            word[0].isupper() or word.lower() in self.rules.stop_words
            for word in words
        ):
            return True

        return False

    def determine_section_type(self, title: str) -> SectionType:
        """Infer the section category from its title."""
        lowered = title.lower()

        if "introduction" in lowered or "overview" in lowered:
            return SectionType.INTRODUCTION
        if "conclusion" in lowered or "summary" in lowered:
            return SectionType.CONCLUSION
        if "table" in lowered or "figure" in lowered:
            return SectionType.TABLE_FIGURE
        if NUMERIC_PREFIX.match(title):
            return SectionType.NUMBERED
        if title.upper() == title and any(ch.isalpha() for ch in title):
            return SectionType.MAJOR_HEADER

        return SectionType.CONTENT

    def merge_short_sections(self, sections: List[Section]) -> List[Section]:
        """
        Fold short sections into the preceding section on the same page.

        Args:
            sections: Sections in document order

        Returns:
            New list where every short section sharing a page with its
            predecessor has been merged into it
        """
        merged: List[Section] = []

        for section in sections:
            if len(section.content) < self.rules.min_section_chars and merged:
                previous = merged[-1]
                if previous.page_number == section.page_number:
                    merged[-1] = previous.model_copy(
                        update={"content": previous.content + "\n" + section.content}
                    )
                    continue
            merged.append(section)

        return merged

    def _build_section(
        self,
        title: str,
        section_type: SectionType,
        content_lines: List[str],
        page_number: int,
        document_name: str
    ) -> Section:
        return Section(
            id=str(uuid.uuid4()),
            title=title,
            page_number=page_number,
            section_type=section_type,
            content="".join(line + "\n" for line in content_lines),
            document_name=document_name
        )
