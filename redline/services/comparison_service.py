"""
Comparison Orchestration Service

Runs the full comparison pipeline for two extracted documents:

1. Normalize every page
2. Segment both documents into sections
3. Align sections across documents
4. Compute the page-aware line diff
5. Classify segment and section severities
6. Generate narratives (bounded concurrency, failures fall back to canned text)
7. Aggregate statistics and the overall similarity
"""

import asyncio
import time
from typing import List, NamedTuple, Optional

from redline.core.config import get_settings
from redline.core.logging import get_logger
from redline.models.comparison import (
    ComparisonResult,
    DiffSegment,
    DiffStatistics,
    Document,
    Section,
    SectionComparison,
)
from redline.models.rules import SegmentationRules
from redline.services.aggregator import calculate_change_statistics, calculate_overall_similarity
from redline.services.diff_service import DiffService
from redline.services.llm_service import NarrativeService
from redline.services.normalizer import TextNormalizer
from redline.services.section_aligner import SectionAligner
from redline.services.segmenter import SectionSegmenter
from redline.services.severity import SeverityClassifier

logger = get_logger(__name__)


class ComparisonError(Exception):
    """Raised when the comparison pipeline fails unexpectedly."""

    pass


class StructuralAnalysis(NamedTuple):
    """Output of the synchronous pipeline stages."""

    sections_a: List[Section]
    sections_b: List[Section]
    comparisons: List[SectionComparison]
    segments: List[DiffSegment]
    diff_statistics: DiffStatistics


class ComparisonService:
    """
    Service orchestrating a document comparison.

    Every collaborator can be injected; defaults are built from settings.
    """

    def __init__(
        self,
        normalizer: Optional[TextNormalizer] = None,
        segmenter: Optional[SectionSegmenter] = None,
        aligner: Optional[SectionAligner] = None,
        diff_service: Optional[DiffService] = None,
        classifier: Optional[SeverityClassifier] = None,
        narrative_service: Optional[NarrativeService] = None
    ):
        settings = get_settings()
        self.normalizer = normalizer or TextNormalizer()
        self.segmenter = segmenter or SectionSegmenter(
            rules=SegmentationRules(min_section_chars=settings.min_section_chars),
            normalizer=self.normalizer
        )
        self.aligner = aligner or SectionAligner()
        self.diff_service = diff_service or DiffService()
        self.classifier = classifier or SeverityClassifier()
        self.narrative_service = narrative_service or NarrativeService.from_settings()

        logger.info("comparison_service_initialized")

    def normalize_document(self, document: Document) -> Document:
        """Return a copy of the document with every page normalized."""
        return Document.from_pages(
            document.name,
            [self.normalizer.normalize(page) for page in document.pages]
        )

    def analyze_documents(self, document_a: Document, document_b: Document) -> StructuralAnalysis:
        """
        Run the synchronous stages: normalize, segment, align, diff and classify.

        Args:
            document_a: Original document
            document_b: Revised document

        Returns:
            Sections, severity-scored comparisons and segments, and diff counts
        """
        normalized_a = self.normalize_document(document_a)
        normalized_b = self.normalize_document(document_b)

        sections_a = self.segmenter.segment_document(normalized_a)
        sections_b = self.segmenter.segment_document(normalized_b)
        logger.info(
            "documents_segmented",
            sections_a=len(sections_a),
            sections_b=len(sections_b)
        )

        comparisons = self.aligner.align(sections_a, sections_b)

        segments = self.diff_service.compute_page_aware_diff(normalized_a, normalized_b)
        segments = self.classifier.classify_segments(segments)

        comparisons = [
            c.model_copy(update={"severity": self.classifier.classify_section(c)})
            for c in comparisons
        ]

        return StructuralAnalysis(
            sections_a=sections_a,
            sections_b=sections_b,
            comparisons=comparisons,
            segments=segments,
            diff_statistics=self.diff_service.generate_diff_summary(segments)
        )

    async def compare_documents(self, document_a: Document, document_b: Document) -> ComparisonResult:
        """
        Compare two documents.

        Args:
            document_a: Original document
            document_b: Revised document

        Returns:
            Complete comparison result; degenerate inputs (empty documents,
            no common sections) produce a valid result rather than an error

        Raises:
            ComparisonError: If a pipeline stage fails unexpectedly
        """
        start_time = time.time()

        logger.info(
            "comparison_started",
            document_a=document_a.name,
            document_b=document_b.name,
            pages_a=len(document_a.pages),
            pages_b=len(document_b.pages)
        )

        try:
            # CPU-bound stages run off the event loop
            analysis = await asyncio.to_thread(self.analyze_documents, document_a, document_b)
            sections_a, sections_b = analysis.sections_a, analysis.sections_b
            segments, diff_statistics = analysis.segments, analysis.diff_statistics
            comparisons = analysis.comparisons

            narratives = await self.narrative_service.describe_all(comparisons)
            comparisons = [
                c.model_copy(update={"narrative_summary": narrative})
                for c, narrative in zip(comparisons, narratives)
            ]

            change_statistics = calculate_change_statistics(comparisons)
            overall_similarity = calculate_overall_similarity(comparisons)
            overall_summary = await self.narrative_service.summarize_overall(change_statistics)

        except Exception as e:
            logger.error(
                "comparison_failed",
                document_a=document_a.name,
                document_b=document_b.name,
                error=str(e),
                exc_info=True
            )
            raise ComparisonError(f"Failed to compare documents: {e}") from e

        result = ComparisonResult(
            document_a_name=document_a.name,
            document_b_name=document_b.name,
            sections_a=sections_a,
            sections_b=sections_b,
            section_comparisons=comparisons,
            overall_similarity=overall_similarity,
            change_statistics=change_statistics,
            diff_segments=segments,
            diff_statistics=diff_statistics,
            overall_summary=overall_summary
        )

        logger.info(
            "comparison_completed",
            document_a=document_a.name,
            document_b=document_b.name,
            overall_similarity=round(overall_similarity, 4),
            added=change_statistics.added_sections,
            deleted=change_statistics.deleted_sections,
            modified=change_statistics.modified_sections,
            unchanged=change_statistics.unchanged_sections,
            segments=len(segments),
            duration_seconds=round(time.time() - start_time, 3)
        )

        return result
