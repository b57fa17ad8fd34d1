"""
Section Alignment Service

Pairs the sections of two documents and labels each pairing:
- Matching works on title plus content so renamed-but-similar sections pair up
- The reported similarity is recomputed on content alone
- Sections left without a partner are reported as added or deleted

Two matching strategies are available. ``greedy`` walks document A in order
and lets each section claim its best unclaimed partner. ``optimal`` solves the
assignment problem over the whole score matrix with scipy.
"""

import uuid
from typing import Dict, List, Optional

import numpy as np
from scipy.optimize import linear_sum_assignment

from redline.core.config import get_settings
from redline.core.logging import get_logger
from redline.models.comparison import Section, SectionChangeType, SectionComparison
from redline.services.similarity import jaccard_similarity

logger = get_logger(__name__)

STRATEGIES = ("greedy", "optimal")


def _match_text(section: Section) -> str:
    return f"{section.title} {section.content}"


class SectionAligner:
    """
    Service for aligning sections across two documents.

    Attributes:
        min_match_threshold: Match score a pairing must exceed
        unchanged_threshold: Content similarity above which a pair is unchanged
        strategy: ``greedy`` or ``optimal``
    """

    def __init__(
        self,
        min_match_threshold: Optional[float] = None,
        unchanged_threshold: Optional[float] = None,
        strategy: Optional[str] = None
    ):
        settings = get_settings()
        self.min_match_threshold = (
            min_match_threshold if min_match_threshold is not None else settings.min_match_threshold
        )
        self.unchanged_threshold = (
            unchanged_threshold if unchanged_threshold is not None else settings.unchanged_threshold
        )
        self.strategy = strategy or settings.section_matching_strategy

        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown section matching strategy: {self.strategy}")

    def align(self, sections_a: List[Section], sections_b: List[Section]) -> List[SectionComparison]:
        """
        Align two section lists.

        Args:
            sections_a: Sections of the original document, in document order
            sections_b: Sections of the revised document, in document order

        Returns:
            One comparison per matched pair and per unmatched section, ordered
            by page (stable, so equal pages keep their emission order)
        """
        if self.strategy == "optimal":
            pairs = self._match_optimal(sections_a, sections_b)
        else:
            pairs = self._match_greedy(sections_a, sections_b)

        comparisons: List[SectionComparison] = []
        claimed = set()

        for index_a, section_a in enumerate(sections_a):
            index_b = pairs.get(index_a)
            if index_b is None:
                comparisons.append(self._one_sided(section_a, None))
                continue
            claimed.add(index_b)
            comparisons.append(self._paired(section_a, sections_b[index_b]))

        for index_b, section_b in enumerate(sections_b):
            if index_b not in claimed:
                comparisons.append(self._one_sided(None, section_b))

        comparisons.sort(key=lambda c: c.sort_page)

        logger.info(
            "sections_aligned",
            strategy=self.strategy,
            sections_a=len(sections_a),
            sections_b=len(sections_b),
            comparisons=len(comparisons),
            matched=len(pairs)
        )

        return comparisons

    def _match_greedy(self, sections_a: List[Section], sections_b: List[Section]) -> Dict[int, int]:
        """Greedy first-come matching; the first best candidate wins ties."""
        pairs = {}
        claimed = set()
        texts_b = [_match_text(section) for section in sections_b]

        for index_a, section_a in enumerate(sections_a):
            text_a = _match_text(section_a)
            best_index, best_score = None, 0.0

            for index_b, text_b in enumerate(texts_b):
                if index_b in claimed:
                    continue
                score = jaccard_similarity(text_a, text_b)
                if best_index is None or score > best_score:
                    best_index, best_score = index_b, score

            if best_index is not None and best_score > self.min_match_threshold:
                pairs[index_a] = best_index
                claimed.add(best_index)

        return pairs

    def _match_optimal(self, sections_a: List[Section], sections_b: List[Section]) -> Dict[int, int]:
        """Maximum-weight bipartite matching over the title+content scores."""
        if not sections_a or not sections_b:
            return {}

        texts_b = [_match_text(section) for section in sections_b]
        scores = np.array([
            [jaccard_similarity(_match_text(section_a), text_b) for text_b in texts_b]
            for section_a in sections_a
        ])
        # only pairs above the threshold carry weight in the assignment
        scores[scores <= self.min_match_threshold] = 0.0

        rows, cols = linear_sum_assignment(scores, maximize=True)

        return {
            int(row): int(col)
            for row, col in zip(rows, cols)
            if scores[row, col] > self.min_match_threshold
        }

    def _paired(self, section_a: Section, section_b: Section) -> SectionComparison:
        similarity = jaccard_similarity(section_a.content, section_b.content)
        change_type = (
            SectionChangeType.UNCHANGED
            if similarity > self.unchanged_threshold
            else SectionChangeType.MODIFIED
        )
        return SectionComparison(
            id=str(uuid.uuid4()),
            section_a=section_a,
            section_b=section_b,
            change_type=change_type,
            similarity_score=similarity,
            page_number_a=section_a.page_number,
            page_number_b=section_b.page_number
        )

    def _one_sided(
        self,
        section_a: Optional[Section],
        section_b: Optional[Section]
    ) -> SectionComparison:
        if section_a is not None:
            return SectionComparison(
                id=str(uuid.uuid4()),
                section_a=section_a,
                change_type=SectionChangeType.DELETED,
                page_number_a=section_a.page_number
            )
        return SectionComparison(
            id=str(uuid.uuid4()),
            section_b=section_b,
            change_type=SectionChangeType.ADDED,
            page_number_b=section_b.page_number
        )

