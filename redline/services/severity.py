"""
Severity Classification Service

Lightweight heuristic severity classifier. Fast, offline and deterministic.
Two separate scales are used:
- Line level (Minor / Moderate / Major) for diff segments
- Section level (Low / Medium / High / Critical) for section comparisons
"""

import re
from typing import List, Optional, Tuple

from redline.models.comparison import (
    ChangeSeverity,
    ChangeType,
    ComparisonResult,
    DiffSegment,
    SectionChangeType,
    SectionComparison,
    Severity,
)
from redline.models.rules import SeverityRules
from redline.services.similarity import tokenize

NUMBER = re.compile(r"\d+(?:[.,]\d+)*")


class SeverityClassifier:
    """
    Assign severity tiers from length, number and legal-keyword signals.

    Attributes:
        rules: Scores, thresholds and the legal keyword list
    """

    def __init__(self, rules: Optional[SeverityRules] = None):
        self.rules = rules or SeverityRules()

    def contains_legal_keyword(self, text: str) -> bool:
        """Case-insensitive substring check against the legal keyword list."""
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.rules.legal_keywords)

    def classify_segment(self, segment: DiffSegment) -> Severity:
        """
        Severity of one diff segment.

        Unchanged lines are always minor. Otherwise long text, digits and
        legal keywords raise the score.
        """
        if segment.change_type == ChangeType.UNCHANGED:
            return Severity.MINOR

        text = segment.text or ""
        score = 0

        if len(text) > self.rules.long_text_chars:
            score += 2
        elif len(text) > self.rules.medium_text_chars:
            score += 1

        if any(ch.isdigit() for ch in text):
            score += 1

        if self.contains_legal_keyword(text):
            score += 2

        if score >= self.rules.major_score:
            return Severity.MAJOR
        if score >= self.rules.moderate_score:
            return Severity.MODERATE
        return Severity.MINOR

    def classify_segments(self, segments: List[DiffSegment]) -> List[DiffSegment]:
        """Return copies of the segments with their severity set."""
        return [
            segment.model_copy(update={"severity": self.classify_segment(segment)})
            for segment in segments
        ]

    def classify_section(self, comparison: SectionComparison) -> ChangeSeverity:
        """
        Severity of one section comparison.

        Signals: whole-section additions and removals, the change in content
        length, legal keywords in the changed text, changed numbers and low
        content similarity.
        """
        if comparison.change_type == SectionChangeType.UNCHANGED:
            return ChangeSeverity.LOW

        content_a = comparison.section_a.content if comparison.section_a else ""
        content_b = comparison.section_b.content if comparison.section_b else ""
        score = 0

        if comparison.change_type in (SectionChangeType.ADDED, SectionChangeType.DELETED):
            score += 1

        delta = abs(len(content_b) - len(content_a))
        if delta > self.rules.large_delta_chars:
            score += 2
        elif delta > self.rules.medium_delta_chars:
            score += 1

        changed_text, numbers_changed = self._changed_text(comparison.change_type, content_a, content_b)

        if self.contains_legal_keyword(changed_text):
            score += 2

        if numbers_changed:
            score += 1

        if (
            comparison.change_type == SectionChangeType.MODIFIED
            and comparison.similarity_score is not None
            and comparison.similarity_score < self.rules.low_similarity
        ):
            score += 1

        if score >= self.rules.critical_score:
            return ChangeSeverity.CRITICAL
        if score >= self.rules.high_score:
            return ChangeSeverity.HIGH
        if score >= self.rules.medium_score:
            return ChangeSeverity.MEDIUM
        return ChangeSeverity.LOW

    def overall_risk(self, result: ComparisonResult) -> Tuple[str, str]:
        """
        Overall risk level of a comparison for reporting.

        Returns:
            Tuple of (level, description)
        """
        major = sum(1 for s in result.diff_segments if s.severity == Severity.MAJOR)
        changes = sum(1 for s in result.diff_segments if s.change_type != ChangeType.UNCHANGED)
        similarity = result.overall_similarity

        if major > self.rules.risk_critical_major or similarity < self.rules.risk_critical_similarity:
            return "CRITICAL", "Immediate attention required - significant structural changes detected"
        if major > self.rules.risk_high_major or similarity < self.rules.risk_high_similarity:
            return "HIGH", "Review recommended - notable changes that may impact operations"
        if changes > self.rules.risk_medium_changes or similarity < self.rules.risk_medium_similarity:
            return "MEDIUM", "Monitor changes - moderate updates requiring awareness"
        return "LOW", "Minor changes - routine updates with minimal impact"

    def _changed_text(
        self,
        change_type: SectionChangeType,
        content_a: str,
        content_b: str
    ) -> Tuple[str, bool]:
        """
        Text that actually changed, and whether its numbers changed.

        Whole sections count in full for additions and removals; for
        modifications only words present on one side are considered.
        """
        if change_type == SectionChangeType.ADDED:
            return content_b, any(ch.isdigit() for ch in content_b)
        if change_type == SectionChangeType.DELETED:
            return content_a, any(ch.isdigit() for ch in content_a)

        words_a = tokenize(content_a)
        words_b = tokenize(content_b)
        changed = " ".join(sorted(words_a ^ words_b))
        numbers_changed = set(NUMBER.findall(content_a)) != set(NUMBER.findall(content_b))
        return changed, numbers_changed
