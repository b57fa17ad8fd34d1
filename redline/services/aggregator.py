"""
Result aggregation: change statistics and the overall similarity score.
"""

from typing import List

from redline.models.comparison import ChangeStatistics, SectionChangeType, SectionComparison


def calculate_change_statistics(comparisons: List[SectionComparison]) -> ChangeStatistics:
    """Count section comparisons by change type."""
    return ChangeStatistics(
        added_sections=sum(1 for c in comparisons if c.change_type == SectionChangeType.ADDED),
        deleted_sections=sum(1 for c in comparisons if c.change_type == SectionChangeType.DELETED),
        modified_sections=sum(1 for c in comparisons if c.change_type == SectionChangeType.MODIFIED),
        unchanged_sections=sum(1 for c in comparisons if c.change_type == SectionChangeType.UNCHANGED),
    )


def calculate_overall_similarity(comparisons: List[SectionComparison]) -> float:
    """
    Blend the share of unchanged sections with the similarity of modified ones.

    ``base = unchanged / total``; without modified sections the result is
    ``base``, otherwise
    ``(base + avg_modified * m / total) / (1 + m / total)``.
    The weighting is a heuristic kept for compatibility with existing scores.

    Args:
        comparisons: Section comparisons of one document pair

    Returns:
        Similarity between 0.0 and 1.0; 0.0 when there is nothing to compare
    """
    if not comparisons:
        return 0.0

    total = len(comparisons)
    unchanged = sum(1 for c in comparisons if c.change_type == SectionChangeType.UNCHANGED)
    modified = [c for c in comparisons if c.change_type == SectionChangeType.MODIFIED]

    base_score = unchanged / total
    if not modified:
        return base_score

    modified_score = sum(c.similarity_score or 0.0 for c in modified) / len(modified)
    modified_weight = len(modified) / total

    return (base_score + modified_score * modified_weight) / (1 + modified_weight)
