"""
Tests for result aggregation.
"""

import pytest

from redline.models.comparison import SectionChangeType, SectionComparison
from redline.services.aggregator import calculate_change_statistics, calculate_overall_similarity


def comparison(change_type, score=None):
    return SectionComparison(id=change_type.value, change_type=change_type, similarity_score=score)


def test_empty_comparisons_score_zero():
    """No comparisons means no similarity."""
    assert calculate_overall_similarity([]) == 0.0


def test_all_unchanged_scores_one():
    """Only unchanged sections give full similarity."""
    comparisons = [comparison(SectionChangeType.UNCHANGED, 1.0)] * 3
    assert calculate_overall_similarity(comparisons) == 1.0


def test_all_added_scores_zero():
    """Only added sections give zero similarity."""
    comparisons = [comparison(SectionChangeType.ADDED)] * 2
    assert calculate_overall_similarity(comparisons) == 0.0


def test_without_modified_sections_is_unchanged_share():
    """Without modified sections the score is the unchanged share."""
    comparisons = [
        comparison(SectionChangeType.UNCHANGED, 1.0),
        comparison(SectionChangeType.ADDED),
        comparison(SectionChangeType.DELETED),
        comparison(SectionChangeType.UNCHANGED, 0.97),
    ]
    assert calculate_overall_similarity(comparisons) == pytest.approx(0.5)


def test_blend_with_modified_sections():
    """Modified sections blend their average similarity in by their share."""
    comparisons = [
        comparison(SectionChangeType.UNCHANGED, 1.0),
        comparison(SectionChangeType.UNCHANGED, 1.0),
        comparison(SectionChangeType.MODIFIED, 0.8),
        comparison(SectionChangeType.MODIFIED, 0.4),
    ]
    # base 0.5, modified average 0.6, modified share 0.5
    assert calculate_overall_similarity(comparisons) == pytest.approx((0.5 + 0.6 * 0.5) / 1.5)


def test_missing_modified_score_counts_as_zero():
    """A modified comparison without a score contributes zero."""
    assert calculate_overall_similarity([comparison(SectionChangeType.MODIFIED)]) == 0.0


def test_change_statistics():
    """Statistics partition comparisons by change type."""
    comparisons = [
        comparison(SectionChangeType.ADDED),
        comparison(SectionChangeType.DELETED),
        comparison(SectionChangeType.DELETED),
        comparison(SectionChangeType.MODIFIED, 0.5),
        comparison(SectionChangeType.UNCHANGED, 1.0),
    ]

    stats = calculate_change_statistics(comparisons)

    assert stats.added_sections == 1
    assert stats.deleted_sections == 2
    assert stats.modified_sections == 1
    assert stats.unchanged_sections == 1
    assert stats.total_sections == len(comparisons)
    assert stats.change_percentage == pytest.approx(80.0)


def test_change_statistics_serialize_camel_case():
    """Serialized statistics use camelCase names, computed fields included."""
    stats = calculate_change_statistics([comparison(SectionChangeType.ADDED)])

    data = stats.model_dump(by_alias=True)

    assert data["addedSections"] == 1
    assert data["totalSections"] == 1
    assert data["changePercentage"] == 100.0
