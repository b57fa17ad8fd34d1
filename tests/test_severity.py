"""
Tests for heuristic severity classification.
"""

import pytest

from redline.models.comparison import (
    ChangeSeverity,
    ChangeType,
    ComparisonResult,
    DiffSegment,
    Section,
    SectionChangeType,
    SectionComparison,
    Severity,
)
from redline.models.rules import SeverityRules
from redline.services.severity import SeverityClassifier

classifier = SeverityClassifier()


def segment(text, change_type=ChangeType.INSERTED):
    return DiffSegment(change_type=change_type, text=text)


def comparison(change_type, content_a=None, content_b=None, similarity=None):
    section_a = Section(id="a", page_number=1, content=content_a) if content_a is not None else None
    section_b = Section(id="b", page_number=1, content=content_b) if content_b is not None else None
    return SectionComparison(
        id="c",
        section_a=section_a,
        section_b=section_b,
        change_type=change_type,
        similarity_score=similarity
    )


def test_unchanged_segment_is_minor():
    """Unchanged lines are minor whatever they contain."""
    text = "The tenant shall pay 1000 dollars " * 20
    assert classifier.classify_segment(segment(text, ChangeType.UNCHANGED)) == Severity.MINOR


def test_long_legal_segment_is_major():
    """A 400 character line containing "shall" is major."""
    text = ("The supplier shall deliver the goods. " * 11)[:400]
    assert len(text) == 400
    assert classifier.classify_segment(segment(text)) == Severity.MAJOR


@pytest.mark.parametrize(
    "text,expected",
    [
        ("minor wording tweak", Severity.MINOR),
        ("pay 100", Severity.MINOR),
        ("The tenant shall pay rent", Severity.MODERATE),
        ("The tenant shall pay 100", Severity.MODERATE),
        ("x" * 150, Severity.MINOR),
        ("x" * 149 + "7", Severity.MODERATE),
        ("LIABILITY is capped at 5000 for " + "y" * 80, Severity.MAJOR),
    ],
)
def test_segment_scores(text, expected):
    """Length, digits and legal keywords add up to a tier."""
    assert classifier.classify_segment(segment(text)) == expected


def test_keyword_match_is_substring():
    """Keyword stems match longer words."""
    assert classifier.contains_legal_keyword("Either party may TERMINATE")
    assert classifier.contains_legal_keyword("indemnification")
    assert not classifier.contains_legal_keyword("a friendly reminder")


def test_classify_segments_returns_copies():
    """Classification does not modify the input segments."""
    original = segment("The tenant shall pay 100")

    classified = classifier.classify_segments([original])

    assert classified[0].severity == Severity.MODERATE
    assert original.severity == Severity.MINOR


def test_alternate_rules():
    """Injected keyword lists replace the defaults."""
    custom = SeverityClassifier(SeverityRules(legal_keywords=("embargo",)))

    assert custom.classify_segment(segment("subject to embargo")) == Severity.MODERATE
    assert custom.classify_segment(segment("The tenant shall pay")) == Severity.MINOR


def test_unchanged_section_is_low():
    """Unchanged sections are low severity."""
    c = comparison(SectionChangeType.UNCHANGED, "shall 100", "shall 100", similarity=1.0)
    assert classifier.classify_section(c) == ChangeSeverity.LOW


def test_added_plain_section_is_medium():
    """Adding a whole section is at least medium."""
    c = comparison(SectionChangeType.ADDED, content_b="a short note about the office")
    assert classifier.classify_section(c) == ChangeSeverity.MEDIUM


def test_added_legal_section_with_numbers_is_high():
    """Legal wording and figures in an added section raise it to high."""
    c = comparison(SectionChangeType.ADDED, content_b="The buyer shall pay a penalty of 500")
    assert classifier.classify_section(c) == ChangeSeverity.HIGH


def test_large_deleted_legal_section_is_critical():
    """Removing a long clause with liability wording and figures is critical."""
    content = "Liability clause 12. " + "word " * 250
    c = comparison(SectionChangeType.DELETED, content_a=content)
    assert classifier.classify_section(c) == ChangeSeverity.CRITICAL


def test_modified_section_scores_changed_words_only():
    """Legal words present on both sides do not count as changed."""
    c = comparison(
        SectionChangeType.MODIFIED,
        "the tenant shall pay rent monthly",
        "the tenant shall pay rent weekly",
        similarity=0.7
    )
    assert classifier.classify_section(c) == ChangeSeverity.LOW


def test_modified_section_with_new_terms_and_numbers():
    """New legal wording plus changed figures make a modification high."""
    c = comparison(
        SectionChangeType.MODIFIED,
        "payment due in 30 days",
        "payment due in 60 days unless terminated",
        similarity=0.5
    )
    assert classifier.classify_section(c) == ChangeSeverity.HIGH


def test_low_similarity_adds_to_score():
    """A heavily rewritten section scores higher than a light edit."""
    light = comparison(SectionChangeType.MODIFIED, "alpha beta", "alpha gamma", similarity=0.6)
    heavy = comparison(SectionChangeType.MODIFIED, "alpha beta", "alpha gamma", similarity=0.2)

    assert classifier.classify_section(light) == ChangeSeverity.LOW
    assert classifier.classify_section(heavy) == ChangeSeverity.MEDIUM


@pytest.mark.parametrize(
    "similarity,expected",
    [
        (1.0, "LOW"),
        (0.8, "MEDIUM"),
        (0.6, "HIGH"),
        (0.4, "CRITICAL"),
    ],
)
def test_overall_risk_from_similarity(similarity, expected):
    """Overall risk tiers follow the overall similarity."""
    result = ComparisonResult(document_a_name="a.pdf", document_b_name="b.pdf", overall_similarity=similarity)

    level, description = classifier.overall_risk(result)

    assert level == expected
    assert description


def test_overall_risk_from_major_segments():
    """Many major line changes raise the risk even when similarity is high."""
    segments = [DiffSegment(change_type=ChangeType.INSERTED, text="x", severity=Severity.MAJOR)] * 11
    result = ComparisonResult(
        document_a_name="a.pdf",
        document_b_name="b.pdf",
        overall_similarity=0.99,
        diff_segments=segments
    )

    assert classifier.overall_risk(result)[0] == "CRITICAL"
