"""
Tests for token-set similarity.
"""

import pytest

from redline.services.similarity import jaccard_similarity, tokenize


def test_identical_text_scores_one():
    """A non-empty text is fully similar to itself."""
    assert jaccard_similarity("the quick brown fox", "the quick brown fox") == 1.0


def test_disjoint_text_scores_zero():
    """Texts without shared words score zero."""
    assert jaccard_similarity("alpha beta", "gamma delta") == 0.0


def test_partial_overlap():
    """Score is intersection over union of the word sets."""
    assert jaccard_similarity("a b c", "b c d") == pytest.approx(0.5)


def test_both_empty_scores_one():
    """Two empty texts are treated as identical."""
    assert jaccard_similarity("", "") == 1.0
    assert jaccard_similarity("   ", "\n") == 1.0


def test_one_empty_scores_zero():
    """An empty text shares nothing with a non-empty one."""
    assert jaccard_similarity("", "something") == 0.0
    assert jaccard_similarity("something", "") == 0.0


def test_case_and_whitespace_insensitive():
    """Tokens are lower-cased and split on any whitespace."""
    assert jaccard_similarity("Payment Terms", "payment\n  terms") == 1.0


@pytest.mark.parametrize(
    "a,b",
    [
        ("the tenant shall pay", "the landlord shall pay rent"),
        ("", "x"),
        ("one two three", "three four"),
    ],
)
def test_symmetric(a, b):
    """similarity(a, b) == similarity(b, a)."""
    assert jaccard_similarity(a, b) == jaccard_similarity(b, a)


def test_tokenize_deduplicates():
    """Repeated words count once."""
    assert tokenize("Fee fee FEE due") == frozenset({"fee", "due"})
