"""
Token-set similarity shared by section matching and severity heuristics.
"""

from typing import FrozenSet


def tokenize(text: str) -> FrozenSet[str]:
    """Lower-cased set of whitespace-separated tokens."""
    return frozenset(text.lower().split())


def jaccard_similarity(text1: str, text2: str) -> float:
    """
    Jaccard similarity of the word sets of two texts.

    Two texts without any tokens are identical by this measure and score 1.0;
    if only one side is empty the score is 0.0.

    Args:
        text1: First text
        text2: Second text

    Returns:
        Similarity between 0.0 and 1.0
    """
    words1 = tokenize(text1 or "")
    words2 = tokenize(text2 or "")

    union = words1 | words2
    if not union:
        return 1.0

    return len(words1 & words2) / len(union)
