"""
Text Normalization Service

Repairs artifacts that PDF text extraction commonly leaves behind before any
structural analysis runs:
- Ligature glyphs and replacement characters
- Known words whose "ti" was dropped by the extractor ("specifica on")
- The general "stem + missing ti + tail" pattern, validated against a list of
  word endings before a rewrite is accepted
"""

import re
from typing import Optional

from redline.models.rules import NormalizationRules


def _match_case(source: str, replacement: str) -> str:
    """Carry the casing of ``source`` over to ``replacement``."""
    if len(source) > 1 and source.isupper():
        return replacement.upper()
    if source[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


class TextNormalizer:
    """
    Pure, idempotent normalizer for extracted text.

    All tables come from :class:`NormalizationRules`, so alternate dictionaries
    can be injected without touching module state.
    """

    def __init__(self, rules: Optional[NormalizationRules] = None):
        self.rules = rules or NormalizationRules()

        self._ligature_table = str.maketrans(self.rules.ligatures)
        self._word_fixes = [
            (re.compile(r"\b" + re.escape(broken) + r"\b", re.IGNORECASE), fixed)
            for broken, fixed in self.rules.word_fixes.items()
        ]
        # spaces only, so a repair never joins two lines
        self._detached_on = re.compile(r"\b([^\W\d_]+)[ \t]+(on)\b", re.IGNORECASE)
        tails = "|".join(sorted(self.rules.ti_tails, key=len, reverse=True))
        self._detached_tail = re.compile(
            r"\b([^\W\d_]+)[ \t]+(" + tails + r")\b",
            re.IGNORECASE
        )

    def normalize(self, text: str) -> str:
        """
        Normalize ligatures and dropped-"ti" artifacts in text.

        Args:
            text: Raw extracted text

        Returns:
            Repaired text; empty input is returned unchanged
        """
        if not text:
            return text or ""

        text = text.translate(self._ligature_table)

        for pattern, fixed in self._word_fixes:
            text = pattern.sub(lambda m, fixed=fixed: _match_case(m.group(0), fixed), text)

        text = self._detached_on.sub(self._repair_detached_on, text)
        text = self._detached_tail.sub(self._repair_detached_tail, text)

        return text

    def normalize_title(self, title: str) -> str:
        """Normalize a section title and trim surrounding whitespace."""
        return self.normalize(title).strip()

    def _repair_detached_on(self, match: "re.Match") -> str:
        fragment, tail = match.group(1), match.group(2)
        lowered = fragment.lower()
        if not any(lowered.endswith(ending) for ending in self.rules.ti_endings):
            return match.group(0)
        return self._rejoin(match, fragment, tail)

    def _repair_detached_tail(self, match: "re.Match") -> str:
        fragment, tail = match.group(1), match.group(2)
        stem_endings = self.rules.tail_stem_endings.get(tail.lower())
        if stem_endings and not fragment.lower().endswith(stem_endings):
            return match.group(0)
        return self._rejoin(match, fragment, tail)

    def _rejoin(self, match: "re.Match", fragment: str, tail: str) -> str:
        if len(fragment) < self.rules.min_fragment_length:
            return match.group(0)
        if fragment.lower() in self.rules.protected_words:
            return match.group(0)
        # already a whole word, e.g. the output of a dictionary fix
        if self.is_likely_word(fragment):
            return match.group(0)

        infix = "TI" if fragment.isupper() and len(fragment) > 1 else "ti"
        candidate = fragment + infix + tail

        if not self.is_likely_word(candidate):
            return match.group(0)
        return candidate

    def is_likely_word(self, word: str) -> bool:
        """Check that a reconstructed word is long enough and ends like a real word."""
        if len(word) < self.rules.min_word_length:
            return False
        lowered = word.lower()
        return any(lowered.endswith(suffix) for suffix in self.rules.valid_suffixes)
