"""
Heuristic rule tables used by the comparison engine.

The tables are immutable models with module-level defaults. Services receive
them as constructor arguments, so tests and deployments can swap in their own
dictionaries without touching global state.
"""

from typing import Dict, FrozenSet, Tuple

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LIGATURES: Dict[str, str] = {
    "\uFB01": "fi",   # LATIN SMALL LIGATURE FI
    "\uFB02": "fl",   # LATIN SMALL LIGATURE FL
    "\uFB03": "ffi",  # LATIN SMALL LIGATURE FFI
    "\uFB04": "ffl",  # LATIN SMALL LIGATURE FFL
    "\uFB00": "ff",   # LATIN SMALL LIGATURE FF
    "\uFB05": "ft",   # LATIN SMALL LIGATURE LONG S T
    "\uFB06": "st",   # LATIN SMALL LIGATURE ST
    "\uFFFD": "",     # REPLACEMENT CHARACTER
    "\u019F": "ti",   # LATIN CAPITAL LETTER O WITH MIDDLE TILDE, extracted for "ti"
    "\u0275": "ti",   # LATIN SMALL LETTER BARRED O, extracted for "ti"
    "\u0284": "ft",   # LATIN SMALL LETTER DOTLESS J WITH STROKE AND HOOK, extracted for "ft"
}

# Lower-case forms; matching is case-insensitive and the casing of the
# matched text is carried over to the replacement.
DEFAULT_WORD_FIXES: Dict[str, str] = {
    "specifica on": "specification",
    "specificaon": "specification",
    "specifica ion": "specification",
    "authen ca on": "authentication",
    "authencaon": "authentication",
    "authoriza on": "authorization",
    "authorizaon": "authorization",
    "introduc on": "introduction",
    "introducon": "introduction",
    "informa on": "information",
    "informaon": "information",
    "configura on": "configuration",
    "configuraon": "configuration",
    "implementa on": "implementation",
    "implementaon": "implementation",
    "documenta on": "documentation",
    "documentaon": "documentation",
    "registra on": "registration",
    "registraon": "registration",
    "integra on": "integration",
    "integraon": "integration",
    "no fica on": "notification",
    "no ficaon": "notification",
    "notificaon": "notification",
    "func on": "function",
    "funcon": "function",
    "func onal": "functional",
    "funconal": "functional",
    "func onality": "functionality",
    "funconality": "functionality",
    "ac on": "action",
    "ac ons": "actions",
    "ac ve": "active",
    "op on": "option",
    "op ons": "options",
    "op onal": "optional",
    "sec on": "section",
    "sec ons": "sections",
    "reporng": "reporting",
    "repor ng": "reporting",
    "exisng": "existing",
    "exis ng": "existing",
    "mul-factor": "multi-factor",
    "mul ple": "multiple",
    "so delete": "soft delete",
    "so ware": "software",
    "categorizaonandtagging": "categorization and tagging",
    "categorizaon and tagging": "categorization and tagging",
}

# Real words that end like a broken "-tion" stem and are commonly followed by "on".
DEFAULT_PROTECTED_WORDS: FrozenSet[str] = frozenset({
    "africa", "america", "replica", "monica", "jamaica", "rebecca", "mica", "erica",
    "pizza", "plaza", "gaza", "stanza", "bonanza", "influenza",
    "visa", "salsa", "mesa", "nasa", "lisa", "teresa",
    "camera", "extra", "opera", "zebra", "mantra", "sierra", "sahara", "laura",
    "sandra", "cobra", "tundra", "algebra", "aura", "era",
    "data", "meta", "beta", "delta", "quota", "pasta", "vista", "fiesta",
    "atlanta", "alberta", "jakarta", "minnesota", "toyota", "agenda",
    "drama", "comma", "dilemma", "karma", "magma", "plasma", "asthma", "cinema",
    "diploma", "pajama", "trauma", "alabama", "oklahoma", "panama", "stigma",
    "enigma", "dogma", "obama", "emma", "schema", "coma", "puma", "lima",
    "china", "banana", "arena", "diana", "tina", "anna", "arizona", "antenna",
    "sauna", "ghana", "argentina", "carolina", "montana", "nirvana", "persona",
    "retina", "vienna", "verona", "regina", "hyena",
    "zinc", "sync", "spec", "lilac", "maniac", "cardiac", "bivouac",
    "topic", "music", "logic", "public", "basic", "magic", "comic", "panic", "tonic",
    "critic", "classic", "clinic", "ethic", "graphic", "traffic", "plastic", "static",
    "electric", "metric", "fabric", "republic", "specific", "generic", "domestic",
    "academic", "economic", "organic", "dynamic", "automatic", "tropic", "rubric",
    "arithmetic", "atlantic", "pacific", "arctic", "nordic", "italic", "mosaic",
    "heroic", "mechanic", "picnic", "attic", "relic", "tactic", "garlic",
    "epic", "civic", "toxic", "rustic", "exotic", "erotic", "atomic", "scenic",
    "medic", "sonic", "cubic", "optic", "polemic", "rhetoric", "chronic",
    "electronic", "strategic", "scientific", "historic", "athletic", "authentic",
    "realistic", "diplomatic", "democratic", "periodic", "psychic",
})

# Stem endings a fragment needs before a given detached tail is rejoined.
DEFAULT_TAIL_STEM_ENDINGS: Dict[str, Tuple[str, ...]] = {
    # potential, essential, substantial
    "al": ("en", "an"),
}

DEFAULT_VALID_SUFFIXES: Tuple[str, ...] = (
    "tion", "tions", "sion", "ation", "ication", "ization", "ational",
    "tional", "ing", "ment", "ness", "able", "ible", "ful", "ive", "ory",
    "ary", "ery", "ual", "ial", "ous", "ious",
)

DEFAULT_LEGAL_KEYWORDS: Tuple[str, ...] = (
    "shall", "must", "notwithstanding", "liability", "indemnif",
    "warrant", "penalty", "terminat",
)

DEFAULT_STOP_WORDS: FrozenSet[str] = frozenset({
    "and", "or", "of", "the", "a", "an", "in", "on", "at", "to", "for", "with",
})


class NormalizationRules(BaseModel):
    """Tables driving ligature and dropped-"ti" repair."""

    model_config = ConfigDict(frozen=True)

    ligatures: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_LIGATURES))
    word_fixes: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_WORD_FIXES))
    # stem endings that precede a detached "on" once "ti" has been lost;
    # real "-ic" words ("topic on") are kept by protected_words
    ti_endings: Tuple[str, ...] = ("ca", "za", "sa", "ra", "ta", "ma", "na", "ac", "ec", "ic", "uc", "nc")
    # detached word tails that follow a lost "ti" ("repor ng", "op onal")
    ti_tails: Tuple[str, ...] = ("ng", "al", "ons", "onal", "ble")
    tail_stem_endings: Dict[str, Tuple[str, ...]] = Field(
        default_factory=lambda: dict(DEFAULT_TAIL_STEM_ENDINGS)
    )
    protected_words: FrozenSet[str] = DEFAULT_PROTECTED_WORDS
    valid_suffixes: Tuple[str, ...] = DEFAULT_VALID_SUFFIXES
    min_fragment_length: int = 4
    min_word_length: int = 6


class SegmentationRules(BaseModel):
    """Thresholds and word lists for header detection."""

    model_config = ConfigDict(frozen=True)

    stop_words: FrozenSet[str] = DEFAULT_STOP_WORDS
    max_title_words: int = 8
    max_header_length: int = 100
    min_all_caps_length: int = 4
    min_section_chars: int = 50


class SeverityRules(BaseModel):
    """Scores and thresholds for line-level and section-level severity."""

    model_config = ConfigDict(frozen=True)

    legal_keywords: Tuple[str, ...] = DEFAULT_LEGAL_KEYWORDS

    # line level
    long_text_chars: int = 300
    medium_text_chars: int = 100
    major_score: int = 4
    moderate_score: int = 2

    # section level
    large_delta_chars: int = 1000
    medium_delta_chars: int = 200
    low_similarity: float = 0.5
    critical_score: int = 5
    high_score: int = 3
    medium_score: int = 1

    # overall risk
    risk_critical_major: int = 10
    risk_critical_similarity: float = 0.5
    risk_high_major: int = 5
    risk_high_similarity: float = 0.7
    risk_medium_changes: int = 20
    risk_medium_similarity: float = 0.85
