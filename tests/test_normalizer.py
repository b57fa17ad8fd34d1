"""
Tests for extraction artefact normalization.
"""

import pytest

from redline.models.rules import NormalizationRules
from redline.services.normalizer import TextNormalizer

normalizer = TextNormalizer()


def test_empty_text():
    """Empty input gives empty output."""
    assert normalizer.normalize("") == ""


def test_ligatures_replaced():
    """Ligature glyphs become plain letter sequences."""
    assert normalizer.normalize("\ufb01le") == "file"
    assert normalizer.normalize("o\ufb03ce") == "office"
    assert normalizer.normalize("\ufb02ow") == "flow"


def test_replacement_character_removed():
    """The extraction replacement character is dropped."""
    assert normalizer.normalize("ter\ufffdms") == "terms"


def test_dictionary_fix():
    """Known broken words are repaired."""
    assert normalizer.normalize("the specifica on of the system") == "the specification of the system"
    assert normalizer.normalize("exis ng users") == "existing users"


def test_dictionary_fix_keeps_case():
    """Casing of the matched text carries over to the replacement."""
    assert normalizer.normalize("Specifica on") == "Specification"
    assert normalizer.normalize("SPECIFICA ON") == "SPECIFICATION"


def test_detached_on_repaired():
    """A stem ending like a lost "ti" is rejoined with "on"."""
    assert normalizer.normalize("The organiza on was formed") == "The organization was formed"


def test_detached_tail_repaired():
    """A detached word tail is rejoined when the result looks like a word."""
    assert normalizer.normalize("coun ng votes") == "counting votes"


@pytest.mark.parametrize(
    "text",
    [
        "The data on the server",
        "Put the camera on the desk",
        "Click on the topic on the left",
        "The quick brown fox jumps over the lazy dog.",
        "Rely on the agreement",
    ],
)
def test_ordinary_text_unchanged(text):
    """Real words followed by "on" are left alone."""
    assert normalizer.normalize(text) == text


def test_short_fragment_unchanged():
    """Fragments below the minimum length are not rewritten."""
    assert normalizer.normalize("ca on") == "ca on"


def test_repair_does_not_cross_lines():
    """Words on different lines are never joined."""
    assert normalizer.normalize("organiza\non") == "organiza\non"


@pytest.mark.parametrize(
    "text",
    [
        "The specifica on and the organiza on",
        "\ufb01nal repor ng of coun ng",
        "SPECIFICA ON",
        "plain text with nothing to fix",
    ],
)
def test_idempotent(text):
    """Normalizing twice equals normalizing once."""
    once = normalizer.normalize(text)
    assert normalizer.normalize(once) == once


def test_alternate_rules():
    """Injected dictionaries replace the defaults."""
    custom = TextNormalizer(NormalizationRules(word_fixes={"foo bar": "foobar"}))
    assert custom.normalize("Foo bar") == "Foobar"
    assert custom.normalize("so ware") == "so ware"


def test_normalize_title_strips():
    """Titles are normalized and trimmed."""
    assert normalizer.normalize_title("  Specifica on  ") == "Specification"


@pytest.mark.parametrize(
    "broken,repaired",
    [
        ("the restric on applies", "the restriction applies"),
        ("under this jurisdic on", "under this jurisdiction"),
        ("a predic on of demand", "a prediction of demand"),
    ],
)
def test_detached_on_after_ic_stem(broken, repaired):
    """Stems ending in "ic" regain their lost "ti"."""
    assert normalizer.normalize(broken) == repaired


@pytest.mark.parametrize(
    "text",
    [
        "Play some music on the radio",
        "The public on both sides agreed",
        "Apply the logic on each row",
    ],
)
def test_real_ic_words_before_on_unchanged(text):
    """Real words ending in "ic" are not treated as broken stems."""
    assert normalizer.normalize(text) == text


def test_dictionary_fix_not_rewritten_by_tail_repair():
    """A word repaired from the dictionary is not extended again."""
    assert normalizer.normalize("repor ng ng") == "reporting ng"


def test_al_tail_needs_tial_stem():
    """A detached "al" only rejoins stems that form "-tial" words."""
    assert normalizer.normalize("the poten al impact") == "the potential impact"
    assert normalizer.normalize("Vamos al parque") == "Vamos al parque"
