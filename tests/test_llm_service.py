"""
Tests for narrative generation and its fallbacks.
"""

import asyncio

from redline.core.config import Settings
from redline.models.comparison import ChangeStatistics, Section, SectionChangeType, SectionComparison
from redline.services.llm_service import (
    OVERALL_FALLBACK,
    NarrativeService,
    OpenAISummarizer,
    classify_revision,
)


def comparison(change_type, title="Fees", content_a="old fee text", content_b="new fee text"):
    section_a = Section(id="a", title=title, page_number=1, content=content_a)
    section_b = Section(id="b", title=title, page_number=1, content=content_b)
    return SectionComparison(
        id=f"c-{change_type.value}",
        section_a=section_a if change_type != SectionChangeType.ADDED else None,
        section_b=section_b if change_type != SectionChangeType.DELETED else None,
        change_type=change_type
    )


class EchoSummarizer:
    """Returns a fixed answer and remembers prompts."""

    def __init__(self, answer="  A concise summary.  "):
        self.answer = answer
        self.prompts = []

    async def summarize(self, prompt):
        self.prompts.append(prompt)
        return self.answer


class FailingSummarizer:
    async def summarize(self, prompt):
        raise RuntimeError("provider unavailable")


class SlowSummarizer:
    async def summarize(self, prompt):
        await asyncio.sleep(5)
        return "too late"


class CountingSummarizer:
    """Tracks how many calls are in flight at once."""

    def __init__(self):
        self.in_flight = 0
        self.max_in_flight = 0

    async def summarize(self, prompt):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        return prompt.split(":")[-1].strip()


def test_fallback_for_every_change_type():
    """Every change type has canned text naming the section."""
    service = NarrativeService(summarizer=None, max_concurrency=5, timeout=1.0)

    assert service.fallback_summary(comparison(SectionChangeType.ADDED)) == "New section added: Fees"
    assert service.fallback_summary(comparison(SectionChangeType.DELETED)) == "Section removed: Fees"
    assert service.fallback_summary(comparison(SectionChangeType.MODIFIED)) == "Section modified: Fees"
    assert service.fallback_summary(comparison(SectionChangeType.UNCHANGED)) == "Section unchanged: Fees"


def test_fallback_for_untitled_section():
    """Sections without a title are called Untitled."""
    service = NarrativeService(summarizer=None, max_concurrency=5, timeout=1.0)

    assert service.fallback_summary(comparison(SectionChangeType.ADDED, title="")) == "New section added: Untitled"


def test_describe_without_summarizer_uses_fallback():
    """No configured LLM means canned narratives."""
    service = NarrativeService(summarizer=None, max_concurrency=5, timeout=1.0)

    assert asyncio.run(service.describe(comparison(SectionChangeType.DELETED))) == "Section removed: Fees"


def test_describe_uses_summarizer_answer():
    """A successful answer is returned stripped."""
    summarizer = EchoSummarizer()
    service = NarrativeService(summarizer=summarizer, max_concurrency=5, timeout=1.0)

    narrative = asyncio.run(service.describe(comparison(SectionChangeType.ADDED)))

    assert narrative == "A concise summary."
    assert summarizer.prompts[0].startswith("Briefly summarize this new section: Fees")


def test_describe_falls_back_on_error():
    """Provider failures never escape."""
    service = NarrativeService(summarizer=FailingSummarizer(), max_concurrency=5, timeout=1.0)

    assert asyncio.run(service.describe(comparison(SectionChangeType.MODIFIED))) == "Section modified: Fees"


def test_describe_falls_back_on_timeout():
    """Slow providers are cut off at the timeout."""
    service = NarrativeService(summarizer=SlowSummarizer(), max_concurrency=5, timeout=0.05)

    assert asyncio.run(service.describe(comparison(SectionChangeType.ADDED))) == "New section added: Fees"


def test_describe_falls_back_on_empty_answer():
    """Blank answers are replaced with canned text."""
    service = NarrativeService(summarizer=EchoSummarizer("   "), max_concurrency=5, timeout=1.0)

    assert asyncio.run(service.describe(comparison(SectionChangeType.UNCHANGED))) == "Section unchanged: Fees"


def test_describe_all_bounds_concurrency_and_keeps_order():
    """At most max_concurrency calls run at once and results keep input order."""
    summarizer = CountingSummarizer()
    service = NarrativeService(summarizer=summarizer, max_concurrency=2, timeout=1.0)
    comparisons = [
        comparison(SectionChangeType.ADDED, title=f"Section {i}", content_b=f"body {i}")
        for i in range(6)
    ]

    narratives = asyncio.run(service.describe_all(comparisons))

    assert summarizer.max_in_flight == 2
    assert narratives == [f"body {i}" for i in range(6)]


def test_modified_prompt_mentions_size_change():
    """Modified prompts describe how much the section grew or shrank."""
    service = NarrativeService(summarizer=None, max_concurrency=5, timeout=1.0)

    grown = comparison(SectionChangeType.MODIFIED, content_a="short", content_b="much longer text " * 5)
    shrunk = comparison(SectionChangeType.MODIFIED, content_a="much longer text " * 5, content_b="short")
    similar = comparison(SectionChangeType.MODIFIED, content_a="fee is 100", content_b="fee is 200")

    assert service.build_prompt(grown).endswith("significant expansion")
    assert service.build_prompt(shrunk).endswith("significant reduction")
    assert service.build_prompt(similar).endswith("minor text changes")
    assert "Original had 10 chars, new has 10 chars" in service.build_prompt(similar)


def test_added_prompt_truncates_content():
    """Long content is cut to keep prompts short."""
    service = NarrativeService(summarizer=None, max_concurrency=5, timeout=1.0)

    prompt = service.build_prompt(comparison(SectionChangeType.ADDED, content_b="z" * 500))

    assert prompt.endswith("z" * 200 + "...")


def test_summarize_overall_fallback():
    """Without an LLM the overall summary is the canned message."""
    service = NarrativeService(summarizer=FailingSummarizer(), max_concurrency=5, timeout=1.0)

    assert asyncio.run(service.summarize_overall(ChangeStatistics(added_sections=1))) == OVERALL_FALLBACK


def test_overall_prompt_classifies_revision():
    """The overall prompt reports counts and the revision class."""
    service = NarrativeService(summarizer=None, max_concurrency=5, timeout=1.0)
    stats = ChangeStatistics(added_sections=2, deleted_sections=1, modified_sections=1, unchanged_sections=0)

    prompt = service.build_overall_prompt(stats)

    assert "2 added, 1 deleted, 1 modified sections out of 4 total (100% changed)" in prompt
    assert "major overhaul" in prompt


def test_classify_revision():
    """Change percentages map to revision classes."""
    assert classify_revision(80) == "major overhaul"
    assert classify_revision(50) == "significant update"
    assert classify_revision(10) == "minor revision"


def test_from_settings_without_llm():
    """A disabled LLM yields canned narratives only."""
    service = NarrativeService.from_settings(Settings(enable_llm=False))

    assert service.summarizer is None


def test_from_settings_with_openai_key():
    """A configured key builds the OpenAI summarizer."""
    settings = Settings(enable_llm=True, llm_provider="openai", openai_api_key="test-key")

    service = NarrativeService.from_settings(settings)

    assert isinstance(service.summarizer, OpenAISummarizer)
