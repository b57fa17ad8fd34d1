"""
LLM Narrative Service

Produces short natural-language descriptions of section changes and of the
comparison as a whole. The LLM is optional: every narrative has a canned
fallback, so an unconfigured, failing or slow provider never blocks or fails
a comparison.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Protocol

from openai import AsyncAzureOpenAI, AsyncOpenAI

from redline.core.config import Settings, get_settings
from redline.core.logging import get_logger
from redline.models.comparison import ChangeStatistics, SectionChangeType, SectionComparison

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a document analysis assistant. Provide brief, concise summaries "
    "in 1-2 sentences maximum. Be direct and factual."
)
OVERALL_FALLBACK = "AI analysis temporarily unavailable"
PROMPT_CONTENT_CHARS = 200


class LLMServiceError(Exception):
    """Raised when the LLM provider fails or returns nothing usable."""

    pass


class Summarizer(Protocol):
    """Anything that turns a prompt into a short summary."""

    async def summarize(self, prompt: str) -> str:
        ...


class OpenAISummarizer:
    """
    Summarizer backed by OpenAI or Azure OpenAI chat completions.

    Attributes:
        settings: Application settings
        client: Async OpenAI client for the configured provider
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

        if self.settings.llm_provider == "azure":
            self.client = AsyncAzureOpenAI(
                azure_endpoint=self.settings.azure_openai_endpoint,
                api_key=self.settings.azure_openai_api_key,
                api_version=self.settings.azure_openai_api_version,
                timeout=self.settings.llm_timeout
            )
        else:
            self.client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.llm_timeout
            )

        logger.info(
            "llm_summarizer_initialized",
            provider=self.settings.llm_provider,
            model=self.settings.llm_model
        )

    async def summarize(self, prompt: str) -> str:
        """
        Request a short completion for a prompt.

        Raises:
            LLMServiceError: If the request fails or the answer is empty
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.settings.llm_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.llm_max_tokens
            )
        except Exception as e:
            raise LLMServiceError(f"LLM request failed: {e}") from e

        content = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not content:
            raise LLMServiceError("LLM returned an empty response")

        return content


def _truncate(content: Optional[str], max_length: int = PROMPT_CONTENT_CHARS) -> str:
    if not content:
        return "No content"
    return content if len(content) <= max_length else content[:max_length] + "..."


def _title(comparison: SectionComparison, default: str = "Untitled") -> str:
    section = comparison.section_a or comparison.section_b
    return section.title if section is not None and section.title else default


def _length_hint(comparison: SectionComparison) -> str:
    old_length = len(comparison.section_a.content) if comparison.section_a else 0
    new_length = len(comparison.section_b.content) if comparison.section_b else 0

    if new_length > old_length * 1.5:
        return "significant expansion"
    if new_length < old_length * 0.5:
        return "significant reduction"
    if abs(new_length - old_length) < 50:
        return "minor text changes"
    return "moderate changes"


def _added_prompt(comparison: SectionComparison) -> str:
    return (
        f"Briefly summarize this new section: {_title(comparison)}\n"
        f"Content: {_truncate(comparison.section_b.content if comparison.section_b else None)}"
    )


def _deleted_prompt(comparison: SectionComparison) -> str:
    return (
        f"Briefly summarize this removed section: {_title(comparison)}\n"
        f"Content: {_truncate(comparison.section_a.content if comparison.section_a else None)}"
    )


def _modified_prompt(comparison: SectionComparison) -> str:
    old_length = len(comparison.section_a.content) if comparison.section_a else 0
    new_length = len(comparison.section_b.content) if comparison.section_b else 0
    return (
        f"Briefly describe changes in '{_title(comparison, 'Section')}': "
        f"Original had {old_length} chars, new has {new_length} chars. "
        f"Key changes: {_length_hint(comparison)}"
    )


def _unchanged_prompt(comparison: SectionComparison) -> str:
    return f"Section '{_title(comparison)}' remained unchanged."


PROMPT_BUILDERS: Dict[SectionChangeType, Callable[[SectionComparison], str]] = {
    SectionChangeType.ADDED: _added_prompt,
    SectionChangeType.DELETED: _deleted_prompt,
    SectionChangeType.MODIFIED: _modified_prompt,
    SectionChangeType.UNCHANGED: _unchanged_prompt,
}

FALLBACK_TEMPLATES: Dict[SectionChangeType, str] = {
    SectionChangeType.ADDED: "New section added: {title}",
    SectionChangeType.DELETED: "Section removed: {title}",
    SectionChangeType.MODIFIED: "Section modified: {title}",
    SectionChangeType.UNCHANGED: "Section unchanged: {title}",
}


def classify_revision(change_percentage: float) -> str:
    """Coarse label for how much of a document changed."""
    if change_percentage > 70:
        return "major overhaul"
    if change_percentage > 30:
        return "significant update"
    return "minor revision"


class NarrativeService:
    """
    Service for generating section and overall narratives.

    Attributes:
        summarizer: LLM collaborator, or None to use canned text only
        max_concurrency: Maximum number of in-flight summarizer calls
        timeout: Per-call timeout in seconds
    """

    def __init__(
        self,
        summarizer: Optional[Summarizer] = None,
        max_concurrency: Optional[int] = None,
        timeout: Optional[float] = None
    ):
        settings = get_settings()
        self.summarizer = summarizer
        self.max_concurrency = max_concurrency or settings.narrative_concurrency
        self.timeout = timeout if timeout is not None else settings.llm_timeout

        logger.info(
            "narrative_service_initialized",
            llm_enabled=self.summarizer is not None,
            max_concurrency=self.max_concurrency,
            timeout=self.timeout
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "NarrativeService":
        """Build the service with an OpenAI summarizer when the LLM is configured."""
        settings = settings or get_settings()
        summarizer = OpenAISummarizer(settings) if settings.validate_llm_config() else None
        if summarizer is None:
            logger.info("llm_not_configured", message="Using canned narratives")
        return cls(
            summarizer=summarizer,
            max_concurrency=settings.narrative_concurrency,
            timeout=settings.llm_timeout
        )

    def build_prompt(self, comparison: SectionComparison) -> str:
        """Prompt describing one section comparison."""
        return PROMPT_BUILDERS[comparison.change_type](comparison)

    def fallback_summary(self, comparison: SectionComparison) -> str:
        """Deterministic narrative used when no LLM answer is available."""
        return FALLBACK_TEMPLATES[comparison.change_type].format(title=_title(comparison))

    async def describe(self, comparison: SectionComparison) -> str:
        """
        Narrative for one section comparison.

        Never raises: a missing summarizer, a failure, an empty answer or a
        timeout all fall back to canned text.
        """
        if self.summarizer is None:
            return self.fallback_summary(comparison)

        try:
            summary = await asyncio.wait_for(
                self.summarizer.summarize(self.build_prompt(comparison)),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "narrative_fallback_used",
                comparison_id=comparison.id,
                reason="timeout",
                timeout=self.timeout
            )
            return self.fallback_summary(comparison)
        except Exception as e:
            logger.warning(
                "narrative_fallback_used",
                comparison_id=comparison.id,
                reason="error",
                error=str(e)
            )
            return self.fallback_summary(comparison)

        if not summary or not summary.strip():
            logger.warning("narrative_fallback_used", comparison_id=comparison.id, reason="empty")
            return self.fallback_summary(comparison)

        return summary.strip()

    async def describe_all(self, comparisons: List[SectionComparison]) -> List[str]:
        """
        Narratives for many comparisons, concurrently.

        At most ``max_concurrency`` summarizer calls are in flight at once.

        Returns:
            One narrative per comparison, in input order
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(comparison: SectionComparison) -> str:
            async with semaphore:
                return await self.describe(comparison)

        narratives = await asyncio.gather(*(bounded(c) for c in comparisons))

        logger.info("narratives_generated", count=len(narratives))

        return list(narratives)

    def build_overall_prompt(self, statistics: ChangeStatistics) -> str:
        """Prompt describing the comparison as a whole."""
        percentage = statistics.change_percentage
        return (
            f"Document comparison: {statistics.added_sections} added, "
            f"{statistics.deleted_sections} deleted, {statistics.modified_sections} modified "
            f"sections out of {statistics.total_sections} total ({percentage:.0f}% changed). "
            f"Assess if this is a {classify_revision(percentage)} and provide brief business "
            f"impact analysis."
        )

    async def summarize_overall(self, statistics: ChangeStatistics) -> str:
        """Overall narrative; never raises."""
        if self.summarizer is None:
            return OVERALL_FALLBACK

        try:
            summary = await asyncio.wait_for(
                self.summarizer.summarize(self.build_overall_prompt(statistics)),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning("overall_summary_fallback_used", reason="timeout", timeout=self.timeout)
            return OVERALL_FALLBACK
        except Exception as e:
            logger.warning("overall_summary_fallback_used", reason="error", error=str(e))
            return OVERALL_FALLBACK

        return summary.strip() if summary and summary.strip() else OVERALL_FALLBACK
