"""
Data models for document comparison operations.

These models define the structure of the documents, sections, diff segments and
comparison results exchanged between the engine, the API and the workers.
Serialised field names are camelCase so existing consumers keep working.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model that serialises with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ComparisonStatus(str, Enum):
    """Status of a comparison job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SectionType(str, Enum):
    """Category inferred from a section title."""

    INTRODUCTION = "Introduction"
    CONCLUSION = "Conclusion"
    TABLE_FIGURE = "Table/Figure"
    NUMBERED = "Numbered Section"
    MAJOR_HEADER = "Major Header"
    CONTENT = "Content Section"


class ChangeType(str, Enum):
    """Line-level change type of a diff segment."""

    UNCHANGED = "Unchanged"
    INSERTED = "Inserted"
    DELETED = "Deleted"
    MODIFIED = "Modified"


class Severity(str, Enum):
    """Line-level severity tier."""

    MINOR = "Minor"
    MODERATE = "Moderate"
    MAJOR = "Major"


class SectionChangeType(str, Enum):
    """Section-level change type."""

    UNCHANGED = "Unchanged"
    ADDED = "Added"
    DELETED = "Deleted"
    MODIFIED = "Modified"


class ChangeSeverity(str, Enum):
    """Section-level severity tier."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Document(CamelModel):
    """
    A document as supplied by the extraction collaborator.

    ``pages`` holds one plain-text string per page, in page order.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Document (file) name")
    pages: List[str] = Field(default_factory=list, description="Raw text per page")
    full_text: str = Field(default="", description="Concatenated text of all pages")

    @classmethod
    def from_pages(cls, name: str, pages: List[str]) -> "Document":
        """Build a document, deriving ``full_text`` from the non-blank pages."""
        return cls(
            name=name,
            pages=list(pages),
            full_text="\n".join(page.strip() for page in pages if page.strip())
        )


class Section(CamelModel):
    """A titled, contiguous block of document text."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Identifier, unique within a document")
    title: str = Field(default="", description="Normalised header line, empty when untitled")
    page_number: int = Field(..., ge=1, description="Page the section starts on")
    section_type: SectionType = Field(
        default=SectionType.CONTENT,
        alias="type",
        description="Category inferred from the title"
    )
    content: str = Field(default="", description="Raw text body, including the header line")
    document_name: str = Field(default="", description="Name of the owning document")
    extracted_at: datetime = Field(default_factory=utc_now, description="Extraction time")

    @computed_field(alias="wordCount")
    @property
    def word_count(self) -> int:
        """Number of whitespace-separated words in the content."""
        return len(self.content.split())


class DiffSegment(CamelModel):
    """
    A single line-level change unit.

    A line exists on at most one page per document, so each side carries at
    most one page number.
    """

    change_type: ChangeType = Field(..., alias="type", description="Type of change")
    text: str = Field(default="", description="Line text (new text for modified lines)")
    page_number_a: Optional[int] = Field(None, alias="pageNumberA", description="Page in document A")
    page_number_b: Optional[int] = Field(None, alias="pageNumberB", description="Page in document B")
    severity: Severity = Field(default=Severity.MINOR, description="Line-level severity")
    previous_text: Optional[str] = Field(
        None,
        description="Document A text of a modified line"
    )


class SectionComparison(CamelModel):
    """Pairing of a document A section with a document B section (either may be absent)."""

    id: str = Field(..., description="Comparison identifier")
    section_a: Optional[Section] = Field(None, alias="sectionA", description="Section in document A")
    section_b: Optional[Section] = Field(None, alias="sectionB", description="Section in document B")
    change_type: SectionChangeType = Field(..., description="Section-level change type")
    similarity_score: Optional[float] = Field(
        None,
        ge=0.0,
        le=1.0,
        description="Content similarity, set only when both sections are present"
    )
    page_number_a: Optional[int] = Field(None, alias="pageNumberA", description="Page in document A")
    page_number_b: Optional[int] = Field(None, alias="pageNumberB", description="Page in document B")
    narrative_summary: str = Field(default="", description="Narrative description of the change")
    severity: ChangeSeverity = Field(default=ChangeSeverity.LOW, description="Section-level severity")

    @property
    def sort_page(self) -> int:
        """Page used to order comparisons."""
        if self.page_number_a is not None:
            return self.page_number_a
        if self.page_number_b is not None:
            return self.page_number_b
        return 0


class ChangeStatistics(CamelModel):
    """Counts of section comparisons by change type."""

    added_sections: int = Field(default=0, description="Sections only in document B")
    deleted_sections: int = Field(default=0, description="Sections only in document A")
    modified_sections: int = Field(default=0, description="Paired sections that changed")
    unchanged_sections: int = Field(default=0, description="Paired sections that did not change")

    @computed_field(alias="totalSections")
    @property
    def total_sections(self) -> int:
        """Total number of comparisons."""
        return (
            self.added_sections
            + self.deleted_sections
            + self.modified_sections
            + self.unchanged_sections
        )

    @computed_field(alias="changePercentage")
    @property
    def change_percentage(self) -> float:
        """Share of comparisons that are not unchanged, in percent."""
        if self.total_sections == 0:
            return 0.0
        changed = self.added_sections + self.deleted_sections + self.modified_sections
        return changed / self.total_sections * 100


class DiffStatistics(CamelModel):
    """Counts of diff segments by change type and severity."""

    inserted: int = Field(default=0, description="Inserted lines")
    deleted: int = Field(default=0, description="Deleted lines")
    modified: int = Field(default=0, description="Modified lines")
    unchanged: int = Field(default=0, description="Unchanged lines")
    major: int = Field(default=0, description="Major severity segments")
    moderate: int = Field(default=0, description="Moderate severity segments")
    minor: int = Field(default=0, description="Minor severity segments")


class ComparisonResult(CamelModel):
    """
    Result of comparing two documents.

    Aggregate root holding both line-level and section-level views of the
    comparison.
    """

    document_a_name: str = Field(..., alias="documentAName", description="Name of document A")
    document_b_name: str = Field(..., alias="documentBName", description="Name of document B")
    sections_a: List[Section] = Field(default_factory=list, alias="sectionsA", description="Sections of A")
    sections_b: List[Section] = Field(default_factory=list, alias="sectionsB", description="Sections of B")
    section_comparisons: List[SectionComparison] = Field(
        default_factory=list,
        description="Section pairings ordered by page"
    )
    overall_similarity: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Blended similarity score (0-1)"
    )
    change_statistics: ChangeStatistics = Field(
        default_factory=ChangeStatistics,
        description="Section counts by change type"
    )
    diff_segments: List[DiffSegment] = Field(
        default_factory=list,
        description="Page-ordered line-level diff"
    )
    diff_statistics: DiffStatistics = Field(
        default_factory=DiffStatistics,
        description="Diff segment counts"
    )
    overall_summary: str = Field(default="", description="Narrative summary of the whole comparison")
    timestamp: datetime = Field(default_factory=utc_now, description="Comparison time")

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialise with camelCase field names and JSON-safe values."""
        return self.model_dump(by_alias=True, mode="json")


class JobStatus(CamelModel):
    """
    Status of a comparison job.

    Used for polling job status before results are ready.
    """

    job_id: str = Field(..., description="Unique job identifier")
    status: ComparisonStatus = Field(..., description="Job status")
    progress_percentage: Optional[float] = Field(
        None,
        ge=0.0,
        le=100.0,
        description="Progress percentage"
    )
    current_step: Optional[str] = Field(None, description="Current processing step")
    message: Optional[str] = Field(None, description="Status message")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update time")


class ComparisonJobResult(CamelModel):
    """Outcome of a background comparison job."""

    job_id: str = Field(..., description="Unique job identifier")
    status: ComparisonStatus = Field(..., description="Job status")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
    completed_at: Optional[datetime] = Field(None, description="Completion time")
    processing_time_seconds: Optional[float] = Field(
        None,
        description="Processing time in seconds"
    )
    result: Optional[ComparisonResult] = Field(None, description="Comparison result when completed")
    error: Optional[str] = Field(None, description="Error message if failed")
    error_details: Optional[Dict[str, Any]] = Field(
        None,
        description="Detailed error information"
    )


class HealthCheck(CamelModel):
    """Health check response."""

    status: str = Field(default="healthy", description="Service status")
    timestamp: datetime = Field(default_factory=utc_now, description="Check time")
    version: str = Field(..., description="API version")
    broker_connected: bool = Field(default=False, description="Celery broker connection status")
    celery_workers: int = Field(default=0, description="Number of active Celery workers")
    llm_configured: bool = Field(default=False, description="LLM configuration status")
