"""
Data models for the Redline comparison service.
"""

from redline.models.comparison import (
    ChangeSeverity,
    ChangeStatistics,
    ChangeType,
    ComparisonJobResult,
    ComparisonResult,
    ComparisonStatus,
    DiffSegment,
    DiffStatistics,
    Document,
    HealthCheck,
    JobStatus,
    Section,
    SectionChangeType,
    SectionComparison,
    SectionType,
    Severity,
)
from redline.models.rules import NormalizationRules, SegmentationRules, SeverityRules

__all__ = [
    "ChangeSeverity",
    "ChangeStatistics",
    "ChangeType",
    "ComparisonJobResult",
    "ComparisonResult",
    "ComparisonStatus",
    "DiffSegment",
    "DiffStatistics",
    "Document",
    "HealthCheck",
    "JobStatus",
    "NormalizationRules",
    "Section",
    "SectionChangeType",
    "SectionComparison",
    "SectionType",
    "SegmentationRules",
    "Severity",
    "SeverityRules",
]
