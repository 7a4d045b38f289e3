"""Pydantic schemas for validation exports"""

from .validation import (
    IssueSchema, VerdictSchema, InvalidRecordSchema,
    BatchSummarySchema, BatchResultSchema,
    ReportMetadata, ValidationReport,
)

__all__ = [
    "IssueSchema", "VerdictSchema", "InvalidRecordSchema",
    "BatchSummarySchema", "BatchResultSchema",
    "ReportMetadata", "ValidationReport",
]
