"""Validation export schemas

Field names are snake_case in Python and camelCase on the wire, matching the
JSON files the site importer reads.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from broker_data.validation.types import (
        BatchResult,
        BatchSummary,
        InvalidRecord,
        ValidationIssue,
        ValidationVerdict,
    )


class _ExportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class IssueSchema(_ExportModel):
    """One failed rule"""
    field: str = Field(..., description="Field the rule checks")
    message: str = Field(..., description="Human-readable rule message")
    value: Any = Field(None, description="Canonical value that failed")
    level: str = Field(..., description="error or warn")
    kind: Optional[str] = Field(None, description="required, format or business")

    @classmethod
    def from_issue(cls, issue: "ValidationIssue") -> "IssueSchema":
        return cls(**issue.as_dict())


class VerdictSchema(_ExportModel):
    """Per-record validation outcome"""
    is_valid: bool = Field(..., alias="isValid")
    errors: List[IssueSchema] = Field(default_factory=list)
    warnings: List[IssueSchema] = Field(default_factory=list)
    record: Dict[Any, Any] = Field(default_factory=dict, description="Best-effort canonical record")

    @classmethod
    def from_verdict(cls, verdict: "ValidationVerdict") -> "VerdictSchema":
        return cls(
            is_valid=verdict.is_valid,
            errors=[IssueSchema.from_issue(issue) for issue in verdict.errors],
            warnings=[IssueSchema.from_issue(issue) for issue in verdict.warnings],
            record=dict(verdict.record),
        )


class InvalidRecordSchema(_ExportModel):
    """Rejected raw record with its verdict"""
    original: Any = Field(..., description="Raw record as received")
    verdict: VerdictSchema

    @classmethod
    def from_invalid(cls, invalid: "InvalidRecord") -> "InvalidRecordSchema":
        return cls(original=invalid.original, verdict=VerdictSchema.from_verdict(invalid.verdict))


class BatchSummarySchema(_ExportModel):
    """Batch counters and per-field issue frequencies"""
    total: int = Field(..., description="Records processed")
    valid: int = Field(..., description="Records without errors")
    invalid: int = Field(..., description="Records with at least one error")
    total_errors: int = Field(..., alias="totalErrors")
    total_warnings: int = Field(..., alias="totalWarnings")
    top_errors: Dict[str, int] = Field(default_factory=dict, alias="topErrors")
    top_warnings: Dict[str, int] = Field(default_factory=dict, alias="topWarnings")

    @classmethod
    def from_summary(cls, summary: "BatchSummary") -> "BatchSummarySchema":
        return cls(
            total=summary.total,
            valid=summary.valid,
            invalid=summary.invalid,
            total_errors=summary.total_errors,
            total_warnings=summary.total_warnings,
            top_errors=dict(summary.top_errors),
            top_warnings=dict(summary.top_warnings),
        )


class BatchResultSchema(_ExportModel):
    """Serialized BatchResult"""
    valid: List[Dict[Any, Any]] = Field(default_factory=list)
    invalid: List[InvalidRecordSchema] = Field(default_factory=list)
    summary: BatchSummarySchema

    @classmethod
    def from_result(cls, result: "BatchResult") -> "BatchResultSchema":
        return cls(
            valid=[dict(record) for record in result.valid],
            invalid=[InvalidRecordSchema.from_invalid(item) for item in result.invalid],
            summary=BatchSummarySchema.from_summary(result.summary),
        )


class ReportMetadata(_ExportModel):
    """Header of the exported QA report"""
    validated_at: str = Field(..., alias="validatedAt")
    validation_stats: BatchSummarySchema = Field(..., alias="validationStats")
    total_processed: int = Field(..., alias="totalProcessed")
    valid_records: int = Field(..., alias="validRecords")
    invalid_records: int = Field(..., alias="invalidRecords")


class ValidationReport(_ExportModel):
    """Exported QA report: metadata, valid brokers and rejected brokers"""
    metadata: ReportMetadata
    valid_brokers: List[Dict[Any, Any]] = Field(default_factory=list, alias="validBrokers")
    invalid_brokers: List[InvalidRecordSchema] = Field(default_factory=list, alias="invalidBrokers")
    validation_rules: int = Field(..., alias="validationRules", description="Number of rule categories")
