"""
Validation types and data structures
"""

from typing import Any, Callable, Dict, List, Optional, Union
from dataclasses import dataclass, field
from enum import Enum


# Scraped values arrive as strings, numbers, string lists or nothing at all
RawValue = Union[str, int, float, List[str], None]
RawRecord = Dict[str, Any]
CanonicalRecord = Dict[str, Any]

Transformer = Callable[[Any], Any]
Check = Callable[[Any], bool]


class ValidationLevel(Enum):
    """Validation severity levels"""
    ERROR = "error"
    WARN = "warn"


class RuleKind(Enum):
    """Rule categories; only REQUIRED failures block a record"""
    REQUIRED = "required"
    FORMAT = "format"
    BUSINESS = "business"

    @property
    def level(self) -> ValidationLevel:
        return ValidationLevel.ERROR if self is RuleKind.REQUIRED else ValidationLevel.WARN


@dataclass(frozen=True)
class FieldRule:
    """One check bound to one field"""
    field: str
    kind: RuleKind
    check: Check
    message: str


@dataclass(frozen=True)
class ValidationIssue:
    """A failed rule for one field of one record"""
    field: str
    message: str
    value: Any = None
    level: ValidationLevel = ValidationLevel.ERROR
    kind: Optional[RuleKind] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "value": self.value,
            "level": self.level.value,
            "kind": self.kind.value if self.kind else None,
        }


@dataclass
class ValidationVerdict:
    """Outcome of validating one raw record.

    ``record`` is always populated with whatever canonical values could be
    produced, even when the record is invalid.
    """
    record: CanonicalRecord
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def as_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [issue.as_dict() for issue in self.errors],
            "warnings": [issue.as_dict() for issue in self.warnings],
            "record": dict(self.record),
        }


@dataclass
class InvalidRecord:
    """An invalid raw record kept next to the verdict that rejected it"""
    original: Any
    verdict: ValidationVerdict


@dataclass
class BatchSummary:
    """Aggregate counters for one batch"""
    total: int = 0
    valid: int = 0
    invalid: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    top_errors: Dict[str, int] = field(default_factory=dict)
    top_warnings: Dict[str, int] = field(default_factory=dict)


@dataclass
class BatchResult:
    """Validated batch: canonical valid records, rejected records and counters"""
    valid: List[CanonicalRecord] = field(default_factory=list)
    invalid: List[InvalidRecord] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)

    def to_dict(self) -> Dict[str, Any]:
        # Imported lazily: schemas import this module
        from broker_data.schemas.validation import BatchResultSchema

        return BatchResultSchema.from_result(self).model_dump(by_alias=True)
