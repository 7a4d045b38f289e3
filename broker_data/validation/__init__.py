"""
Broker Data Validation Module

Field transformers, the required/format/business rule catalog and the
record/batch validator for scraped broker records
"""

from .types import (
    BatchResult,
    BatchSummary,
    FieldRule,
    InvalidRecord,
    RuleKind,
    ValidationIssue,
    ValidationLevel,
    ValidationVerdict,
)
from .record_validator import RecordValidator, ValidationEngine, load_raw_records, run_validation
from .qa_reporter import QAReportGenerator, format_timestamp, top_fields

__all__ = [
    'BatchResult',
    'BatchSummary',
    'FieldRule',
    'InvalidRecord',
    'RuleKind',
    'ValidationIssue',
    'ValidationLevel',
    'ValidationVerdict',
    'RecordValidator',
    'ValidationEngine',
    'QAReportGenerator',
    'format_timestamp',
    'load_raw_records',
    'run_validation',
    'top_fields',
]
