"""
QA Report Generator for broker data validation

Exports validated batches as JSON and summarizes which fields fail most often
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import structlog

from broker_data.config import Settings, settings as default_settings
from broker_data.schemas.validation import (
    BatchSummarySchema,
    InvalidRecordSchema,
    ReportMetadata,
    ValidationReport,
)
from .types import BatchResult, RuleKind

logger = structlog.get_logger()


def format_timestamp(moment: datetime) -> str:
    """
    Render a datetime as UTC ISO-8601 with millisecond precision.

    Example:
        >>> format_timestamp(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        '2024-01-02T03:04:05.000Z'
    """
    moment = moment.astimezone(timezone.utc)
    return moment.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def top_fields(counts: Dict[str, int], limit: int = 5) -> List[Tuple[str, int]]:
    """
    Rank fields by issue count.

    Ties keep the order in which the fields were first counted.

    Example:
        >>> top_fields({"name": 2, "rating": 5, "spread": 2}, limit=2)
        [('rating', 5), ('name', 2)]
    """
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


class QAReportGenerator:
    """Generates QA reports for validated batches"""

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings

    def build_report(self, result: BatchResult, generated_at: Optional[datetime] = None) -> ValidationReport:
        """Build the export model for a batch"""
        generated_at = generated_at or datetime.now(timezone.utc)
        summary = result.summary

        return ValidationReport(
            metadata=ReportMetadata(
                validated_at=format_timestamp(generated_at),
                validation_stats=BatchSummarySchema.from_summary(summary),
                total_processed=summary.total,
                valid_records=summary.valid,
                invalid_records=summary.invalid,
            ),
            valid_brokers=[dict(record) for record in result.valid],
            invalid_brokers=[InvalidRecordSchema.from_invalid(item) for item in result.invalid],
            validation_rules=len(RuleKind),
        )

    def write_json_report(
        self,
        result: BatchResult,
        output_path: Union[str, Path],
        generated_at: Optional[datetime] = None,
    ) -> str:
        """Write the JSON QA report and return its path"""
        file_path = Path(output_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        report = self.build_report(result, generated_at=generated_at)
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(report.model_dump(by_alias=True), f, indent=2, ensure_ascii=False, default=str)

        logger.info(
            "Validation results saved",
            path=str(file_path),
            valid=result.summary.valid,
            invalid=result.summary.invalid,
        )
        return str(file_path)

    def log_summary(self, result: BatchResult) -> None:
        """Log totals and the fields with the most errors and warnings"""
        summary = result.summary
        limit = self.settings.report_top_fields

        logger.info(
            "Validation summary",
            total=summary.total,
            valid=summary.valid,
            invalid=summary.invalid,
            total_errors=summary.total_errors,
            total_warnings=summary.total_warnings,
        )
        for field, count in top_fields(summary.top_errors, limit):
            logger.info("Top error field", field=field, errors=count)
        for field, count in top_fields(summary.top_warnings, limit):
            logger.info("Top warning field", field=field, warnings=count)

        if result.valid:
            sample = result.valid[0]
            logger.info(
                "Sample valid broker",
                name=sample.get('name'),
                rating=sample.get('rating'),
                slug=sample.get('slug'),
                regulations=len(sample.get('regulations') or []),
                platforms=len(sample.get('platforms') or []),
            )
