"""
Broker Record Validation Engine

Turns scraped broker records into canonical records and checks them against the
required, format and business rule tables. Required failures make a record
invalid; format and business failures are reported as warnings only.
"""

import copy
import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

import structlog

from broker_data.config import Settings, settings as default_settings
from broker_data.errors import RecordSourceError
from broker_data.observability import configure_logging
from .qa_reporter import QAReportGenerator, format_timestamp
from .rules import build_rules
from .transformers import build_transformers, generate_slug
from .types import (
    BatchResult,
    BatchSummary,
    FieldRule,
    InvalidRecord,
    RuleKind,
    ValidationIssue,
    ValidationVerdict,
)

logger = structlog.get_logger()

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordValidator:
    """Validator for scraped broker records.

    Holds only the rule table, the transformer table and a clock, so one
    instance can validate any number of batches; batch counters are returned
    in the BatchResult rather than kept on the instance.
    """

    def __init__(self, config: Optional[Settings] = None, clock: Optional[Clock] = None):
        self.settings = config or default_settings
        self.rules = build_rules(self.settings)
        self.transformers = build_transformers(self.settings)
        self.clock = clock or _utcnow

    def transform(self, field: str, value: Any) -> Any:
        """Apply the field's transformer, or pass a copy of the value through"""
        transformer = self.transformers.get(field)
        return transformer(value) if transformer else copy.deepcopy(value)

    def validate_record(self, raw: Any) -> ValidationVerdict:
        """Validate one raw record.

        The raw record is never modified. A non-mapping input is treated as an
        empty record, so it fails the required rules instead of raising.
        """
        if isinstance(raw, Mapping):
            source = raw
        else:
            logger.warning("Non-mapping record treated as empty", record_type=type(raw).__name__)
            source = {}

        record = {}
        verdict = ValidationVerdict(record=record)

        for rule in self.rules:
            if not self._applies(rule, source):
                continue

            value = self.transform(rule.field, source.get(rule.field))
            record[rule.field] = value

            # Format rules only look at values that survived the transform
            if rule.kind is RuleKind.FORMAT and not value:
                continue
            if rule.check(value):
                continue

            issue = ValidationIssue(
                field=rule.field,
                message=rule.message,
                value=value,
                level=rule.kind.level,
                kind=rule.kind,
            )
            if rule.kind is RuleKind.REQUIRED:
                verdict.errors.append(issue)
            else:
                verdict.warnings.append(issue)

        # Remaining fields: transform when known, otherwise copy as-is
        for field, value in source.items():
            if field not in record:
                record[field] = self.transform(field, value)

        slug = generate_slug(record.get('name'))
        if slug:
            record['slug'] = slug
        record['validatedAt'] = format_timestamp(self.clock())

        return verdict

    @staticmethod
    def _applies(rule: FieldRule, source: Mapping) -> bool:
        # Required rules always run. Format rules need a non-null raw value,
        # business rules only need the key, so {"regulations": None} still warns
        # while a record without the key does not.
        if rule.kind is RuleKind.REQUIRED:
            return True
        if rule.kind is RuleKind.FORMAT:
            return source.get(rule.field) is not None
        return rule.field in source

    def validate_batch(self, records: Iterable[Any]) -> BatchResult:
        """Validate records in order and aggregate per-field issue counts"""
        records = list(records)
        total = len(records)
        interval = self.settings.progress_log_interval

        result = BatchResult()
        error_fields: Counter = Counter()
        warning_fields: Counter = Counter()

        logger.info("Validating broker records", total=total)

        for index, raw in enumerate(records, start=1):
            verdict = self.validate_record(raw)

            if verdict.is_valid:
                result.valid.append(verdict.record)
            else:
                result.invalid.append(InvalidRecord(original=raw, verdict=verdict))

            error_fields.update(issue.field for issue in verdict.errors)
            warning_fields.update(issue.field for issue in verdict.warnings)

            if index % interval == 0 or index == total:
                logger.debug(
                    "Validation progress",
                    processed=index,
                    total=total,
                    percent=round(index / total * 100, 1),
                )

        result.summary = BatchSummary(
            total=total,
            valid=len(result.valid),
            invalid=len(result.invalid),
            total_errors=sum(error_fields.values()),
            total_warnings=sum(warning_fields.values()),
            top_errors=dict(error_fields),
            top_warnings=dict(warning_fields),
        )

        logger.info(
            "Batch validation completed",
            total=total,
            valid=result.summary.valid,
            invalid=result.summary.invalid,
            errors=result.summary.total_errors,
            warnings=result.summary.total_warnings,
        )
        return result


def load_raw_records(path: Union[str, Path]) -> List[Any]:
    """
    Load raw broker records from an extractor JSON file.

    Accepts either a top-level list or an object with a ``brokers`` list.

    Raises:
        FileNotFoundError: if the file does not exist
        RecordSourceError: if the file is not UTF-8 JSON or holds no record list
    """
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        logger.error("Record source is not UTF-8 text", path=str(path), error=str(e))
        raise RecordSourceError(f"Invalid UTF-8 in {path}: {e}", path=str(path)) from e
    except json.JSONDecodeError as e:
        logger.error("Record source is not valid JSON", path=str(path), error=str(e))
        raise RecordSourceError(f"Invalid JSON in {path}: {e}", path=str(path)) from e

    if isinstance(payload, dict):
        payload = payload.get('brokers')
    if not isinstance(payload, list):
        raise RecordSourceError(
            f"Expected a list of broker records in {path}",
            path=str(path),
            root_type=type(payload).__name__,
        )

    logger.info("Loaded broker records", path=str(path), count=len(payload))
    return payload


class ValidationEngine:
    """Load -> validate -> export flow over JSON files"""

    def __init__(
        self,
        config: Optional[Settings] = None,
        validator: Optional[RecordValidator] = None,
        qa_reporter: Optional[QAReportGenerator] = None,
    ):
        self.settings = config or default_settings
        self.validator = validator or RecordValidator(self.settings)
        self.qa_reporter = qa_reporter or QAReportGenerator(self.settings)

    def run(
        self,
        input_path: Optional[Union[str, Path]] = None,
        output_path: Optional[Union[str, Path]] = None,
    ) -> BatchResult:
        """Validate every record of ``input_path`` and write the QA report"""
        input_path = input_path or self.settings.source_path
        output_path = output_path or self.settings.report_output_path

        records = load_raw_records(input_path)
        result = self.validator.validate_batch(records)

        report_path = self.qa_reporter.write_json_report(result, output_path)
        logger.info("QA report generated", path=report_path)
        self.qa_reporter.log_summary(result)

        return result


def run_validation(
    input_path: Optional[Union[str, Path]] = None,
    output_path: Optional[Union[str, Path]] = None,
    config: Optional[Settings] = None,
) -> BatchResult:
    """Configure logging and run the engine once"""
    config = config or default_settings
    configure_logging(config)
    return ValidationEngine(config).run(input_path, output_path)
