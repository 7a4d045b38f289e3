"""
Tests for the QA report export, the record loader and the validation engine.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from broker_data.errors import BrokerDataError, RecordSourceError
from broker_data.validation import (
    QAReportGenerator,
    ValidationEngine,
    format_timestamp,
    load_raw_records,
    run_validation,
    top_fields,
)


GENERATED_AT = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


# ----------------------------------------------------------------------------
# top_fields
# ----------------------------------------------------------------------------

def test_top_fields_ranks_by_count():
    counts = {"name": 2, "rating": 5, "spread": 2, "leverage": 1}

    assert top_fields(counts, limit=3) == [("rating", 5), ("name", 2), ("spread", 2)]


def test_top_fields_default_limit():
    counts = {f"field{i}": i for i in range(10)}

    assert len(top_fields(counts)) == 5
    assert top_fields(counts)[0] == ("field9", 9)


def test_top_fields_empty():
    assert top_fields({}) == []


# ----------------------------------------------------------------------------
# Timestamps
# ----------------------------------------------------------------------------

def test_format_timestamp_truncates_to_milliseconds():
    moment = datetime(2024, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc)

    assert format_timestamp(moment) == "2024-01-02T03:04:05.123Z"


def test_format_timestamp_converts_to_utc():
    moment = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))

    assert format_timestamp(moment) == "2024-01-02T03:04:05.000Z"


# ----------------------------------------------------------------------------
# Report export
# ----------------------------------------------------------------------------

def test_build_report_metadata(validator, sample_brokers, test_settings):
    result = validator.validate_batch(sample_brokers)

    report = QAReportGenerator(test_settings).build_report(result, generated_at=GENERATED_AT)

    assert report.metadata.validated_at == "2024-05-06T07:08:09.000Z"
    assert report.metadata.total_processed == 4
    assert report.metadata.valid_records == 3
    assert report.metadata.invalid_records == 1
    assert report.validation_rules == 3
    assert len(report.valid_brokers) == 3
    assert len(report.invalid_brokers) == 1


def test_write_json_report(tmp_path, validator, sample_brokers, test_settings):
    result = validator.validate_batch(sample_brokers)
    output = tmp_path / "reports" / "validated-brokers.json"

    path = QAReportGenerator(test_settings).write_json_report(result, output, generated_at=GENERATED_AT)

    assert path == str(output)
    data = json.loads(output.read_text(encoding="utf-8"))
    assert set(data) == {"metadata", "validBrokers", "invalidBrokers", "validationRules"}
    assert data["metadata"]["validationStats"]["topErrors"] == {"name": 1}
    assert data["metadata"]["totalProcessed"] == 4
    assert data["validBrokers"][0]["slug"] == "admirals"
    assert data["validBrokers"][0]["validatedAt"] == "2024-01-02T03:04:05.000Z"
    assert data["invalidBrokers"][0]["original"]["name"] == "A"
    assert data["invalidBrokers"][0]["verdict"]["errors"][0]["kind"] == "required"


def test_write_json_report_keeps_unicode(tmp_path, validator, test_settings):
    result = validator.validate_batch([{"name": "Admirals", "rating": 4, "country": "Česko"}])
    output = tmp_path / "out.json"

    QAReportGenerator(test_settings).write_json_report(result, output)

    assert "Česko" in output.read_text(encoding="utf-8")


def test_log_summary_runs_for_empty_batch(validator, test_settings):
    QAReportGenerator(test_settings).log_summary(validator.validate_batch([]))


# ----------------------------------------------------------------------------
# Loader
# ----------------------------------------------------------------------------

def test_load_raw_records_from_brokers_key(extracted_file, sample_brokers):
    assert load_raw_records(extracted_file) == sample_brokers


def test_load_raw_records_from_list(tmp_path):
    path = tmp_path / "list.json"
    path.write_text(json.dumps([{"name": "Exness"}]), encoding="utf-8")

    assert load_raw_records(str(path)) == [{"name": "Exness"}]


@pytest.mark.parametrize("payload", ['{"items": []}', '"brokers"', '{"brokers": {"name": "x"}}', "null"])
def test_load_raw_records_rejects_other_shapes(tmp_path, payload):
    path = tmp_path / "bad.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(RecordSourceError) as exc_info:
        load_raw_records(path)

    assert isinstance(exc_info.value, BrokerDataError)
    assert exc_info.value.path == str(path)


def test_load_raw_records_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(RecordSourceError, match="Invalid JSON"):
        load_raw_records(path)


def test_load_raw_records_invalid_utf8(tmp_path):
    path = tmp_path / "latin.json"
    path.write_bytes(b'[{"name": "\xff\xfe"}]')

    with pytest.raises(RecordSourceError, match="Invalid UTF-8") as exc_info:
        load_raw_records(path)

    assert exc_info.value.path == str(path)
    assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)


def test_load_raw_records_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_raw_records(tmp_path / "missing.json")


# ----------------------------------------------------------------------------
# Engine
# ----------------------------------------------------------------------------

@pytest.mark.integration
def test_engine_run_end_to_end(tmp_path, extracted_file, validator, test_settings):
    output = tmp_path / "validated-brokers.json"
    engine = ValidationEngine(test_settings, validator=validator)

    result = engine.run(extracted_file, output)

    assert result.summary.total == 4
    assert result.summary.valid == 3
    data = json.loads(output.read_text(encoding="utf-8"))
    assert [b["name"] for b in data["validBrokers"]] == ["Admirals", "Test Broker", "Broker X"]


@pytest.mark.integration
def test_engine_uses_configured_paths(tmp_path, extracted_file, test_settings):
    output = tmp_path / "configured.json"
    config = test_settings.model_copy(update={
        "source_path": str(extracted_file),
        "report_output_path": str(output),
    })

    result = ValidationEngine(config).run()

    assert result.summary.invalid == 1
    assert output.exists()


@pytest.mark.integration
def test_run_validation(tmp_path, extracted_file, test_settings):
    output = tmp_path / "run.json"

    result = run_validation(extracted_file, output, config=test_settings)

    assert result.summary.total == 4
    assert json.loads(output.read_text(encoding="utf-8"))["metadata"]["invalidRecords"] == 1


def test_engine_propagates_missing_input(tmp_path, test_settings):
    with pytest.raises(FileNotFoundError):
        ValidationEngine(test_settings).run(tmp_path / "nope.json", tmp_path / "out.json")
