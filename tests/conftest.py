"""
Test configuration and fixtures for the broker data validation suite.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

from broker_data.config import Settings
from broker_data.validation import RecordValidator


FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def test_settings() -> Settings:
    """Default settings, isolated from any .env in the working directory"""
    return Settings(_env_file=None)


@pytest.fixture(scope="function")
def validator(test_settings: Settings) -> RecordValidator:
    """Validator with a frozen clock so validatedAt is predictable"""
    return RecordValidator(test_settings, clock=lambda: FIXED_NOW)


@pytest.fixture(scope="function")
def sample_brokers() -> List[Dict[str, Any]]:
    """Raw records shaped like the extractor output"""
    return [
        {
            "name": "  Admirals™ ",
            "rating": "4.6",
            "description": (
                "Admirals is a long-standing multi-asset broker offering tight spreads. "
                "The DFX Team at DailyForex reviewed this broker."
            ),
            "minDeposit": "$100",
            "spread": "0.6",
            "leverage": "1:500x",
            "regulations": ["FCA", "CySEC", "https://cdn.example.com/fca.png", "FCA"],
            "platforms": ["mt4", "MT5", "web trader"],
            "accountTypes": ["standard", "islamic"],
            "sourceFile": "admirals.html",
        },
        {
            "name": "A",
            "rating": 4,
            "sourceFile": "a.html",
        },
        {
            "name": "Test Broker",
            "rating": 3,
            "regulations": [],
            "sourceFile": "test-broker.html",
        },
        {
            "name": "Broker X",
            "rating": 3,
            "platforms": ["mt4", "MT4", "ctrader"],
        },
    ]


@pytest.fixture(scope="function")
def extracted_file(tmp_path, sample_brokers):
    """Extractor output file with a top-level 'brokers' list"""
    path = tmp_path / "extracted-brokers-data.json"
    path.write_text(json.dumps({"brokers": sample_brokers}), encoding="utf-8")
    return path


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
