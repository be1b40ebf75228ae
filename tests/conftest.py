"""Shared fixtures for pay-withhold tests."""

import copy
from datetime import datetime, timezone

import pytest

from paywithhold.sdk import InMemoryAuditSink, WithholdingEngine, load_tax_rules
from paywithhold.sdk.taxes import TaxRules

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)

# Small table for tests that need to change a constant.
BASE_RULES_DATA = {
    "year": 2024,
    "federal": {
        "default_filing_status": "single",
        "allowance_credit_amount": 4300,
        "standard_deduction_by_filing_status": {"single": 14600, "mfj": 29200},
        "brackets": [
            {"min": 0, "max": 11600, "rate": 0.10, "cumulative_base": 0},
            {"min": 11600, "max": None, "rate": 0.12, "cumulative_base": 1160},
        ],
    },
    "fica": {
        "social_security_rate": 0.062,
        "social_security_wage_cap": None,
        "medicare_rate": 0.0145,
        "medicare_surtax_rate": 0.009,
        "medicare_surtax_threshold": 200000,
    },
    "jurisdictions": {
        "TX": {"name": "Texas"},
        "AA": {
            "name": "Self-partnered",
            "flat_rate": 0.05,
            "reciprocity_partners": ["AA", "BB"],
            "brackets": [{"min": 0, "max": None, "rate": 0.05, "cumulative_base": 0}],
        },
    },
}


def make_rules_data(**overrides) -> dict:
    """Deep copy of BASE_RULES_DATA with top-level sections replaced/merged."""
    data = copy.deepcopy(BASE_RULES_DATA)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key].update(value)
        else:
            data[key] = value
    return data


def make_request(**overrides) -> dict:
    """Valid camelCase request body: $2,000 in Texas, single."""
    body = {
        "employeeId": "EMP-001",
        "grossPay": 2000,
        "payPeriodStart": "2024-03-01",
        "payPeriodEnd": "2024-03-15",
        "workLocations": [{"jurisdictionCode": "TX", "percentage": 100, "daysWorked": 10}],
        "residenceState": "TX",
        "filingStatus": "single",
        "allowances": 0,
        "additionalWithholding": 0,
    }
    body.update(overrides)
    return body


@pytest.fixture
def rules():
    """Bundled 2024 rule table."""
    return load_tax_rules(2024)


@pytest.fixture
def small_rules():
    return TaxRules.model_validate(make_rules_data())


@pytest.fixture
def sink():
    return InMemoryAuditSink()


@pytest.fixture
def engine(rules, sink):
    """Engine on the bundled table with an in-memory audit sink and fixed clock."""
    return WithholdingEngine(rules, audit_sink=sink, clock=lambda: FIXED_NOW)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point config and data directories at tmp_path."""
    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"
    config_dir.mkdir()
    data_dir.mkdir()

    monkeypatch.setenv("PAY_WITHHOLD_CONFIG_PATH", str(config_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(data_dir))

    return {"config_dir": config_dir, "data_dir": data_dir, "tmp_path": tmp_path}


@pytest.fixture
def request_body():
    """Factory for request bodies; keyword arguments override fields."""
    return make_request


@pytest.fixture
def rules_data():
    """Factory for rule table dicts; see make_rules_data."""
    return make_rules_data
