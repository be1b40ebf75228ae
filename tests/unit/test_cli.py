"""Tests for the pay-withhold CLI."""

import json

import pytest
import yaml
from click.testing import CliRunner

from paywithhold.cli.__main__ import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def request_file(isolated_config, request_body):
    """Write a request body to a file and return its path."""
    def _write(**overrides):
        path = isolated_config["tmp_path"] / "request.json"
        path.write_text(json.dumps(request_body(**overrides)))
        return str(path)
    return _write


class TestCalc:

    def test_json_output(self, runner, request_file):
        result = runner.invoke(cli, ["calc", request_file(), "--format", "json", "--no-audit"])
        assert result.exit_code == 0, result.output

        data = json.loads(result.stdout)
        assert data["totalStateTaxWithheld"] == 0
        assert data["netPay"] == 1847.0
        assert data["stateBreakdowns"][0]["jurisdictionCode"] == "TX"

    def test_text_output(self, runner, request_file):
        result = runner.invoke(cli, ["calc", request_file(residenceState="PA", workLocations=[
            {"jurisdictionCode": "NJ", "percentage": 100},
        ]), "--no-audit"])
        assert result.exit_code == 0, result.output
        assert "NJ" in result.output
        assert "reciprocity" in result.output
        assert "Net pay" in result.output

    def test_validation_error(self, runner, request_file):
        result = runner.invoke(cli, ["calc", request_file(workLocations=[
            {"jurisdictionCode": "TX", "percentage": 90},
        ])])
        assert result.exit_code == 1
        assert "Work location percentages must total 100%" in result.output

    def test_invalid_json(self, runner, isolated_config):
        path = isolated_config["tmp_path"] / "bad.json"
        path.write_text("{")
        result = runner.invoke(cli, ["calc", str(path)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_stdin(self, runner, isolated_config, request_body):
        result = runner.invoke(
            cli, ["calc", "-", "--format", "json", "--no-audit"], input=json.dumps(request_body())
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["employeeId"] == "EMP-001"

    def test_writes_audit_then_lists(self, runner, request_file):
        result = runner.invoke(cli, ["calc", request_file(), "--performed-by", "ops", "--format", "json"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["audit", "list", "--format", "json"])
        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert len(records) == 1
        assert records[0]["performedBy"] == "ops"

        result = runner.invoke(cli, ["audit", "list"])
        assert "EMP-001" in result.output
        assert "states: TX" in result.output


class TestRules:

    def test_years(self, runner):
        result = runner.invoke(cli, ["rules", "years"])
        assert result.exit_code == 0
        assert "2024" in result.output

    def test_show_all(self, runner, isolated_config):
        result = runner.invoke(cli, ["rules", "show", "--year", "2024"])
        assert result.exit_code == 0, result.output
        assert "CA" in result.output
        assert "no tax" in result.output

    def test_show_one(self, runner, isolated_config):
        result = runner.invoke(cli, ["rules", "show", "nj"])
        assert result.exit_code == 0, result.output
        assert "New Jersey" in result.output
        assert "Reciprocity partners: PA" in result.output

    def test_show_unknown(self, runner, isolated_config):
        result = runner.invoke(cli, ["rules", "show", "ZZ"])
        assert result.exit_code == 1

    def test_validate_good(self, runner, tmp_path, rules_data):
        path = tmp_path / "ok.yaml"
        path.write_text(yaml.safe_dump(rules_data()))
        result = runner.invoke(cli, ["rules", "validate", str(path)])
        assert result.exit_code == 0
        assert "OK" in result.output

    def test_validate_bad(self, runner, tmp_path, rules_data):
        data = rules_data()
        data["jurisdictions"]["AA"]["brackets"][0]["min"] = 5
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump(data))
        result = runner.invoke(cli, ["rules", "validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid rule table" in result.output


class TestSettingsAndAudit:

    def test_set_show_unset(self, runner, isolated_config):
        result = runner.invoke(cli, ["settings", "set", "unknown_jurisdiction_policy", "reject"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["settings", "show"])
        assert "unknown_jurisdiction_policy: reject" in result.output

        result = runner.invoke(cli, ["settings", "unset", "unknown_jurisdiction_policy"])
        assert "Cleared" in result.output

    def test_set_rejects_bad_value(self, runner, isolated_config):
        result = runner.invoke(cli, ["settings", "set", "unknown_jurisdiction_policy", "warn"])
        assert result.exit_code == 1

    def test_reject_policy_applies_to_calc(self, runner, request_file):
        runner.invoke(cli, ["settings", "set", "unknown_jurisdiction_policy", "reject"])
        result = runner.invoke(cli, ["calc", request_file(workLocations=[
            {"jurisdictionCode": "ZZ", "percentage": 100},
        ])])
        assert result.exit_code == 1
        assert "Unknown jurisdiction: ZZ" in result.output

    def test_flush_requires_spool(self, runner, isolated_config):
        result = runner.invoke(cli, ["audit", "flush"])
        assert result.exit_code == 1
        assert "audit_spool" in result.output

    def test_flush_with_spool(self, runner, isolated_config, request_file):
        spool = isolated_config["tmp_path"] / "spool.jsonl"
        runner.invoke(cli, ["settings", "set", "audit_spool", str(spool)])
        runner.invoke(cli, ["calc", request_file(), "--format", "json"])

        result = runner.invoke(cli, ["audit", "flush"])
        assert result.exit_code == 0, result.output
        assert "Delivered 0" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "pay-withhold" in result.output
