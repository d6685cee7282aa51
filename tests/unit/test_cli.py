"""Tests for the paystub-tracker CLI."""

import json

import pytest
from click.testing import CliRunner

from stubtrack.cli.__main__ import cli


@pytest.fixture
def runner(isolated_config):
    return CliRunner()


@pytest.fixture
def stub_files(tmp_path, fixture_text):
    """Copy text fixtures into a temp dir, keyed by short name."""
    files = {}
    for name, fixture in [
        ("june", "stub_2024-06-14.txt"),
        ("march", "stub_consolidated.txt"),
        ("feb", "stub_unbalanced.txt"),
    ]:
        path = tmp_path / f"{name}.txt"
        path.write_text(fixture_text(fixture))
        files[name] = path
    blank = tmp_path / "blank.txt"
    blank.write_text("\n")
    files["blank"] = blank
    return files


class TestParseCommand:
    def test_json_output(self, runner, stub_files):
        result = runner.invoke(cli, ["parse", str(stub_files["june"]), "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert len(data) == 1
        parsed = data[0]["result"]
        assert data[0]["error"] is None
        assert parsed["record"]["pay_date"] == "2024-06-14"
        assert parsed["record"]["check_number"] == "004512"
        assert parsed["record"]["gross"] == {"cur": "4000.00", "ytd": "52000.00"}
        assert "raw_text" not in parsed["record"]
        assert parsed["reconciliation"]["balanced"] is True
        assert [c["type"] for c in parsed["contributions"]][:2] == ["Roth 401k", "401k Match"]

    def test_json_raw_text(self, runner, stub_files):
        result = runner.invoke(cli, ["parse", str(stub_files["feb"]), "--format", "json", "--raw"])

        assert result.exit_code == 0, result.output
        record = json.loads(result.output)[0]["result"]["record"]
        assert record["raw_text"].startswith("Check Date Feb 2, 2024")

    def test_text_output(self, runner, stub_files):
        result = runner.invoke(cli, ["parse", str(stub_files["june"])])

        assert result.exit_code == 0, result.output
        assert "2024-06-14" in result.output
        assert "Federal Income Tax" in result.output
        assert "$1,698.00" in result.output

    def test_unbalanced_warning_shown(self, runner, stub_files):
        result = runner.invoke(cli, ["parse", str(stub_files["feb"])])

        assert result.exit_code == 0, result.output
        assert "does not reconcile" in result.output

    def test_failed_file_sets_exit_code(self, runner, stub_files):
        result = runner.invoke(
            cli, ["parse", str(stub_files["june"]), str(stub_files["blank"]), "--format", "json"]
        )

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data[0]["result"] is not None
        assert data[1]["result"] is None
        assert "no text layer" in data[1]["error"]

    def test_missing_file_rejected(self, runner, tmp_path):
        result = runner.invoke(cli, ["parse", str(tmp_path / "nope.txt")])
        assert result.exit_code == 2

    def test_custom_rules(self, runner, stub_files, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text(
            "name: gross-only\n"
            "money:\n"
            "  gross_cur:\n"
            "    patterns: ['GROSS\\s+PAY']\n"
        )
        result = runner.invoke(
            cli, ["parse", str(stub_files["june"]), "--format", "json", "--rules", str(rules)]
        )

        assert result.exit_code == 0, result.output
        record = json.loads(result.output)[0]["result"]["record"]
        assert record["gross"]["cur"] == "4000.00"
        assert record["tax_federal"] is None

    def test_invalid_rules(self, runner, stub_files, tmp_path):
        rules = tmp_path / "bad.yaml"
        rules.write_text("taxes:\n  church:\n    patterns: ['TITHE']\n")
        result = runner.invoke(cli, ["parse", str(stub_files["june"]), "--rules", str(rules)])

        assert result.exit_code == 1
        assert "unknown taxes" in result.output


class TestSummaryCommand:
    def test_summary(self, runner, stub_files):
        result = runner.invoke(cli, ["summary", str(stub_files["june"]), str(stub_files["march"])])

        assert result.exit_code == 0, result.output
        assert "Paycheck Summary (2 stubs)" in result.output
        assert "$7,000.00" in result.output
        assert "Q2 (Apr-Jun)" in result.output

    def test_duplicate_pay_date_counted_once(self, runner, stub_files):
        june = str(stub_files["june"])
        result = runner.invoke(cli, ["summary", june, june])

        assert result.exit_code == 0, result.output
        assert "Paycheck Summary (1 stubs)" in result.output

    def test_goal_progress(self, runner, stub_files):
        result = runner.invoke(cli, ["summary", str(stub_files["june"]), "--goal", "10500"])

        assert result.exit_code == 0, result.output
        assert "$1,050.00 of $10,500.00 invested" in result.output
        assert "(10.0%)" in result.output

    def test_nothing_parsed(self, runner, stub_files):
        result = runner.invoke(cli, ["summary", str(stub_files["blank"])])

        assert result.exit_code == 1
        assert "No stubs could be parsed" in result.output


class TestRulesAndConfig:
    def test_rules_show(self, runner):
        result = runner.invoke(cli, ["rules", "show"])

        assert result.exit_code == 0, result.output
        assert "Catalogue: default (default.yaml)" in result.output
        assert "check_date -> period_end -> processing_date" in result.output
        assert "Other dates: period_begin" in result.output
        assert "After-tax 401k" in result.output

    def test_config_set_and_show(self, runner, isolated_config):
        result = runner.invoke(cli, ["config", "set", "reconcile_tolerance", "0.05"])
        assert result.exit_code == 0, result.output
        assert str(isolated_config / "settings.json") in result.output

        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "reconcile_tolerance: 0.05" in result.output
        assert "rules_path: bundled default.yaml (default)" in result.output

    def test_config_set_invalid(self, runner):
        result = runner.invoke(cli, ["config", "set", "reconcile_tolerance", "lots"])
        assert result.exit_code == 1
        assert "decimal amount" in result.output

    def test_config_set_unknown_key(self, runner):
        result = runner.invoke(cli, ["config", "set", "data_dir", "/tmp"])
        assert result.exit_code == 2
