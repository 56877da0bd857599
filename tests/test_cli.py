"""Tests for the risk-scorer CLI."""

import json

import pytest
from click.testing import CliRunner

from risk_scorer.cli import main as scorer_cli
from risk_scorer.store import SCORING_SNAPSHOTS

from conftest import make_records


@pytest.fixture
def store_path(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps(make_records()))
    return path


def snapshots_in(path):
    return json.loads(path.read_text()).get(SCORING_SNAPSHOTS, [])


class TestScoreCommand:
    def test_help(self):
        result = CliRunner().invoke(scorer_cli, ["score", "--help"])
        assert result.exit_code == 0
        assert "Score one environment" in result.output

    def test_score_records_snapshot(self, store_path):
        result = CliRunner().invoke(scorer_cli, [
            "score", "-d", str(store_path), "-s", "sol-1", "-e", "env-1",
        ])

        assert result.exit_code == 0, result.output
        assert "100/100" in result.output
        assert "Low" in result.output
        assert [s["score_id"] for s in snapshots_in(store_path)] == ["score-000001"]

    def test_dry_run(self, store_path):
        result = CliRunner().invoke(scorer_cli, [
            "score", "-d", str(store_path), "-s", "sol-1", "-e", "env-1", "--dry-run",
        ])
        assert result.exit_code == 0, result.output
        assert "not recorded" in result.output
        assert snapshots_in(store_path) == []

    def test_json_output(self, store_path):
        result = CliRunner().invoke(scorer_cli, [
            "score", "-d", str(store_path), "-s", "sol-1", "-e", "env-1", "-t", "DD", "-j",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["global_score"] == 100
        assert data["collection_type"] == "DD"

    def test_out_file(self, store_path, tmp_path):
        out = tmp_path / "snapshot.json"
        result = CliRunner().invoke(scorer_cli, [
            "score", "-d", str(store_path), "-s", "sol-1", "-e", "env-1", "-o", str(out),
        ])
        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text())["score_id"] == "score-000001"

    def test_verbose_prints_report(self, store_path):
        result = CliRunner().invoke(scorer_cli, [
            "score", "-d", str(store_path), "-s", "sol-1", "-e", "env-1", "-v",
        ])
        assert result.exit_code == 0, result.output
        assert "RISK SCORE CALCULATION REPORT" in result.output

    def test_insufficient_data(self, store_path):
        result = CliRunner().invoke(scorer_cli, [
            "score", "-d", str(store_path), "-s", "sol-1", "-e", "env-unknown",
        ])
        assert result.exit_code == 2
        assert "Insufficient data" in result.output
        assert snapshots_in(store_path) == []

    def test_corrupt_store(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{")
        result = CliRunner().invoke(scorer_cli, [
            "score", "-d", str(path), "-s", "sol-1", "-e", "env-1",
        ])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestScoreSolutionCommand:
    def test_scores_main_environment(self, store_path):
        result = CliRunner().invoke(scorer_cli, [
            "score-solution", "-d", str(store_path), "-s", "sol-1",
        ])
        assert result.exit_code == 0, result.output
        assert "1/1 solutions scored" in result.output
        assert len(snapshots_in(store_path)) == 1

    def test_unknown_solution(self, store_path):
        result = CliRunner().invoke(scorer_cli, [
            "score-solution", "-d", str(store_path), "-s", "sol-1", "-s", "sol-x",
        ])
        assert result.exit_code == 2
        assert "1/2 solutions scored" in result.output


class TestHistoryAndReport:
    def test_history_empty(self, store_path):
        result = CliRunner().invoke(scorer_cli, ["history", "-d", str(store_path)])
        assert result.exit_code == 0
        assert "No snapshots found" in result.output

    def test_history_and_report(self, store_path):
        runner = CliRunner()
        for _ in range(2):
            runner.invoke(scorer_cli, ["score", "-d", str(store_path), "-s", "sol-1", "-e", "env-1"])

        history = runner.invoke(scorer_cli, ["history", "-d", str(store_path), "-e", "env-1"])
        assert history.exit_code == 0, history.output
        assert "2 snapshots" in history.output

        report = runner.invoke(scorer_cli, ["report", "-d", str(store_path), "--id", "score-000002"])
        assert report.exit_code == 0, report.output
        assert "RISK SCORE CALCULATION REPORT" in report.output

    def test_report_unknown_id(self, store_path):
        result = CliRunner().invoke(scorer_cli, ["report", "-d", str(store_path), "--id", "score-000009"])
        assert result.exit_code == 1
        assert "snapshot not found" in result.output


class TestValidateCommand:
    def test_valid(self, store_path):
        result = CliRunner().invoke(scorer_cli, ["validate", "-d", str(store_path)])
        assert result.exit_code == 0
        assert "Store valid" in result.output

    def test_invalid(self, tmp_path):
        records = make_records()
        del records["environments"][0]["env_id"]
        path = tmp_path / "store.json"
        path.write_text(json.dumps(records))

        result = CliRunner().invoke(scorer_cli, ["validate", "-d", str(path)])
        assert result.exit_code == 1
        assert "environments[0].envId" in result.output


class TestConfigCommands:
    def test_init_config(self, tmp_path):
        out = tmp_path / "risk-scorer.yaml"
        runner = CliRunner()

        result = runner.invoke(scorer_cli, ["init-config", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert out.exists()

        again = runner.invoke(scorer_cli, ["init-config", "-o", str(out)])
        assert again.exit_code == 1
        assert "already exists" in again.output

        forced = runner.invoke(scorer_cli, ["init-config", "-o", str(out), "--force"])
        assert forced.exit_code == 0

    def test_invalid_config_file(self, store_path, tmp_path):
        config = tmp_path / "strict.yaml"
        config.write_text("risk_thresholds:\n  low: 101\n")
        result = CliRunner().invoke(scorer_cli, [
            "--config", str(config), "score", "-d", str(store_path), "-s", "sol-1", "-e", "env-1",
        ])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_config_option_thresholds(self, store_path, tmp_path):
        config = tmp_path / "strict.yaml"
        config.write_text("risk_thresholds:\n  low: 100\n  medium: 95\n  high: 90\n")
        records = make_records()
        records["hostings"] = []
        store_path.write_text(json.dumps(records))

        result = CliRunner().invoke(scorer_cli, [
            "--config", str(config), "score", "-d", str(store_path), "-s", "sol-1", "-e", "env-1", "-j",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["global_score"] == 80
        assert data["risk_level"] == "Critical"


class TestGenerateSample:
    def test_sample_is_scorable(self, tmp_path):
        out = tmp_path / "sample.json"
        runner = CliRunner()
        assert runner.invoke(scorer_cli, ["generate-sample", "-o", str(out)]).exit_code == 0

        result = runner.invoke(scorer_cli, [
            "score", "-d", str(out), "-s", "sol-demo", "-e", "env-demo-prod", "-j",
        ])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["solution_id"] == "sol-demo"
