"""Tests for aumai_apichaos.cli — Click command interface."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from aumai_apichaos.cli import main

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_config(tmp_path: Path, text: str, name: str = "chaos.yaml") -> Path:
    """Write a configuration file and return the path."""
    file_path = tmp_path / name
    file_path.write_text(text, encoding="utf-8")
    return file_path


_ALWAYS_503 = """\
probability: 1.0
error_codes: [503]
outcome_weights:
  delay: 0
  error: 100
  gibberish: 0
"""


# ---------------------------------------------------------------------------
# Top-level group
# ---------------------------------------------------------------------------


class TestMain:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("presets", "decide", "simulate"):
            assert command in result.output


# ---------------------------------------------------------------------------
# presets
# ---------------------------------------------------------------------------


class TestPresetsCommand:
    def test_text_output(self) -> None:
        result = CliRunner().invoke(main, ["presets"])
        assert result.exit_code == 0
        assert "mild" in result.output
        assert "network-like" in result.output
        assert "probability : 0.7" in result.output

    def test_json_output(self) -> None:
        result = CliRunner().invoke(main, ["presets", "--json-output"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert set(data) == {"mild", "wild", "extreme", "scheduled", "custom", "network-like"}
        assert data["extreme"]["error_codes"] == [500, 503, 502, 429, 404]


# ---------------------------------------------------------------------------
# decide
# ---------------------------------------------------------------------------


class TestDecideCommand:
    def test_zero_probability_is_none(self) -> None:
        result = CliRunner().invoke(
            main, ["decide", "--path", "/api/users", "--probability", "0"]
        )
        assert result.exit_code == 0
        assert "Outcome   : none" in result.output

    def test_config_file_error(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path, _ALWAYS_503)
        result = CliRunner().invoke(
            main, ["decide", "--path", "/api", "--config", str(config), "--json-output"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["kind"] == "error"
        assert data["status_code"] == 503

    def test_seed_is_reproducible(self) -> None:
        args = ["decide", "--path", "/api", "--probability", "1", "--seed", "7",
                "--no-sleep", "--json-output"]
        first = CliRunner().invoke(main, args)
        second = CliRunner().invoke(main, args)
        assert first.exit_code == 0
        first_outcome, second_outcome = json.loads(first.output), json.loads(second.output)
        assert first_outcome["kind"] == second_outcome["kind"]
        assert first_outcome["correlation_id"] == second_outcome["correlation_id"]

    def test_invalid_probability(self) -> None:
        result = CliRunner().invoke(
            main, ["decide", "--path", "/api", "--probability", "1.5"]
        )
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_unknown_preset_rejected_by_click(self) -> None:
        result = CliRunner().invoke(main, ["decide", "--path", "/", "--preset", "bananas"])
        assert result.exit_code != 0

    def test_path_required(self) -> None:
        result = CliRunner().invoke(main, ["decide"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# simulate
# ---------------------------------------------------------------------------


class TestSimulateCommand:
    def test_json_totals(self) -> None:
        result = CliRunner().invoke(
            main, ["simulate", "--requests", "25", "--probability", "0", "--json-output"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["total_requests"] == 25
        assert data["chaos_rate_percent"] == "0.0%"

    def test_config_file(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path, _ALWAYS_503)
        result = CliRunner().invoke(
            main,
            ["simulate", "--requests", "5", "--config", str(config), "--json-output"],
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["error_requests"] == 5
        assert data["chaos_rate"] == 1.0

    def test_json_config_with_override(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path, json.dumps({"probability": 1.0}), "chaos.json")
        result = CliRunner().invoke(
            main,
            ["simulate", "--requests", "4", "--config", str(config),
             "--probability", "0", "--json-output"],
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["chaos_rate"] == 0.0

    def test_text_output(self) -> None:
        result = CliRunner().invoke(
            main, ["simulate", "--requests", "10", "--probability", "1", "--no-sleep"]
        )
        assert result.exit_code == 0
        assert "Requests  : 10" in result.output
        assert "Chaos rate: 100.0%" in result.output

    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            main, ["simulate", "--config", str(tmp_path / "missing.yaml")]
        )
        assert result.exit_code == 1
        assert "Cannot read" in result.output

    def test_zero_requests_rejected(self) -> None:
        result = CliRunner().invoke(main, ["simulate", "--requests", "0"])
        assert result.exit_code != 0
