"""Tests for the sqltune command line interface."""

import json
import re
from pathlib import Path

import pytest
import structlog
from typer.testing import CliRunner

from sqltune.cli import app

runner = CliRunner()

SLOW_SQL = "SELECT * FROM orders ORDER BY created_at"
_RESULT_ID = re.compile(r"Result:\s+(\S+)")


@pytest.fixture(autouse=True)
def reset_logging(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SQLTUNE_CONFIG_FILE", raising=False)
    yield
    structlog.reset_defaults()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "sqltune.yaml"
    path.write_text(
        f"db_path: {tmp_path / 'state' / 'sqltune.db'}\n"
        f"vector_path: {tmp_path / 'state' / 'vectors'}\n"
        "log_level: WARNING\n"
        "llm:\n"
        "  embedder:\n"
        "    dimension: 64\n"
    )
    return path


def _invoke(config_file: Path, *args: str):
    return runner.invoke(app, ["--config", str(config_file), *args])


def _optimize(config_file: Path, sql: str = SLOW_SQL, slow_query_id: str = "7") -> str:
    result = _invoke(config_file, "optimize", "--slow-query-id", slow_query_id, sql)
    assert result.exit_code == 0, result.output
    match = _RESULT_ID.search(result.output)
    assert match is not None
    return match.group(1)


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.output.startswith("sqltune ")


def test_analyze_prints_pattern_json() -> None:
    result = runner.invoke(app, ["analyze", "SELECT * FROM users WHERE name LIKE '%john%' ORDER BY created_at"])

    assert result.exit_code == 0
    pattern = json.loads(result.stdout)
    assert pattern["type"] == "pattern-search"
    assert pattern["tables"] == ["users"]
    assert "select-star" in pattern["anti_patterns"]


def test_settings_loading_does_not_log_to_stdout() -> None:
    structlog.reset_defaults()

    result = runner.invoke(app, ["analyze", "SELECT 1"])

    assert result.exit_code == 0
    assert "config_file_not_found" not in result.output
    assert json.loads(result.stdout)["type"] == "basic-select"


def test_log_level_from_config_filters_settings_logs(tmp_path: Path) -> None:
    config = tmp_path / "quiet.yaml"
    config.write_text("log_level: ERROR\n")

    result = runner.invoke(app, ["--config", str(config), "analyze", "SELECT 1"])

    assert result.exit_code == 0
    assert "config_file_loaded" not in result.output
    json.loads(result.stdout)


def test_invalid_config_file_exits_with_error(tmp_path: Path) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("- not\n- a mapping\n")

    result = runner.invoke(app, ["--config", str(bad), "pending"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_seed_docs_and_search(config_file: Path) -> None:
    seeded = _invoke(config_file, "seed-docs")

    assert seeded.exit_code == 0, seeded.output
    assert "Seeded 6 documents" in seeded.output

    searched = _invoke(config_file, "search", "JOIN optimization index", "--limit", "2")

    assert searched.exit_code == 0, searched.output


def test_optimize_then_list_pending(config_file: Path) -> None:
    result_id = _optimize(config_file)

    listed = _invoke(config_file, "pending")

    assert listed.exit_code == 0
    assert result_id in listed.output
    assert "slow_query=7" in listed.output


def test_pending_when_empty(config_file: Path) -> None:
    result = _invoke(config_file, "pending")

    assert result.exit_code == 0
    assert "No pending optimizations." in result.output


def test_show_displays_suggestion(config_file: Path) -> None:
    result_id = _optimize(config_file)

    shown = _invoke(config_file, "show", result_id)

    assert shown.exit_code == 0
    assert "Status:     pending" in shown.output
    assert "Rationale:" in shown.output


def test_accept_then_accept_again_fails(config_file: Path) -> None:
    result_id = _optimize(config_file)

    accepted = _invoke(config_file, "accept", result_id)
    repeated = _invoke(config_file, "accept", result_id)

    assert accepted.exit_code == 0
    assert f"Accepted {result_id}" in accepted.output
    assert repeated.exit_code == 1
    assert result_id not in _invoke(config_file, "pending").output


def test_reject(config_file: Path) -> None:
    result_id = _optimize(config_file)

    rejected = _invoke(config_file, "reject", result_id)

    assert rejected.exit_code == 0
    assert f"Rejected {result_id}" in rejected.output


def test_show_unknown_id_fails(config_file: Path) -> None:
    result = _invoke(config_file, "show", "00000000-0000-0000-0000-000000000000")

    assert result.exit_code == 1


def test_optimize_blank_sql_fails(config_file: Path) -> None:
    result = _invoke(config_file, "optimize", "   ")

    assert result.exit_code == 1
