from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from metric_tracker.cli.main import _load_config, app

runner = CliRunner()


@pytest.fixture
def db_args(tmp_path, monkeypatch):
    monkeypatch.delenv("METRIC_STORAGE", raising=False)
    return ["--db-path", str(tmp_path / "metrics.db")]


def add(db_args, *args):
    return runner.invoke(app, ["add", *args, *db_args, "--log-level", "WARNING"])


def test_convert_to_base_unit() -> None:
    result = runner.invoke(app, ["convert", "distance", "150", "centimeter"])

    assert result.exit_code == 0
    assert "150 centimeter = 1.5 meter" in result.output


def test_convert_between_temperature_units() -> None:
    result = runner.invoke(app, ["convert", "temperature", "25", "celsius", "fahrenheit"])

    assert result.exit_code == 0
    assert "25 celsius = 77 fahrenheit" in result.output


def test_convert_rejects_unknown_unit() -> None:
    result = runner.invoke(app, ["convert", "distance", "1", "mile"])

    assert result.exit_code == 1
    assert "Invalid unit 'mile' for metric type 'distance'" in result.output


def test_add_then_list(db_args) -> None:
    added = add(
        db_args, "user123", "distance", "150", "centimeter",
        "--date", "2023-12-13 10:30:00", "--timezone", "America/New_York",
    )
    assert added.exit_code == 0, added.output
    assert "Metric recorded" in added.output
    assert "Timestamp: 1702481400" in added.output

    listed = runner.invoke(app, ["list", "user123", "distance", "--unit", "centimeter", *db_args])

    assert listed.exit_code == 0, listed.output
    assert "150" in listed.output
    assert "1 metric(s)" in listed.output


def test_chart_fills_missing_days(db_args) -> None:
    add(db_args, "user123", "distance", "100", "meter", "--date", "2023-12-13 10:30:00")
    add(db_args, "user123", "distance", "150", "meter", "--date", "2023-12-13 15:30:00")

    result = runner.invoke(
        app, ["chart", "user123", "distance", "2023-12-13", "2023-12-15", *db_args]
    )

    assert result.exit_code == 0, result.output
    assert "2023-12-13" in result.output
    assert "2023-12-15" in result.output
    assert "150" in result.output


def test_add_with_bad_timezone_fails(db_args) -> None:
    result = add(
        db_args, "user123", "distance", "1", "meter",
        "--date", "2023-12-13 10:30:00", "--timezone", "invalid-timezone",
    )

    assert result.exit_code == 1
    assert "Invalid IANA timezone format: invalid-timezone" in result.output


def test_chart_with_unknown_zone_fails(db_args) -> None:
    result = runner.invoke(
        app,
        ["chart", "user123", "distance", "2023-12-13", "2023-12-15", "-z", "Invalid/Timezone", *db_args],
    )

    assert result.exit_code == 1
    assert "Invalid IANA timezone: Invalid/Timezone" in result.output


def test_add_with_empty_user_reports_field(db_args) -> None:
    result = add(
        db_args, "", "distance", "1", "meter", "--date", "2023-12-13 10:30:00",
    )

    assert result.exit_code == 1
    assert "at least 1 character" in result.output
    assert "Traceback" not in result.output


def test_relative_db_path_made_absolute(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("METRIC_DB_PATH", raising=False)

    config = _load_config(Path("nested/metrics.db"))

    assert config.database.path == tmp_path / "nested" / "metrics.db"
