"""
Tests for the Typer CLI.
"""

import shutil

import pendulum
import pytest
from typer.testing import CliRunner

from trainerslots import __version__
from trainerslots.adapters.mock_backend_client import DEFAULT_DATA_FILE
from trainerslots.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("timezone: Europe/Berlin\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def writable_config_file(tmp_path):
    data_file = tmp_path / "trainers.json"
    shutil.copy(DEFAULT_DATA_FILE, data_file)
    path = tmp_path / "writable.yaml"
    path.write_text(f"timezone: Europe/Berlin\nmock_data_file: {data_file}\n", encoding="utf-8")
    return str(path)


class TestSlotsCommand:
    """Tests for the slots command."""

    def test_lists_open_slots(self, config_file):
        result = runner.invoke(
            app,
            ["slots", "trainer-anna", "--date", "2024-01-01", "--duration", "60", "--mock", "--config", config_file],
        )

        assert result.exit_code == 0, result.output
        assert "Monday, 2024-01-01" in result.output
        assert "10:00 AM" in result.output
        assert "booked" not in result.output

    def test_all_includes_booked(self, config_file):
        result = runner.invoke(
            app,
            ["slots", "trainer-anna", "--date", "2024-01-01", "--duration", "60", "--all", "--mock", "--config", config_file],
        )

        assert result.exit_code == 0, result.output
        assert "booked" in result.output

    def test_no_slots(self, config_file):
        result = runner.invoke(
            app,
            ["slots", "trainer-anna", "--date", "2024-01-05", "--mock", "--config", config_file],
        )

        assert result.exit_code == 0, result.output
        assert "No bookable slots" in result.output

    def test_unknown_trainer(self, config_file):
        result = runner.invoke(app, ["slots", "nobody", "--date", "2024-01-01", "--mock", "--config", config_file])

        assert result.exit_code == 1
        assert "Unknown trainer" in result.output

    def test_invalid_date(self, config_file):
        result = runner.invoke(app, ["slots", "trainer-anna", "--date", "2024-02-30", "--mock", "--config", config_file])

        assert result.exit_code == 1
        assert "Not a calendar date" in result.output


class TestOtherCommands:
    """Tests for week, availability, check-date, trainers and version."""

    def test_week(self, config_file):
        result = runner.invoke(
            app,
            ["week", "trainer-anna", "--start", "2024-01-01", "--days", "3", "--mock", "--config", config_file],
        )

        assert result.exit_code == 0, result.output
        assert "2024-01-03" in result.output
        assert "2024-01-04" not in result.output

    def test_availability(self, config_file):
        result = runner.invoke(app, ["availability", "trainer-anna", "--mock", "--config", config_file])

        assert result.exit_code == 0, result.output
        assert "Wednesday" in result.output
        assert "06:00 - 09:30" in result.output

    def test_check_date_available(self, config_file):
        next_monday = pendulum.today("Europe/Berlin").next(pendulum.MONDAY).format("YYYY-MM-DD")

        result = runner.invoke(app, ["check-date", "trainer-anna", next_monday, "--mock", "--config", config_file])

        assert result.exit_code == 0, result.output
        assert "is available" in result.output

    def test_check_date_unavailable(self, config_file):
        next_saturday = pendulum.today("Europe/Berlin").next(pendulum.SATURDAY).format("YYYY-MM-DD")

        result = runner.invoke(app, ["check-date", "trainer-anna", next_saturday, "--mock", "--config", config_file])

        assert result.exit_code == 2
        assert "not available" in result.output

    def test_trainers(self, config_file):
        result = runner.invoke(app, ["trainers", "--config", config_file])

        assert result.exit_code == 0, result.output
        assert "trainer-anna" in result.output
        assert "trainer-ben" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output


def _row(output, key):
    return next(line for line in output.splitlines() if key in line)


class TestOverrideCommands:
    """Tests for commands that save slot overrides."""

    def _slots(self, config, date="2024-01-03", duration="60"):
        result = runner.invoke(
            app,
            ["slots", "trainer-anna", "--date", date, "--duration", duration, "--all", "--mock", "--config", config],
        )
        assert result.exit_code == 0, result.output
        return result.output

    def test_set_slot_is_saved(self, writable_config_file):
        result = runner.invoke(
            app,
            ["set-slot", "trainer-anna", "2024-01-03", "07:00", "08:00", "--mock", "--config", writable_config_file],
        )

        assert result.exit_code == 0, result.output
        assert "07:00-07:30 (30 min) disabled" in result.output
        assert "07:30-08:00 (30 min) disabled" in result.output

        assert "disabled" in _row(self._slots(writable_config_file), "07:00-08:00")
        assert "disabled" in _row(self._slots(writable_config_file, duration="30"), "07:30-08:00")

    def test_writes_refused_for_bundled_data(self, config_file):
        result = runner.invoke(
            app,
            ["set-slot", "trainer-anna", "2024-01-03", "07:00", "08:00", "--mock", "--config", config_file],
        )

        assert result.exit_code == 1
        assert "read-only" in result.output
        assert "open" in _row(self._slots(config_file), "07:00-08:00")

    def test_set_date_with_duration(self, writable_config_file):
        runner.invoke(
            app,
            ["set-slot", "trainer-anna", "2024-01-03", "07:00", "08:00", "--mock", "--config", writable_config_file],
        )

        result = runner.invoke(
            app,
            ["set-date", "trainer-anna", "2024-01-03", "--enable", "--duration", "60", "--mock", "--config", writable_config_file],
        )

        assert result.exit_code == 0, result.output
        assert "1 slot override(s) on 2024-01-03 enabled" in result.output
        assert "open" in _row(self._slots(writable_config_file), "07:00-08:00")
        assert "disabled" in _row(self._slots(writable_config_file, duration="30"), "07:00-07:30")

    def test_replace_date(self, writable_config_file):
        result = runner.invoke(
            app,
            [
                "replace-date",
                "trainer-anna",
                "2024-01-03",
                "08:00-09:00",
                "06:00-06:30=on",
                "--mock",
                "--config",
                writable_config_file,
            ],
        )

        assert result.exit_code == 0, result.output
        assert "08:00-09:00 (60 min) disabled" in result.output
        assert "06:00-06:30 (30 min) enabled" in result.output

        half_hours = self._slots(writable_config_file, duration="30")
        assert "open" in _row(half_hours, "06:00-06:30")
        assert "disabled" in _row(self._slots(writable_config_file), "08:00-09:00")

    def test_replace_date_without_slots_clears(self, writable_config_file):
        result = runner.invoke(
            app,
            ["replace-date", "trainer-anna", "2024-01-03", "--mock", "--config", writable_config_file],
        )

        assert result.exit_code == 0, result.output
        assert "Cleared slot overrides on 2024-01-03" in result.output
        assert "open" in _row(self._slots(writable_config_file, duration="30"), "06:00-06:30")

    def test_replace_date_bad_slot(self, writable_config_file):
        result = runner.invoke(
            app,
            ["replace-date", "trainer-anna", "2024-01-03", "0800", "--mock", "--config", writable_config_file],
        )

        assert result.exit_code == 1
        assert "HH:MM-HH:MM" in result.output
