"""
Tests for settings, logging configuration and the command line.
"""

import json
import logging

import pytest

from ethos85.config.logging_config import (
    ROOT_LOGGER,
    StructuredFormatter,
    get_logger,
    log_performance,
    setup_logging,
)
from ethos85.config.settings import Settings, get_settings
from ethos85.main import main


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self, settings):
        """Defaults match the upload form and chart budget."""
        assert settings.log_level == "INFO"
        assert settings.default_ethanol_percent == 10.0
        assert settings.default_engine == "B58"
        assert settings.chart_max_points == 150
        assert settings.max_upload_bytes == 20 * 1024 * 1024
        assert settings.validate() == (True, [])

    def test_environment_overrides(self, settings, monkeypatch):
        """ETHOS85_* variables override the defaults."""
        monkeypatch.setenv("ETHOS85_DEFAULT_ETHANOL", "40")
        monkeypatch.setenv("ETHOS85_CHART_MAX_POINTS", "300")
        monkeypatch.setenv("ETHOS85_LOG_TO_FILE", "true")

        fresh = Settings()

        assert fresh.default_ethanol_percent == 40.0
        assert fresh.chart_max_points == 300
        assert fresh.log_to_file is True

    def test_bad_numbers_fall_back(self, settings, monkeypatch):
        """Unparsable numbers keep the default."""
        monkeypatch.setenv("ETHOS85_CHART_MAX_POINTS", "lots")

        assert Settings().chart_max_points == 150

    def test_validate_reports_errors(self, settings):
        """Invalid values are reported, not raised."""
        settings.chart_max_points = 0
        settings.default_ethanol_percent = 95

        is_valid, errors = settings.validate()

        assert is_valid is False
        assert len(errors) == 2

    def test_singleton(self, settings):
        """get_settings() returns one shared instance."""
        assert get_settings() is get_settings()


class TestLogging:
    """Package logger setup."""

    def test_get_logger_under_root(self):
        """Module loggers live under the package root."""
        assert get_logger("ethos85.services.afr_analyzer").name == "ethos85.services.afr_analyzer"
        assert get_logger("something.else").name == f"{ROOT_LOGGER}.else"

    def test_setup_logging_file(self, tmp_path):
        """File logging writes under the log directory."""
        logger = setup_logging("DEBUG", log_to_file=True, log_to_console=False, log_dir=tmp_path)
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert any(p.suffix == ".log" for p in tmp_path.iterdir())

    def test_structured_formatter(self):
        """JSON lines carry the message and level."""
        record = logging.LogRecord("ethos85", logging.INFO, __file__, 1, "parsed", None, None)
        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "parsed"
        assert data["level"] == "INFO"

    def test_log_performance_reraises(self):
        """Failures inside a timed block propagate."""
        with pytest.raises(ValueError):
            with log_performance(get_logger(__name__), "analyze_log"):
                raise ValueError("boom")


class TestCommandLine:
    """ethos85 CLI."""

    def test_report(self, settings, sample_mhd_csv, capsys):
        """The text report names the overall status."""
        exit_code = main([sample_mhd_csv, "--ethanol", "40", "--engine", "S58"])
        out = capsys.readouterr().out

        assert exit_code == 0
        assert "Overall:" in out
        assert "Risk" in out
        assert "Key points:" in out

    def test_json_output(self, settings, sample_bm3_csv, capsys):
        """--json prints the result dictionary."""
        exit_code = main([sample_bm3_csv, "--json"])
        data = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert data["status"] == "Safe"
        assert data["rowCount"] == 10

    def test_output_dir(self, settings, sample_bm3_csv, tmp_path, capsys):
        """--output-dir also writes the JSON to disk."""
        out_dir = tmp_path / "reports"
        assert main([sample_bm3_csv, "--output-dir", str(out_dir)]) == 0

        assert (out_dir / "bm3_pull_analysis.json").exists()

    def test_missing_file(self, settings, capsys):
        """A missing file exits with 1."""
        assert main(["/nonexistent/pull.csv"]) == 1

    def test_bad_ethanol(self, settings, sample_bm3_csv, capsys):
        """A non-numeric ethanol value exits with 1."""
        assert main([sample_bm3_csv, "--ethanol", "lots"]) == 1

    def test_unparsable_log(self, settings, tmp_path, capsys):
        """A header-only log exits with 1."""
        csv_file = tmp_path / "header_only.csv"
        csv_file.write_text("Time,RPM,AFR\n")

        assert main([str(csv_file)]) == 1

    def test_out_of_range_ethanol(self, settings, sample_bm3_csv, capsys):
        """An ethanol value above 85 exits with 1."""
        assert main([sample_bm3_csv, "--ethanol", "95"]) == 1
