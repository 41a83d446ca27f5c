"""
End-to-end tests for datalog analysis.
"""

import json

import pytest

from ethos85.models.analysis import IatUnit, Status
from ethos85.services.log_analyzer import LogAnalyzer, analyze_log
from ethos85.services.log_parser import LogParseError


class TestScenarios:
    """Single-metric scenarios through the whole pipeline."""

    def test_lean_at_wot(self, log_analyzer):
        """15.0:1 at 80% load and 10 psi on E10 is Risk."""
        text = "Time,Engine Load,AFR,Boost (psi)\n0,80,15.0,10\n"
        result = log_analyzer.analyze_text(text, "lean.csv", {"ethanol": 10})

        assert result.status is Status.RISK
        assert result.afr.lean_events == 1
        assert result.afr.status is Status.RISK

    def test_lean_at_wot_with_trailing_commas(self, log_analyzer):
        """Rows ending in a delimiter are scored on the right channels."""
        text = "Time,Engine Load,AFR,Boost (psi)\n0,80,15.0,10,\n"
        result = log_analyzer.analyze_text(text, "lean.csv", {"ethanol": 10})

        assert result.afr.actual == 15.0
        assert result.afr.lean_events == 1
        assert result.afr.status is Status.RISK
        assert result.status is Status.RISK

    def test_hpfp_below_target(self, log_analyzer):
        """2000 psi against a 3000 psi target is a 33.3% drop."""
        text = "Time,Engine Load,HPFP Actual,HPFP Target\n0,80,2000,3000\n"
        result = log_analyzer.analyze_text(text, "hpfp.csv")

        assert result.hpfp.max_drop_pct == pytest.approx(33.3)
        assert result.hpfp.status is Status.RISK
        assert result.status is Status.RISK

    def test_hot_intake(self, log_analyzer):
        """A 150°F peak under a Fahrenheit header is Risk."""
        text = "Time,Engine Load,Intake Air Temp [°F]\n0,80,130\n1,80,150\n"
        result = log_analyzer.analyze_text(text, "iat.csv")

        assert result.iat.unit is IatUnit.FAHRENHEIT
        assert result.iat.peak_f == 150
        assert result.iat.status is Status.RISK

    def test_timing_pull(self, log_analyzer):
        """A -5.0° pull at 60% load names the cylinder."""
        text = (
            "Time,Engine Load,Timing Correction Cyl1,Timing Correction Cyl2,"
            "Timing Correction Cyl3,Timing Correction Cyl4\n"
            "0,60,0,-5.0,-1.0,0\n"
        )
        result = log_analyzer.analyze_text(text, "timing.csv")

        assert result.timing.status is Status.RISK
        assert "Timing Correction Cyl2" in result.timing.note
        assert result.timing.note in result.notes


class TestFullLogs:
    """Complete BM3 and MHD exports."""

    def test_healthy_bm3(self, log_analyzer, bm3_csv_text):
        """The healthy pull is Safe on every metric."""
        result = log_analyzer.analyze_text(bm3_csv_text, "bm3_pull.csv", {"ethanol": 10})

        assert result.status is Status.SAFE
        assert result.row_count == 10
        assert result.notes == ()
        assert len(result.chart_data) == 10

    def test_risky_mhd(self, log_analyzer, mhd_csv_text):
        """The MHD pull on E40 is Risk with a note for every metric."""
        result = log_analyzer.analyze_text(
            mhd_csv_text, "mhd_pull.csv",
            {"ethanolPercent": 40, "engineModel": "S58", "tuneStage": "Stage 2"},
        )

        assert result.status is Status.RISK
        assert result.afr.status is Status.RISK
        assert result.hpfp.status is Status.RISK
        assert result.iat.status is Status.RISK
        assert result.timing.status is Status.RISK
        assert len(result.notes) == 4
        assert any("charge cooler" in p for p in result.key_points)
        assert any("E40" in p for p in result.key_points)

    def test_analyze_file(self, log_analyzer, sample_mhd_csv):
        """Files are read from disk and named after the file."""
        result = log_analyzer.analyze_file(sample_mhd_csv, {"ethanol": 40})

        assert result.filename == "mhd_pull.csv"
        assert result.status is Status.RISK

    def test_analyze_bytes(self, log_analyzer, bm3_csv_text):
        """Upload buffers are decoded and analyzed."""
        result = log_analyzer.analyze_bytes(bm3_csv_text.encode("utf-8"), "upload.csv")

        assert result.iat.unit is IatUnit.FAHRENHEIT

    def test_ethanol_changes_verdict(self, log_analyzer):
        """12.0:1 at WOT is fine on E10 but lean on E85."""
        text = "Time,Engine Load,AFR\n0,90,12.0\n"

        e10 = log_analyzer.analyze_text(text, "a.csv", {"ethanol": 10})
        e85 = log_analyzer.analyze_text(text, "a.csv", {"ethanol": 85})

        assert e10.afr.status is Status.SAFE
        assert e85.afr.status is Status.RISK

    def test_no_recognised_channels(self, log_analyzer):
        """A log with no known channels is Safe with a note per missing metric."""
        result = log_analyzer.analyze_text("Time,RPM\n0,900\n1,950\n", "bare.csv")

        assert result.status is Status.SAFE
        assert "AFR column not found in log." in result.notes
        assert result.timing.cylinders == "No timing correction columns found."

    def test_parse_failure(self, log_analyzer):
        """Header-only input raises LogParseError."""
        with pytest.raises(LogParseError):
            log_analyzer.analyze_text("Time,RPM,AFR\n", "empty.csv")

    def test_shared_rows_not_modified(self, log_analyzer, bm3_csv_text):
        """Analyzing the same text twice gives the same result."""
        first = log_analyzer.analyze_text(bm3_csv_text, "a.csv")
        second = log_analyzer.analyze_text(bm3_csv_text, "a.csv")

        assert first.to_dict() == second.to_dict()

    def test_chart_budget_from_settings(self, settings, bm3_csv_text):
        """The chart point budget comes from settings."""
        settings.chart_max_points = 4
        result = LogAnalyzer(settings).analyze_text(bm3_csv_text, "a.csv")

        assert len(result.chart_data) <= 4

    def test_invalid_chart_budget_uses_default(self, settings, bm3_csv_text):
        """A zero point budget falls back to the default instead of failing."""
        settings.chart_max_points = 0
        result = LogAnalyzer(settings).analyze_text(bm3_csv_text, "a.csv")

        assert len(result.chart_data) == 10


class TestResultShape:
    """The JSON handed to the rendering layer."""

    def test_to_dict_keys(self, log_analyzer, mhd_csv_text):
        """Top-level, metric and summary keys match the report format."""
        car = {"ethanolPercent": 40, "engineModel": "S58", "tuneStage": "Stage 2"}
        data = log_analyzer.analyze_text(mhd_csv_text, "mhd_pull.csv", car).to_dict()

        assert set(data) == {
            "filename", "rowCount", "status", "carDetails",
            "metrics", "chartData", "keyPoints", "summary",
        }
        assert data["carDetails"] == car
        assert set(data["metrics"]) == {"afr", "hpfp", "iat", "timingCorrections"}
        assert data["metrics"]["iat"]["unit"] == "C"
        assert data["metrics"]["timingCorrections"]["pull_events"] == 3
        assert data["summary"]["overall_safety_score"] == "Risk"
        assert data["summary"]["hpfp_status"] == "Risk"
        assert len(data["summary"]["notes"]) == 4

    def test_json_serializable(self, log_analyzer, bm3_csv_text):
        """The result round-trips through json."""
        data = log_analyzer.analyze_text(bm3_csv_text, "bm3.csv").to_dict()

        assert json.loads(json.dumps(data)) == data

    def test_module_function(self, settings, bm3_csv_text):
        """analyze_log() uses the default settings."""
        result = analyze_log(bm3_csv_text, "bm3.csv", {"ethanol": 10})

        assert result.status is Status.SAFE
