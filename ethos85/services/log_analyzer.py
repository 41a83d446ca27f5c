"""
Datalog analysis entry point.

Parses a log once and hands the same read-only LogData to every analyzer
and to the chart builder.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..config.logging_config import get_logger, log_performance
from ..config.settings import Settings, get_settings
from ..models.analysis import AnalysisResult, CarProfile
from .afr_analyzer import AfrAnalyzer, detect_lambda
from .chart_builder import DEFAULT_MAX_POINTS, ChartBuilder
from .column_resolver import ColumnResolver
from .hpfp_analyzer import HpfpAnalyzer
from .iat_analyzer import IatAnalyzer
from .log_parser import LogData, LogParseError, LogParser
from .row_classifier import regime_inputs
from .safety_aggregator import SafetyAggregator
from .thresholds import get_afr_thresholds, normalize_ethanol
from .timing_analyzer import TimingAnalyzer

logger = get_logger(__name__)


class LogAnalyzer:
    """
    Runs the full safety analysis over one datalog.

    Settings are read once here; analyzers only receive the values they need.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.parser = LogParser(max_upload_bytes=self.settings.max_upload_bytes)
        self.resolver = ColumnResolver()
        self.aggregator = SafetyAggregator(
            default_ethanol=self.settings.default_ethanol_percent,
            default_engine=self.settings.default_engine,
        )

        self.chart_max_points = self.settings.chart_max_points
        if self.chart_max_points <= 0:
            logger.warning(
                f"Invalid chart point budget {self.chart_max_points}, using {DEFAULT_MAX_POINTS}"
            )
            self.chart_max_points = DEFAULT_MAX_POINTS

    def analyze_text(
        self,
        csv_text: str,
        filename: str = "datalog.csv",
        car_details: Optional[Dict[str, Any]] = None,
    ) -> AnalysisResult:
        """
        Analyze CSV text.

        Args:
            csv_text: Full file contents
            filename: Name echoed in the result
            car_details: Car profile from the upload form

        Returns:
            AnalysisResult

        Raises:
            LogParseError: If the text is not a usable CSV log
        """
        with log_performance(logger, "analyze_log", filename=filename):
            log = self._parse(self.parser.parse_text, csv_text, filename)
            return self.analyze_log_data(log, filename, car_details)

    def analyze_bytes(
        self,
        data: bytes,
        filename: str = "datalog.csv",
        car_details: Optional[Dict[str, Any]] = None,
    ) -> AnalysisResult:
        with log_performance(logger, "analyze_log", filename=filename):
            log = self._parse(self.parser.parse_bytes, data, filename)
            return self.analyze_log_data(log, filename, car_details)

    def analyze_file(
        self,
        file_path: Union[str, Path],
        car_details: Optional[Dict[str, Any]] = None,
    ) -> AnalysisResult:
        path = Path(file_path)
        with log_performance(logger, "analyze_log", filename=path.name):
            log = self._parse(self.parser.parse_file, path, path.name)
            return self.analyze_log_data(log, path.name, car_details)

    def analyze_log_data(
        self,
        log: LogData,
        filename: str,
        car_details: Optional[Dict[str, Any]] = None,
    ) -> AnalysisResult:
        """Run every analyzer over an already parsed log."""
        profile = CarProfile.from_dict(car_details)
        ethanol = normalize_ethanol(profile.ethanol_percent, self.settings.default_ethanol_percent)
        thresholds = get_afr_thresholds(ethanol)

        columns = self.resolver.resolve(log)
        is_lambda = detect_lambda(log, columns.mapping.afr)
        regimes = regime_inputs(log, columns.mapping, columns.boost_unit)

        afr = AfrAnalyzer(thresholds).analyze(log, columns, regimes, is_lambda)
        hpfp = HpfpAnalyzer().analyze(log, columns, regimes)
        iat = IatAnalyzer().analyze(log, columns, regimes)
        timing = TimingAnalyzer().analyze(log, columns, regimes)

        status = self.aggregator.overall_status(afr, hpfp, iat, timing)
        chart = ChartBuilder(thresholds, self.chart_max_points).build(
            log, columns, regimes, is_lambda
        )

        logger.info(
            f"Analyzed {filename}: {len(log)} rows, E{ethanol:g}, "
            f"lambda={is_lambda}, status={status.value}"
        )

        return AnalysisResult(
            filename=filename,
            row_count=len(log),
            status=status,
            car_details=profile,
            afr=afr,
            hpfp=hpfp,
            iat=iat,
            timing=timing,
            chart_data=chart,
            key_points=self.aggregator.build_key_points(afr, hpfp, iat, timing, profile),
            notes=self.aggregator.collect_notes(afr, hpfp, iat, timing),
        )

    def _parse(self, parse, source, filename: str) -> LogData:
        try:
            return parse(source)
        except LogParseError as e:
            logger.error(f"Could not parse {filename}: {e}")
            raise


def analyze_log(
    csv_text: str,
    filename: str = "datalog.csv",
    car_details: Optional[Dict[str, Any]] = None,
) -> AnalysisResult:
    """Analyze CSV text with the default settings."""
    return LogAnalyzer().analyze_text(csv_text, filename, car_details)
