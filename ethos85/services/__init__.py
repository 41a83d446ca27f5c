"""Services module for Ethos85."""

from .log_parser import LogParser, LogParseError, LogData
from .column_resolver import ColumnResolver, ResolvedColumns
from .row_classifier import RegimeInputs, regime_inputs
from .thresholds import get_afr_thresholds, normalize_ethanol
from .afr_analyzer import AfrAnalyzer
from .hpfp_analyzer import HpfpAnalyzer
from .iat_analyzer import IatAnalyzer
from .timing_analyzer import TimingAnalyzer
from .chart_builder import ChartBuilder
from .safety_aggregator import SafetyAggregator, worst_status
from .log_analyzer import LogAnalyzer, analyze_log

__all__ = [
    "LogParser",
    "LogParseError",
    "LogData",
    "ColumnResolver",
    "ResolvedColumns",
    "RegimeInputs",
    "regime_inputs",
    "get_afr_thresholds",
    "normalize_ethanol",
    "AfrAnalyzer",
    "HpfpAnalyzer",
    "IatAnalyzer",
    "TimingAnalyzer",
    "ChartBuilder",
    "SafetyAggregator",
    "worst_status",
    "LogAnalyzer",
    "analyze_log",
]
