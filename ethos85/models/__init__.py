"""Value types for Ethos85 log analysis."""

from .analysis import (
    Status,
    BoostUnit,
    IatUnit,
    CHANNELS,
    ColumnMapping,
    Thresholds,
    CarProfile,
    AfrResult,
    HpfpResult,
    IatResult,
    TimingResult,
    ChartPoint,
    AnalysisResult,
)

__all__ = [
    "Status",
    "BoostUnit",
    "IatUnit",
    "CHANNELS",
    "ColumnMapping",
    "Thresholds",
    "CarProfile",
    "AfrResult",
    "HpfpResult",
    "IatResult",
    "TimingResult",
    "ChartPoint",
    "AnalysisResult",
]
