"""
Ignition timing correction analysis.

Light-throttle corrections are routine closed-loop trims, so only rows in
the timing load window (load >= 40% or boost > 2 psi, driver not lifted)
are scanned. Every per-cylinder column is checked on each of those rows.
"""

from typing import Optional

from ..config.logging_config import get_logger
from ..models.analysis import Status, TimingResult
from ..utils.helpers import is_missing, round_n
from .column_resolver import ResolvedColumns
from .log_parser import LogData
from .row_classifier import RegimeInputs

logger = get_logger(__name__)

TIMING_RISK_DEG = -4.0
TIMING_CAUTION_DEG = -2.0


class TimingAnalyzer:
    """Finds the worst per-cylinder timing pull under load."""

    def analyze(self, log: LogData, columns: ResolvedColumns, regimes: RegimeInputs) -> TimingResult:
        timing_columns = columns.timing_columns
        if not timing_columns:
            return TimingResult(cylinders="No timing correction columns found.")

        series = {col: log.numeric(col) for col in timing_columns}

        worst_deg = 0.0
        worst_col: Optional[str] = None
        pull_events = 0

        for i in range(len(log)):
            if not regimes.timing_load(i):
                continue
            for col in timing_columns:
                value = float(series[col][i])
                if is_missing(value):
                    continue
                if value < worst_deg:
                    worst_deg = value
                    worst_col = col
                if value <= TIMING_CAUTION_DEG:
                    pull_events += 1

        if worst_deg <= TIMING_RISK_DEG:
            status = Status.RISK
        elif worst_deg <= TIMING_CAUTION_DEG:
            status = Status.CAUTION
        else:
            status = Status.SAFE

        if worst_col:
            label = f"{round_n(worst_deg, 1)}° on {worst_col}"
        else:
            label = "No corrections observed under load"

        logger.debug(f"Timing: worst={worst_deg} on {worst_col}, pull_events={pull_events}")

        return TimingResult(
            status=status,
            max_correction=round_n(worst_deg, 2),
            worst_column=worst_col,
            cylinders=label,
            pull_events=pull_events,
            note=f"Worst timing pull under load: {label}." if status is not Status.SAFE else None,
        )
