"""
Chart series builder.

Downsamples the log to a bounded number of points with a fixed stride.
Lean and timing flags are computed over every row in a point's stride
window, so a short event between two emitted rows still shows up. HPFP is
the exception: only the single worst drop in the whole file is flagged,
on the point whose window contains it.
"""

import math
from typing import List, Optional, Tuple

import numpy as np

from ..config.logging_config import get_logger
from ..models.analysis import ChartPoint, Thresholds
from ..utils.helpers import is_missing, round_n
from .afr_analyzer import LAMBDA_TO_AFR, is_fuel_cut
from .column_resolver import ResolvedColumns
from .hpfp_analyzer import HPFP_DROP_RISK_PCT, peak_drop_pct, target_drop_pct
from .log_parser import LogData
from .row_classifier import RegimeInputs, baseline_indices

logger = get_logger(__name__)

DEFAULT_MAX_POINTS = 150
CHART_TIMING_WARNING_DEG = -3.0


def chart_stride(row_count: int, max_points: int = DEFAULT_MAX_POINTS) -> int:
    """Smallest fixed stride that keeps the series within max_points."""
    return max(1, math.ceil(row_count / max_points))


class ChartBuilder:
    """Builds the warning-annotated AFR/boost series for the rendering layer."""

    def __init__(self, thresholds: Thresholds, max_points: int = DEFAULT_MAX_POINTS):
        if max_points <= 0:
            raise ValueError(f"Chart point budget must be positive, got {max_points}")
        self.thresholds = thresholds
        self.max_points = max_points

    def find_worst_hpfp_row(
        self,
        log: LogData,
        columns: ResolvedColumns,
        regimes: RegimeInputs,
    ) -> Optional[int]:
        """
        Index of the largest HPFP drop in the file, if it reaches Risk.

        Uses the logged target when there is one (targets at or below the idle
        floor are ignored). Without a target, only baseline rows are compared
        against their own peak so idle pressure is never read as a drop.
        """
        actual_col = columns.mapping.hpfp
        target_col = columns.mapping.hpfp_target
        if not actual_col:
            return None

        actuals = log.numeric(actual_col)
        targets = log.numeric(target_col)

        # With a target every row in the file is eligible
        rows = range(len(log))
        peak = None
        if not target_col:
            # No target: a whole-file peak would score idle rows as drops, so
            # only baseline rows are scanned, against their own peak
            rows, _ = baseline_indices(regimes)
            baseline = actuals[rows]
            positive = baseline[~np.isnan(baseline) & (baseline > 0)]
            if positive.size:
                peak = float(positive.max())

        worst_drop = 0.0
        worst_row = None
        for j in rows:
            actual = float(actuals[j])
            if target_col:
                drop = target_drop_pct(actual, float(targets[j]))
            elif peak is not None:
                drop = peak_drop_pct(actual, peak)
            else:
                drop = None
            if drop is not None and drop > worst_drop:
                worst_drop = drop
                worst_row = int(j)

        if worst_row is None or worst_drop < HPFP_DROP_RISK_PCT:
            return None
        return worst_row

    def build(
        self,
        log: LogData,
        columns: ResolvedColumns,
        regimes: RegimeInputs,
        is_lambda: bool = False,
    ) -> Tuple[ChartPoint, ...]:
        mapping = columns.mapping
        scale = LAMBDA_TO_AFR if is_lambda else 1.0
        lean_caution = self.thresholds.lean_caution

        times = log.numeric(mapping.time)
        afr = log.numeric(mapping.afr) * scale
        afr_target = log.numeric(mapping.afr_target) * scale
        timing = [log.numeric(col) for col in columns.timing_columns]

        worst_hpfp_row = self.find_worst_hpfp_row(log, columns, regimes)
        row_count = len(log)
        stride = chart_stride(row_count, self.max_points)
        points: List[ChartPoint] = []

        for start in range(0, row_count, stride):
            end = min(start + stride, row_count)

            lean_warning = False
            timing_warning = False
            for j in range(start, end):
                if not lean_warning and regimes.wot(j):
                    value = float(afr[j])
                    if not is_missing(value) and not is_fuel_cut(value) and value > lean_caution:
                        lean_warning = True

                if not timing_warning and timing and regimes.timing_load(j):
                    for values in timing:
                        pull = float(values[j])
                        if not is_missing(pull) and pull <= CHART_TIMING_WARNING_DEG:
                            timing_warning = True
                            break

            time_value = float(times[start])
            afr_value = float(afr[start])
            target_value = float(afr_target[start])
            boost_value = float(regimes.boost_psi[start])

            points.append(ChartPoint(
                time=round_n(time_value, 2) if not is_missing(time_value) else str(start),
                afr_actual=(
                    round_n(afr_value, 2)
                    if not is_missing(afr_value) and not is_fuel_cut(afr_value) else None
                ),
                afr_target=round_n(target_value, 2) if not is_missing(target_value) else None,
                boost=round_n(boost_value, 1) if not is_missing(boost_value) else None,
                is_lean_warning=lean_warning,
                is_hpfp_warning=worst_hpfp_row is not None and start <= worst_hpfp_row < end,
                is_timing_warning=timing_warning,
            ))

        logger.debug(f"Chart: {len(points)} points from {row_count} rows (stride {stride})")
        return tuple(points)
