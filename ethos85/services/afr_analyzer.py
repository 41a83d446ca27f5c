"""
AFR Analysis Service.

Lean and rich events are only scored at WOT; the Demand average is reported
for context. Readings at or above the fuel-cut threshold are decel fuel cut
and are dropped before anything else looks at them.
"""

from typing import Optional

import numpy as np

from ..config.logging_config import get_logger
from ..models.analysis import AfrResult, Status, Thresholds
from ..utils.helpers import is_missing, round_n
from .column_resolver import ResolvedColumns
from .log_parser import LogData
from .row_classifier import RegimeInputs

logger = get_logger(__name__)

# The wideband reads 18-22+ during decel fuel cut on any blend
FUEL_CUT_AFR = 16.5

LAMBDA_SAMPLE_ROWS = 30
LAMBDA_MAX = 3.0
LAMBDA_TO_AFR = 14.7


def lambda_to_afr(value: float) -> float:
    return value * LAMBDA_TO_AFR


def detect_lambda(log: LogData, afr_column: Optional[str]) -> bool:
    """A column whose first 30 parsable readings are all below 3.0 is lambda."""
    if not afr_column:
        return False
    samples = log.sample(afr_column, LAMBDA_SAMPLE_ROWS)
    return bool(samples.size) and bool(np.all(samples < LAMBDA_MAX))


def is_fuel_cut(afr: float) -> bool:
    return afr >= FUEL_CUT_AFR


class AfrAnalyzer:
    """Scores air/fuel ratio against ethanol-scaled thresholds."""

    def __init__(self, thresholds: Thresholds):
        self.thresholds = thresholds

    def analyze(
        self,
        log: LogData,
        columns: ResolvedColumns,
        regimes: RegimeInputs,
        is_lambda: bool = False,
    ) -> AfrResult:
        afr_col = columns.mapping.afr
        target_col = columns.mapping.afr_target

        if not afr_col:
            return AfrResult(note="AFR column not found in log.")

        scale = LAMBDA_TO_AFR if is_lambda else 1.0
        afr_values = log.numeric(afr_col)
        target_values = log.numeric(target_col)
        t = self.thresholds

        status = Status.SAFE
        worst_lean: Optional[float] = None
        lean_events = 0
        rich_events = 0
        demand_samples = []
        target_samples = []

        for i in range(len(log)):
            raw = float(afr_values[i])
            if is_missing(raw):
                continue

            afr = raw * scale
            if is_fuel_cut(afr):
                continue

            if regimes.demand(i):
                demand_samples.append(afr)
                if target_col:
                    raw_target = float(target_values[i])
                    if not is_missing(raw_target):
                        target_samples.append(raw_target * scale)

            if not regimes.wot(i):
                continue

            # Branch order is fixed: a reading is tested lean before rich
            if afr > t.lean_risk:
                lean_events += 1
                status = Status.RISK
                worst_lean = afr if worst_lean is None else max(worst_lean, afr)
            elif afr > t.lean_caution and status is not Status.RISK:
                lean_events += 1
                status = Status.CAUTION
                worst_lean = afr if worst_lean is None else max(worst_lean, afr)
            elif afr < t.rich_risk:
                rich_events += 1
                status = Status.RISK
            elif afr < t.rich_caution and status is not Status.RISK:
                rich_events += 1
                status = Status.CAUTION

        avg_demand = sum(demand_samples) / len(demand_samples) if demand_samples else None
        avg_target = sum(target_samples) / len(target_samples) if target_samples else None
        display = worst_lean if worst_lean is not None else avg_demand

        note = None
        if lean_events > 0:
            note = f"{lean_events} lean event(s) at WOT, peak {round_n(worst_lean, 2)}:1."
        elif rich_events > 0:
            note = f"{rich_events} rich event(s) at WOT."

        logger.debug(
            f"AFR: lambda={is_lambda} demand_rows={len(demand_samples)} "
            f"lean={lean_events} rich={rich_events} status={status.value}"
        )

        return AfrResult(
            status=status,
            actual=round_n(display, 2) if display is not None else None,
            target=round_n(avg_target, 2) if avg_target is not None else None,
            lean_events=lean_events,
            rich_events=rich_events,
            note=note,
        )
