"""
HPFP Analysis Service.

Baseline pressure comes from Demand rows (all rows when fewer than five are
under demand). The drop check against a logged target scans the whole file
but ignores rows whose target is at or below 1000 psi: this pump idles at a
few hundred psi on purpose.
"""

from typing import Optional

import numpy as np

from ..config.logging_config import get_logger
from ..models.analysis import HpfpResult, Status
from ..utils.helpers import round_n
from .column_resolver import ResolvedColumns
from .log_parser import LogData
from .row_classifier import RegimeInputs, baseline_indices

logger = get_logger(__name__)

# Platform-specific: idle targets on this pump sit well below this
HPFP_TARGET_FLOOR_PSI = 1000.0
HPFP_DROP_RISK_PCT = 20.0
HPFP_DROP_CAUTION_PCT = 10.0


def target_drop_pct(actual: float, target: float) -> Optional[float]:
    """Drop below a logged target, or None when the row does not qualify."""
    if np.isnan(actual) or np.isnan(target) or target <= HPFP_TARGET_FLOOR_PSI or actual <= 0:
        return None
    return (target - actual) / target * 100


def peak_drop_pct(actual: float, peak: float) -> Optional[float]:
    """Drop below the session peak, or None for missing/zero readings."""
    if np.isnan(actual) or actual <= 0 or peak <= 0:
        return None
    return (peak - actual) / peak * 100


class HpfpAnalyzer:
    """Scores high-pressure fuel pump drop under load."""

    def analyze(self, log: LogData, columns: ResolvedColumns, regimes: RegimeInputs) -> HpfpResult:
        actual_col = columns.mapping.hpfp
        target_col = columns.mapping.hpfp_target

        if not actual_col:
            return HpfpResult(note="HPFP column not found in log.")

        actual_values = log.numeric(actual_col)
        target_values = log.numeric(target_col)

        indices, _ = baseline_indices(regimes)
        actuals = actual_values[indices]
        actuals = actuals[~np.isnan(actuals) & (actuals > 0)]
        if actuals.size == 0:
            return HpfpResult(note="No valid HPFP readings during engine demand.")

        avg_actual = float(actuals.mean())
        peak_actual = float(actuals.max())

        avg_target = None
        if target_col:
            targets = target_values[indices]
            targets = targets[~np.isnan(targets) & (targets > 0)]
            if targets.size:
                avg_target = float(targets.mean())

        max_drop = 0.0
        if target_col:
            for i in range(len(log)):
                drop = target_drop_pct(float(actual_values[i]), float(target_values[i]))
                if drop is not None and drop > max_drop:
                    max_drop = drop
        else:
            for actual in actuals:
                drop = peak_drop_pct(float(actual), peak_actual)
                if drop is not None and drop > max_drop:
                    max_drop = drop

        status = Status.SAFE
        note = None
        reference = "target" if avg_target else "session peak"
        if max_drop >= HPFP_DROP_RISK_PCT:
            status = Status.RISK
            note = f"HPFP dropped {round_n(max_drop, 1)}% below {reference} during engine demand."
        elif max_drop >= HPFP_DROP_CAUTION_PCT:
            status = Status.CAUTION
            note = f"HPFP dipped {round_n(max_drop, 1)}% under load. Monitor closely."

        logger.debug(f"HPFP: avg={avg_actual:.0f} peak={peak_actual:.0f} max_drop={max_drop:.1f}%")

        return HpfpResult(
            status=status,
            actual=round_n(avg_actual, 0),
            target=round_n(avg_target, 0) if avg_target else round_n(peak_actual, 0),
            max_drop_pct=round_n(max_drop, 1),
            note=note,
        )
