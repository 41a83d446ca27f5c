"""
IAT Analysis Service.

The peak is taken from Demand rows so a car heat-soaking in traffic is not
reported as hot under load. Thresholds are in Fahrenheit whatever the log's
unit.
"""

import numpy as np

from ..config.logging_config import get_logger
from ..models.analysis import IatResult, IatUnit, Status
from ..utils.helpers import round_n
from .column_resolver import ResolvedColumns, detect_iat_unit
from .log_parser import LogData
from .row_classifier import RegimeInputs, baseline_indices

logger = get_logger(__name__)

IAT_RISK_F = 140.0
IAT_CAUTION_F = 120.0


def to_fahrenheit(value: float, unit: IatUnit) -> float:
    if unit is IatUnit.CELSIUS:
        return value * 9 / 5 + 32
    return value


class IatAnalyzer:
    """Scores peak intake-air temperature under load."""

    def analyze(self, log: LogData, columns: ResolvedColumns, regimes: RegimeInputs) -> IatResult:
        iat_col = columns.mapping.iat

        if not iat_col:
            return IatResult(note="IAT column not found in log.")

        values = log.numeric(iat_col)
        valid = values[~np.isnan(values)]
        if valid.size == 0:
            return IatResult(note="No valid IAT readings.")

        unit = columns.iat_unit or detect_iat_unit(iat_col, valid)

        indices, under_load = baseline_indices(regimes)
        source = values[indices]
        source = source[~np.isnan(source)]
        if source.size == 0:
            return IatResult(unit=unit, note="No valid IAT readings during engine demand.")

        peak_raw = float(source.max())
        peak_f = round_n(to_fahrenheit(peak_raw, unit), 1)
        context = "under load" if under_load else "session peak"

        status = Status.SAFE
        note = None
        if peak_f >= IAT_RISK_F:
            status = Status.RISK
            note = f"Peak IAT of {round(peak_f)}°F {context} exceeds safe operating threshold."
        elif peak_f >= IAT_CAUTION_F:
            status = Status.CAUTION
            note = f"Peak IAT of {round(peak_f)}°F {context} is elevated. Consider heat soak risk."

        logger.debug(f"IAT: unit={unit.value} peak={peak_raw} peak_f={peak_f} ({context})")

        return IatResult(
            status=status,
            value=round_n(peak_raw, 1),
            unit=unit,
            peak_f=peak_f,
            note=note,
        )
