"""
Ethanol-scaled AFR thresholds.

Stoichiometric AFR falls linearly from 14.7 (E0) to 9.8 (E85). The E0 lean
and rich limits are scaled by stoich / 14.7 so the margin stays the same in
lambda terms on every blend:

    E0  -> stoich 14.7    E40 -> stoich ~12.39    E85 -> stoich 9.8
"""

import math
from typing import Any

from ..models.analysis import Thresholds

STOICH_E0 = 14.7
STOICH_E85 = 9.8
MAX_ETHANOL = 85.0
DEFAULT_ETHANOL = 10.0

# E0 baseline limits
AFR_LEAN_RISK = 13.8
AFR_LEAN_CAUTION = 13.0
AFR_RICH_RISK = 10.0
AFR_RICH_CAUTION = 10.8


def normalize_ethanol(ethanol_percent: Any, default: float = DEFAULT_ETHANOL) -> float:
    """
    Coerce the profile's ethanol value into [0, 85].

    Missing or non-numeric input falls back to the default; numbers outside
    the range are clamped.
    """
    try:
        ethanol = float(ethanol_percent)
    except (TypeError, ValueError):
        return default
    if math.isnan(ethanol):
        return default
    return min(MAX_ETHANOL, max(0.0, ethanol))


def stoich_afr(ethanol_percent: float) -> float:
    return STOICH_E0 - (STOICH_E0 - STOICH_E85) * (ethanol_percent / MAX_ETHANOL)


def get_afr_thresholds(ethanol_percent: Any = DEFAULT_ETHANOL) -> Thresholds:
    """
    Compute the AFR safety bounds for a blend.

    Args:
        ethanol_percent: Ethanol content from the car profile

    Returns:
        Thresholds at full precision
    """
    ethanol = normalize_ethanol(ethanol_percent)
    stoich = stoich_afr(ethanol)
    ratio = stoich / STOICH_E0
    return Thresholds(
        stoich=stoich,
        lean_risk=AFR_LEAN_RISK * ratio,
        lean_caution=AFR_LEAN_CAUTION * ratio,
        rich_risk=AFR_RICH_RISK * ratio,
        rich_caution=AFR_RICH_CAUTION * ratio,
    )
