"""
Operating-regime classification.

Decel fuel cut drives the wideband to 18-22:1 and idle runs the HPFP at a few
hundred psi on purpose. Neither is a safety event, so every analyzer asks
these predicates which rows it may score:

    COAST/IDLE  load < 50% and boost <= 2 psi (or the driver has lifted)
    DEMAND      load >= 50% or boost > 2 psi
    WOT         load >= 70% or boost > 8 psi, with the pedal and throttle open

Regimes are not stored; each analyzer re-evaluates them per row.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..models.analysis import BoostUnit, ColumnMapping
from ..utils.helpers import is_missing
from .log_parser import LogData

LOAD_DEMAND = 50.0      # % engine load
LOAD_WOT = 70.0
LOAD_TIMING = 40.0
BOOST_DEMAND = 2.0      # psi
BOOST_WOT = 8.0

# Driver has lifted: pedal closed and throttle blade near closed
PEDAL_LIFT = 1.0
THROTTLE_LIFT = 5.0

# WOT needs the driver to actually ask for it
PEDAL_WOT_MIN = 50.0
THROTTLE_WOT_MIN = 30.0

# Fewer Demand rows than this and baseline stats use the whole log
MIN_DEMAND_ROWS = 5

PSI_PER_BAR = 14.5038
PSI_PER_KPA = 0.14504

# Absent load/boost readings count as zero for regime decisions
MISSING_READING_DEFAULT = 0.0


def reading_or_default(value: Optional[float]) -> float:
    """Regime math treats a missing load or boost reading as 0."""
    return MISSING_READING_DEFAULT if is_missing(value) else float(value)


def normalize_boost_to_psi(value: Optional[float], unit: BoostUnit) -> float:
    """Convert a boost reading to psi. Missing stays NaN."""
    if is_missing(value):
        return float("nan")
    if unit is BoostUnit.BAR:
        return value * PSI_PER_BAR
    if unit is BoostUnit.KPA:
        return value * PSI_PER_KPA
    return float(value)


def is_lifted(pedal: Optional[float], throttle: Optional[float]) -> bool:
    """Both pedal and throttle are logged and both show a closed foot."""
    if is_missing(pedal) or is_missing(throttle):
        return False
    return pedal < PEDAL_LIFT and throttle < THROTTLE_LIFT


def is_demand(
    load: Optional[float],
    boost_psi: Optional[float],
    pedal: Optional[float] = None,
    throttle: Optional[float] = None,
) -> bool:
    """Engine is under meaningful load; a lifted driver always overrides."""
    if is_lifted(pedal, throttle):
        return False
    return reading_or_default(load) >= LOAD_DEMAND or reading_or_default(boost_psi) > BOOST_DEMAND


def is_coast(
    load: Optional[float],
    boost_psi: Optional[float],
    pedal: Optional[float] = None,
    throttle: Optional[float] = None,
) -> bool:
    return not is_demand(load, boost_psi, pedal, throttle)


def is_wot(
    load: Optional[float],
    boost_psi: Optional[float],
    pedal: Optional[float] = None,
    throttle: Optional[float] = None,
) -> bool:
    """Wide open throttle. A logged pedal or throttle below its floor vetoes it."""
    if not is_missing(pedal) and pedal < PEDAL_WOT_MIN:
        return False
    if not is_missing(throttle) and throttle < THROTTLE_WOT_MIN:
        return False
    return reading_or_default(load) >= LOAD_WOT or reading_or_default(boost_psi) > BOOST_WOT


def is_timing_load(
    load: Optional[float],
    boost_psi: Optional[float],
    pedal: Optional[float] = None,
    throttle: Optional[float] = None,
) -> bool:
    """Load window in which ignition corrections are worth scoring."""
    if is_lifted(pedal, throttle):
        return False
    return reading_or_default(load) >= LOAD_TIMING or reading_or_default(boost_psi) > BOOST_DEMAND


@dataclass(frozen=True)
class RegimeInputs:
    """Per-row classifier inputs as read-only arrays, boost already in psi."""
    load: np.ndarray
    boost_psi: np.ndarray
    pedal: np.ndarray
    throttle: np.ndarray

    def __len__(self) -> int:
        return len(self.load)

    def at(self, index: int):
        """(load, boost_psi, pedal, throttle) for one row."""
        return (
            float(self.load[index]),
            float(self.boost_psi[index]),
            float(self.pedal[index]),
            float(self.throttle[index]),
        )

    def demand(self, index: int) -> bool:
        return is_demand(*self.at(index))

    def wot(self, index: int) -> bool:
        return is_wot(*self.at(index))

    def timing_load(self, index: int) -> bool:
        return is_timing_load(*self.at(index))


def regime_inputs(log: LogData, mapping: ColumnMapping, boost_unit: BoostUnit) -> RegimeInputs:
    """Gather the classifier channels for a log."""
    boost = np.array(
        [normalize_boost_to_psi(value, boost_unit) for value in log.numeric(mapping.boost)],
        dtype=float,
    )
    boost.setflags(write=False)

    return RegimeInputs(
        load=log.numeric(mapping.load),
        boost_psi=boost,
        pedal=log.numeric(mapping.pedal),
        throttle=log.numeric(mapping.throttle),
    )


def baseline_indices(regimes: RegimeInputs, min_rows: int = MIN_DEMAND_ROWS) -> Tuple[np.ndarray, bool]:
    """
    Rows to take baseline stats from, and whether they are Demand rows.

    Falls back to every row when fewer than `min_rows` rows are under demand.
    """
    demand = np.array([regimes.demand(i) for i in range(len(regimes))], dtype=bool)
    if int(demand.sum()) >= min_rows:
        return np.flatnonzero(demand), True
    return np.arange(len(regimes)), False
