"""
Column Resolution Service.
Maps the unordered headers of a BM3 or MHD export onto semantic channels.

Both loggers name the same sensors differently, so each channel carries an
ordered keyword list and the first keyword with a matching header wins.
A keyword starting with "^" must match the start of the header; any other
keyword matches anywhere in it. Matching is case-insensitive.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..config.logging_config import get_logger
from ..models.analysis import BoostUnit, ColumnMapping, IatUnit
from .log_parser import LogData

logger = get_logger(__name__)

ANCHOR = "^"

# Ordered keyword lists: first match wins.
COLUMN_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "time": ("time", "timestamp", "elapsed", "log time"),
    "rpm": ("rpm", "engine speed", "engine_speed"),
    "load": ("load_%", "load (%)", "load(%)", "load", "engine load", "throttle position"),
    "afr": ("air fuel ratio", "air_fuel_ratio", "afr", "lambda"),
    "boost": (
        "boost pre throttle", "boost pre-throttle", "pre throttle boost",
        "manifold pressure pre throttle", "hp boost pre throttle", "boost pressure pre throttle",
        "boost act", "boost mean", "manifold absolute pressure", "boost pressure", "boost_pressure",
        "boost (psi)", "boost_psi", "boost", "manifold pressure", "map",
    ),
    "iat": (
        "intake air temp", "intake_air_temp", "intake air temperature",
        "charge air temp", "charge_air_temp", "charge air temperature",
        # anchored so "Boost Pressure (Deviation)" is not read as IAT
        "^iat",
    ),
    "hpfp": (
        "hp fuel pressure actual", "hpfp actual", "hpfp_actual", "high pressure fuel pump actual", "hpfp act",
        "hpfp (psi)", "hpfp_psi", "hpfp", "high pressure fuel pump", "fuel pressure actual", "fuel_pressure_actual",
    ),
    "hpfp_target": (
        "hpfp target", "hpfp_target", "hp fuel pressure target", "fuel pressure target", "hpfp req",
        "hpfp setpoint", "hpfp_setpoint", "hp fuel pressure setpoint", "fuel pressure setpoint",
        "hpfp desired", "hp fuel pressure desired", "fuel pressure desired",
        "hpfp sp", "hpfp set", "high pressure fuel pump target", "high pressure fuel pump setpoint",
    ),
    "afr_target": ("afr target", "afr_target", "air fuel ratio target", "lambda target"),
    "pedal": ("pedal", "accel pedal", "accelerator pedal", "accel_pedal", "pedal position"),
    "throttle": ("throttle", "throttle position", "throttle_position", "throttle angle", "throttle_angle"),
}

_SETPOINT_WORDS = ("target", "setpoint", "desired", "req")

# Headers containing any of these are never candidates for the channel
COLUMN_EXCLUSIONS: Dict[str, Tuple[str, ...]] = {
    "boost": ("post throttle", "post-throttle", "target", "setpoint", "desired"),
    "afr": _SETPOINT_WORDS,
    "hpfp": _SETPOINT_WORDS,
    "throttle": ("pre throttle", "pre-throttle", "post throttle", "post-throttle"),
}

TIMING_KEYWORDS: Tuple[str, ...] = ("timing cor", "timing_cor", "ign cor", "ign_cor", "ignition cor", "knock")
CYLINDER_KEYWORDS: Tuple[str, ...] = ("cyl", "cylinder", "cyl_")

BOOST_SAMPLE_ROWS = 50
BOOST_KPA_MIN = 50.0
BOOST_BAR_MAX = 5.0

# No intake sensor reads above 100 degC, so anything higher is Fahrenheit
IAT_CELSIUS_CEILING = 100.0

_FAHRENHEIT_MARKERS = ("°f", "[f]", "(f)", "_f]", " f]", "_fahrenheit")
_CELSIUS_MARKERS = ("°c", "[c]", "(c)", "_c]", " c]", "_celsius")


@dataclass(frozen=True)
class ResolvedColumns:
    """Everything resolved once per file from the header row."""
    mapping: ColumnMapping
    timing_columns: Tuple[str, ...]
    boost_unit: BoostUnit
    iat_unit: Optional[IatUnit]


def find_column(
    headers: Sequence[str],
    keywords: Sequence[str],
    exclude: Sequence[str] = (),
) -> Optional[str]:
    """
    Find the first header matching any keyword, trying keywords in order.

    Args:
        headers: CSV headers in file order
        keywords: Ordered keyword list; "^kw" means header starts with kw
        exclude: Substrings that disqualify a header

    Returns:
        Matching header or None
    """
    candidates = [
        h for h in headers
        if not any(ex in h.lower() for ex in exclude)
    ]
    for keyword in keywords:
        anchored = keyword.startswith(ANCHOR)
        kw = keyword[len(ANCHOR):].lower() if anchored else keyword.lower()
        for header in candidates:
            hl = header.lower()
            if (hl.startswith(kw) if anchored else kw in hl):
                return header
    return None


def find_timing_columns(headers: Sequence[str]) -> List[str]:
    """Per-cylinder correction channels need a timing word and a cylinder word."""
    columns = []
    for header in headers:
        lower = header.lower()
        has_timing_word = any(kw in lower for kw in TIMING_KEYWORDS)
        has_cylinder_word = any(kw in lower for kw in CYLINDER_KEYWORDS)
        if has_timing_word and has_cylinder_word:
            columns.append(header)
    return columns


def detect_boost_unit(column_name: Optional[str], sample_values: Sequence[float] = ()) -> BoostUnit:
    """
    Detect the boost unit from the header, falling back to the value range.

    Bar reads single digits (gauge 0.5-2.5, absolute 1-3), absolute kPa reads
    in the hundreds, and psi sits in between.
    """
    if not column_name:
        return BoostUnit.PSI

    lower = column_name.lower()
    if "bar" in lower:
        return BoostUnit.BAR
    if "kpa" in lower:
        return BoostUnit.KPA
    if "psi" in lower:
        return BoostUnit.PSI

    values = np.asarray(sample_values, dtype=float)
    values = values[~np.isnan(values) & (values > 0)]
    if values.size:
        peak = float(values.max())
        if peak > BOOST_KPA_MIN:
            return BoostUnit.KPA
        if peak < BOOST_BAR_MAX:
            return BoostUnit.BAR
    return BoostUnit.PSI


def detect_iat_unit_from_header(column_name: Optional[str]) -> Optional[IatUnit]:
    """
    Read the IAT unit from a header such as "Intake Air Temp [°F]".
    Returns None when the header carries no unit marker.
    """
    if not column_name:
        return None
    lower = column_name.lower()
    if any(marker in lower for marker in _FAHRENHEIT_MARKERS):
        return IatUnit.FAHRENHEIT
    if any(marker in lower for marker in _CELSIUS_MARKERS):
        return IatUnit.CELSIUS
    return None


def detect_iat_unit(column_name: Optional[str], values: Sequence[float] = ()) -> IatUnit:
    """Header marker first; otherwise any reading above 100 means Fahrenheit."""
    unit = detect_iat_unit_from_header(column_name)
    if unit is not None:
        return unit

    readings = np.asarray(values, dtype=float)
    readings = readings[~np.isnan(readings)]
    if readings.size and float(readings.max()) > IAT_CELSIUS_CEILING:
        return IatUnit.FAHRENHEIT
    return IatUnit.CELSIUS


class ColumnResolver:
    """Resolves channels, timing columns and units once per datalog."""

    def __init__(
        self,
        keywords: Optional[Dict[str, Sequence[str]]] = None,
        exclusions: Optional[Dict[str, Sequence[str]]] = None,
    ):
        self.keywords = dict(keywords or COLUMN_KEYWORDS)
        self.exclusions = dict(exclusions if exclusions is not None else COLUMN_EXCLUSIONS)

    def resolve_mapping(self, headers: Sequence[str]) -> ColumnMapping:
        resolved = {
            channel: find_column(headers, keywords, self.exclusions.get(channel, ()))
            for channel, keywords in self.keywords.items()
        }
        return ColumnMapping(**resolved)

    def resolve(self, log: LogData) -> ResolvedColumns:
        """
        Resolve every header-derived fact the analyzers need.

        Never raises: unmatched channels resolve to None.
        """
        mapping = self.resolve_mapping(log.headers)
        timing_columns = tuple(find_timing_columns(log.headers))

        boost_unit = detect_boost_unit(
            mapping.boost,
            log.sample(mapping.boost, BOOST_SAMPLE_ROWS) if mapping.boost else (),
        )

        iat_unit = None
        if mapping.iat:
            iat_unit = detect_iat_unit(mapping.iat, log.sample(mapping.iat, len(log)))

        missing = mapping.missing()
        logger.debug(
            f"Resolved columns: {mapping.to_dict()}; timing={list(timing_columns)}; "
            f"boost_unit={boost_unit.value}; iat_unit={iat_unit.value if iat_unit else None}"
        )
        if missing:
            logger.info(f"Channels not found in log: {', '.join(missing)}")

        return ResolvedColumns(
            mapping=mapping,
            timing_columns=timing_columns,
            boost_unit=boost_unit,
            iat_unit=iat_unit,
        )
