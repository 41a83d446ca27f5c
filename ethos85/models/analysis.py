"""
Analysis value types for Ethos85.
Immutable records passed between the column resolver, the analyzers and the
aggregator, plus the JSON shape handed to the rendering layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple


class Status(Enum):
    """Safety verdict for a single metric or a whole log."""
    SAFE = "Safe"
    CAUTION = "Caution"
    RISK = "Risk"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {Status.SAFE: 0, Status.CAUTION: 1, Status.RISK: 2}


class BoostUnit(Enum):
    PSI = "psi"
    BAR = "bar"
    KPA = "kpa"


class IatUnit(Enum):
    FAHRENHEIT = "F"
    CELSIUS = "C"


# Semantic channels resolved from the CSV header row
CHANNELS: Tuple[str, ...] = (
    "time", "rpm", "load", "afr", "boost", "iat",
    "hpfp", "hpfp_target", "afr_target", "pedal", "throttle",
)


@dataclass(frozen=True)
class ColumnMapping:
    """Semantic channel name -> resolved CSV header (None when unmatched)."""
    time: Optional[str] = None
    rpm: Optional[str] = None
    load: Optional[str] = None
    afr: Optional[str] = None
    boost: Optional[str] = None
    iat: Optional[str] = None
    hpfp: Optional[str] = None
    hpfp_target: Optional[str] = None
    afr_target: Optional[str] = None
    pedal: Optional[str] = None
    throttle: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {name: getattr(self, name) for name in CHANNELS}

    def missing(self) -> List[str]:
        return [name for name in CHANNELS if getattr(self, name) is None]


@dataclass(frozen=True)
class Thresholds:
    """Ethanol-scaled AFR bounds. Values are kept at full precision."""
    stoich: float
    lean_risk: float
    lean_caution: float
    rich_risk: float
    rich_caution: float


@dataclass(frozen=True)
class CarProfile:
    """Car details supplied by the form UI; echoed back in the result."""
    ethanol_percent: Any = None
    engine_model: str = ""
    tune_stage: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CarProfile":
        """Accepts both the form keys (ethanol/engine) and the long names."""
        data = dict(data or {})
        ethanol = data.get("ethanolPercent", data.get("ethanol"))
        engine = data.get("engineModel", data.get("engine")) or ""
        tune = data.get("tuneStage", data.get("tune_stage")) or ""
        return cls(
            ethanol_percent=ethanol,
            engine_model=str(engine),
            tune_stage=str(tune),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.raw:
            return dict(self.raw)
        return {
            "ethanolPercent": self.ethanol_percent,
            "engineModel": self.engine_model,
            "tuneStage": self.tune_stage,
        }


@dataclass(frozen=True)
class AfrResult:
    status: Status = Status.SAFE
    actual: Optional[float] = None
    target: Optional[float] = None
    lean_events: int = 0
    rich_events: int = 0
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actual": self.actual,
            "target": self.target,
            "lean_events": self.lean_events,
            "rich_events": self.rich_events,
            "status": self.status.value,
            "note": self.note,
        }


@dataclass(frozen=True)
class HpfpResult:
    status: Status = Status.SAFE
    actual: Optional[float] = None
    target: Optional[float] = None
    max_drop_pct: Optional[float] = None
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actual": self.actual,
            "target": self.target,
            "max_drop_pct": self.max_drop_pct,
            "status": self.status.value,
            "note": self.note,
        }


@dataclass(frozen=True)
class IatResult:
    status: Status = Status.SAFE
    value: Optional[float] = None
    unit: IatUnit = IatUnit.FAHRENHEIT
    peak_f: Optional[float] = None
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "unit": self.unit.value,
            "peak_f": self.peak_f,
            "status": self.status.value,
            "note": self.note,
        }


@dataclass(frozen=True)
class TimingResult:
    status: Status = Status.SAFE
    max_correction: Optional[float] = None
    worst_column: Optional[str] = None
    cylinders: str = ""
    pull_events: int = 0
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_correction": self.max_correction,
            "cylinders": self.cylinders,
            "pull_events": self.pull_events,
            "status": self.status.value,
            "note": self.note,
        }


@dataclass(frozen=True)
class ChartPoint:
    """One downsampled chart sample. Optional readings are omitted from JSON."""
    time: Any
    afr_actual: Optional[float] = None
    afr_target: Optional[float] = None
    boost: Optional[float] = None
    is_lean_warning: bool = False
    is_hpfp_warning: bool = False
    is_timing_warning: bool = False

    def to_dict(self) -> Dict[str, Any]:
        point: Dict[str, Any] = {"time": self.time}
        if self.afr_actual is not None:
            point["afrActual"] = self.afr_actual
        if self.afr_target is not None:
            point["afrTarget"] = self.afr_target
        if self.boost is not None:
            point["boost"] = self.boost
        point["isLeanWarning"] = self.is_lean_warning
        point["isHpfpWarning"] = self.is_hpfp_warning
        point["isTimingWarning"] = self.is_timing_warning
        return point


@dataclass(frozen=True)
class AnalysisResult:
    """Aggregate root returned by one analysis call."""
    filename: str
    row_count: int
    status: Status
    car_details: CarProfile
    afr: AfrResult
    hpfp: HpfpResult
    iat: IatResult
    timing: TimingResult
    chart_data: Tuple[ChartPoint, ...] = ()
    key_points: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "rowCount": self.row_count,
            "status": self.status.value,
            "carDetails": self.car_details.to_dict(),
            "metrics": {
                "afr": self.afr.to_dict(),
                "hpfp": self.hpfp.to_dict(),
                "iat": self.iat.to_dict(),
                "timingCorrections": self.timing.to_dict(),
            },
            "chartData": [p.to_dict() for p in self.chart_data],
            "keyPoints": list(self.key_points),
            "summary": {
                "afr_status": self.afr.status.value,
                "hpfp_status": self.hpfp.status.value,
                "iat_status": self.iat.status.value,
                "timing_status": self.timing.status.value,
                "overall_safety_score": self.status.value,
                "notes": list(self.notes),
            },
        }
