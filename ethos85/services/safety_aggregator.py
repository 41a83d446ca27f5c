"""
Safety Aggregation Service.

Combines the four metric verdicts into the log's overall status and builds
the human-readable key points shown next to the metric cards.
"""

from typing import Dict, List, Optional, Tuple

from ..config.logging_config import get_logger
from ..insights.templates import KeyPointTemplates
from ..models.analysis import (
    AfrResult, CarProfile, HpfpResult, IatResult, Status, TimingResult,
)
from ..utils.helpers import round_n
from .thresholds import normalize_ethanol, stoich_afr
from .timing_analyzer import TIMING_CAUTION_DEG

logger = get_logger(__name__)

DEFAULT_ENGINE = "B58"
HPFP_HIGH_ETHANOL = 40.0
TIMING_HIGH_ETHANOL = 30.0


def worst_status(*statuses: Optional[Status]) -> Status:
    """
    Highest-ranked status under Safe < Caution < Risk.

    None entries are ignored and no input at all is Safe.
    """
    worst = Status.SAFE
    for status in statuses:
        if status is not None and status.rank > worst.rank:
            worst = status
    return worst


def _format_ethanol(ethanol: float) -> str:
    return str(int(ethanol)) if float(ethanol).is_integer() else str(ethanol)


class SafetyAggregator:
    """
    Rolls metric results up into an overall verdict.

    Key points are presentation text only: they never change a status.
    """

    def __init__(self, default_ethanol: float = 10.0, default_engine: str = DEFAULT_ENGINE):
        self.default_ethanol = default_ethanol
        self.default_engine = default_engine

    def overall_status(
        self,
        afr: AfrResult,
        hpfp: HpfpResult,
        iat: IatResult,
        timing: TimingResult,
    ) -> Status:
        status = worst_status(afr.status, hpfp.status, iat.status, timing.status)
        logger.debug(
            f"Overall {status.value} (afr={afr.status.value}, hpfp={hpfp.status.value}, "
            f"iat={iat.status.value}, timing={timing.status.value})"
        )
        return status

    def collect_notes(
        self,
        afr: AfrResult,
        hpfp: HpfpResult,
        iat: IatResult,
        timing: TimingResult,
    ) -> Tuple[str, ...]:
        """Non-empty metric notes in AFR, HPFP, IAT, timing order."""
        return tuple(r.note for r in (afr, hpfp, iat, timing) if r.note)

    def build_key_points(
        self,
        afr: AfrResult,
        hpfp: HpfpResult,
        iat: IatResult,
        timing: TimingResult,
        car_profile: CarProfile,
    ) -> Tuple[str, ...]:
        """
        Build guidance text tailored to the blend and engine.

        Args:
            afr, hpfp, iat, timing: Metric results for the log
            car_profile: Car details from the upload form

        Returns:
            Key point strings in metric order
        """
        t = KeyPointTemplates
        ethanol = normalize_ethanol(car_profile.ethanol_percent, self.default_ethanol)
        ethanol_label = _format_ethanol(ethanol)
        engine = car_profile.engine_model or self.default_engine
        points: List[str] = []

        if afr.actual is not None:
            if afr.rich_events and not afr.lean_events:
                verdict = t.AFR_RICH_VERDICTS[afr.status.value]
            else:
                verdict = t.AFR_VERDICTS[afr.status.value]
            points.append(t.AFR_CONTEXT.format(
                ethanol=ethanol_label,
                stoich=round_n(stoich_afr(ethanol), 2),
                actual=afr.actual,
                verdict=verdict,
            ))
        elif afr.note and "not found" in afr.note:
            points.append(t.AFR_MISSING)

        if hpfp.actual is not None:
            high_ethanol = ethanol >= HPFP_HIGH_ETHANOL
            if hpfp.status is not Status.SAFE:
                if high_ethanol:
                    fuel_note = t.HPFP_HIGH_ETHANOL_PUMP.format(ethanol=ethanol_label)
                else:
                    fuel_note = t.HPFP_PUMP_HEALTH
                points.append(t.HPFP_DROP.format(
                    actual=hpfp.actual, drop=hpfp.max_drop_pct, fuel_note=fuel_note,
                ))
            elif high_ethanol:
                points.append(t.HPFP_HIGH_ETHANOL_OK.format(
                    actual=hpfp.actual, ethanol=ethanol_label,
                ))

        if timing.max_correction is not None and timing.max_correction < TIMING_CAUTION_DEG:
            if ethanol >= TIMING_HIGH_ETHANOL:
                pull_note = t.TIMING_HIGH_ETHANOL.format(ethanol=ethanol_label)
            else:
                pull_note = t.TIMING_LOW_ETHANOL.format(ethanol=ethanol_label)
            points.append(t.TIMING_PULL.format(
                correction=timing.max_correction, pull_note=pull_note,
            ))

        if iat.value is not None and iat.status is not Status.SAFE:
            points.append(t.IAT_HEAT_SOAK.format(
                peak_f=iat.peak_f, intercooler_note=t.intercooler_note(engine),
            ))

        return tuple(points)

    def get_status_color(self, status: Status) -> Dict[str, str]:
        """
        Get the icon and display name for a status.

        Args:
            status: Metric or overall status

        Returns:
            Dictionary with icon and name
        """
        colors = {
            Status.RISK: {"icon": "🔴", "name": "Risk"},
            Status.CAUTION: {"icon": "🟡", "name": "Caution"},
            Status.SAFE: {"icon": "🟢", "name": "Safe"},
        }
        return colors.get(status, colors[Status.SAFE])

    def format_status_badge(self, status: Status) -> str:
        colors = self.get_status_color(status)
        return f"{colors['icon']} {colors['name']}"

    def get_status_recommendation(self, status: Status) -> str:
        """
        Get a general recommendation for an overall status.

        Args:
            status: Overall status

        Returns:
            Recommendation string
        """
        recommendations = {
            Status.RISK: "STOP HIGH-LOAD DRIVING: Review the flagged metrics with your tuner before the next pull.",
            Status.CAUTION: "MONITOR: Log again after any tune or fuel change and watch the flagged metrics.",
            Status.SAFE: "ALL GOOD: No safety concerns found under load in this log.",
        }
        return recommendations.get(status, recommendations[Status.SAFE])
