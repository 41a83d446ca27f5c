"""
Key-point templates for the analysis report.
"""


class KeyPointTemplates:
    """Collection of guidance strings shown alongside the metric cards."""

    # AFR
    AFR_CONTEXT = (
        "For E{ethanol} fuel, stoichiometric AFR is ~{stoich}:1. "
        "AFR under load in this log: {actual}:1, {verdict}"
    )
    AFR_VERDICTS = {
        "Safe": "well within safe range.",
        "Caution": "slightly lean. Monitor for lean events and consider a tune revision.",
        "Risk": "dangerously lean. Stop high-load driving and review the tune immediately.",
    }
    AFR_RICH_VERDICTS = {
        "Caution": "richer than the tune should run. Check injector scaling and fuel trims.",
        "Risk": "dangerously rich. Check for leaking injectors or an incorrect ethanol setting.",
    }
    AFR_MISSING = "No AFR column detected. Verify your export includes lambda or AFR data."

    # HPFP
    HPFP_DROP = (
        "HPFP averaged {actual} psi under load with a {drop}% drop vs target. {fuel_note}"
    )
    HPFP_HIGH_ETHANOL_PUMP = (
        "High-ethanol blends demand higher fuel flow. Ensure your LPFP (low-side pump) "
        "is upgraded for E{ethanol}."
    )
    HPFP_PUMP_HEALTH = "Check LPFP health, fuel filter condition, and HPFP cam lobe wear."
    HPFP_HIGH_ETHANOL_OK = (
        "HPFP at {actual} psi under load is acceptable for E{ethanol}. "
        "If you increase ethanol further, confirm your LPFP can support the higher flow demand."
    )

    # Timing
    TIMING_PULL = "Timing correction of {correction}° under load. {pull_note}"
    TIMING_HIGH_ETHANOL = (
        "On E{ethanol}, knock retard is unexpected. Check for heat soak, misfires, "
        "or a faulty knock sensor."
    )
    TIMING_LOW_ETHANOL = (
        "On E{ethanol}, consider raising ethanol content or adding water-methanol "
        "injection to reduce knock sensitivity."
    )

    # IAT
    IAT_HEAT_SOAK = "Peak IAT of {peak_f}°F indicates heat soak. {intercooler_note}"
    INTERCOOLER_NOTES = {
        "S58": "The S58 generates significant heat. An upgraded charge cooler is strongly recommended.",
        "N55": "N-series engines benefit from an upgraded FMIC at sustained high IAT.",
        "N54": "N-series engines benefit from an upgraded FMIC at sustained high IAT.",
    }
    INTERCOOLER_DEFAULT = "A front-mount intercooler (FMIC) or upgraded top-mount will help significantly."

    @classmethod
    def intercooler_note(cls, engine: str) -> str:
        """Pick the intercooler advice for an engine model string."""
        for code, note in cls.INTERCOOLER_NOTES.items():
            if code in engine:
                return note
        return cls.INTERCOOLER_DEFAULT
