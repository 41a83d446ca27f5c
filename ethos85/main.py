#!/usr/bin/env python3
"""
Ethos85 - Command Line Entry Point

Runs the safety analysis over a BM3 or MHD datalog and prints a report.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config.logging_config import setup_logging
from .config.settings import get_settings
from .models.analysis import AnalysisResult
from .services.log_analyzer import LogAnalyzer
from .services.log_parser import LogParseError
from .services.safety_aggregator import SafetyAggregator
from .utils.helpers import safe_filename
from .utils.validators import SUPPORTED_ETHANOL_BLENDS, Validators


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ethos85",
        description="Check a BM3/MHD datalog for lean AFR, HPFP drop, hot IAT and timing pulls.",
    )
    parser.add_argument("log_file", help="Path to the .csv datalog")
    parser.add_argument("--ethanol", default=None, help="Ethanol content of the fuel, 0-85")
    parser.add_argument("--engine", default=None, help="Engine model, e.g. B58, S58, N55")
    parser.add_argument("--tune", default="", help="Tune stage, e.g. 'Stage 2'")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--output-dir", default=None, help="Also write the JSON result to this directory")
    return parser


def format_report(result: AnalysisResult, aggregator: SafetyAggregator) -> str:
    """Plain-text report for the terminal."""
    lines = [
        f"{result.filename} ({result.row_count} rows)",
        f"Overall: {aggregator.format_status_badge(result.status)}",
        "",
    ]

    afr, hpfp, iat, timing = result.afr, result.hpfp, result.iat, result.timing
    metrics = [
        ("AFR", afr.status, f"{afr.actual}:1" if afr.actual is not None else "n/a"),
        ("HPFP", hpfp.status, f"{hpfp.actual} psi" if hpfp.actual is not None else "n/a"),
        ("IAT", iat.status, f"{iat.peak_f}°F" if iat.peak_f is not None else "n/a"),
        ("Timing", timing.status, timing.cylinders or "n/a"),
    ]
    for name, status, value in metrics:
        lines.append(f"  {name:<7} {aggregator.format_status_badge(status):<12} {value}")

    if result.notes:
        lines.append("")
        lines.append("Notes:")
        lines.extend(f"  - {note}" for note in result.notes)

    if result.key_points:
        lines.append("")
        lines.append("Key points:")
        lines.extend(f"  - {point}" for point in result.key_points)

    lines.append("")
    lines.append(aggregator.get_status_recommendation(result.status))
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    logger = setup_logging(
        settings.log_level,
        log_to_file=settings.log_to_file,
        structured=settings.structured_logs,
        log_dir=settings.log_dir,
    )

    is_valid, errors = settings.validate()
    if not is_valid:
        logger.warning(f"Configuration warnings: {errors}")

    car_details = {
        "ethanolPercent": args.ethanol if args.ethanol else settings.default_ethanol_percent,
        "engineModel": args.engine or settings.default_engine,
        "tuneStage": args.tune,
    }

    is_valid, message = Validators.validate_car_profile(car_details)
    if not is_valid:
        logger.error(message)
        return 1

    ethanol = float(car_details["ethanolPercent"])
    if ethanol not in SUPPORTED_ETHANOL_BLENDS:
        logger.warning(f"E{ethanol:g} is not one of the usual blends {SUPPORTED_ETHANOL_BLENDS}")

    analyzer = LogAnalyzer(settings)
    is_valid, message = analyzer.parser.validate_file(args.log_file)
    if not is_valid:
        logger.error(message)
        return 1

    try:
        result = analyzer.analyze_file(args.log_file, car_details)
    except LogParseError as e:
        logger.error(f"Analysis failed: {e}")
        return 1

    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    if args.output_dir:
        out_dir = Path(args.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / f"{safe_filename(Path(args.log_file).stem)}_analysis.json"
        out_path.write_text(payload, encoding="utf-8")
        logger.info(f"Wrote {out_path}")

    if args.json:
        print(payload)
    else:
        print(format_report(result, analyzer.aggregator))

    return 0


if __name__ == "__main__":
    sys.exit(main())
