"""
Input validation utilities for uploaded datalogs and car profiles.
"""

import math
from typing import Tuple, Any, Dict, Optional
from pathlib import Path

from .helpers import format_file_size

# Ethanol blends offered by the car-profile form
SUPPORTED_ETHANOL_BLENDS = (0, 10, 30, 40, 50, 85)

# Header fragments that show up in BM3 / MHD exports
DATALOG_KEYWORDS = (
    "time", "rpm", "load", "afr", "lambda", "boost", "iat", "intake",
    "hpfp", "fuel pressure", "pedal", "throttle", "timing", "ign", "knock",
)


class Validators:
    """Collection of validation functions returning (is_valid, message)."""

    @staticmethod
    def validate_file_path(file_path: str, expected_extension: str = ".csv") -> Tuple[bool, str]:
        """
        Validate a file path.

        Args:
            file_path: Path to validate
            expected_extension: Expected file extension

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not file_path:
            return False, "File path is required"

        path = Path(file_path)

        if not path.exists():
            return False, "File does not exist"

        if not path.is_file():
            return False, "Path is not a file"

        if expected_extension and path.suffix.lower() != expected_extension.lower():
            return False, f"Only {expected_extension} files are accepted."

        return True, ""

    @staticmethod
    def validate_upload_size(size_bytes: int, max_bytes: int) -> Tuple[bool, str]:
        """Reject empty uploads and uploads over the size ceiling."""
        if size_bytes <= 0:
            return False, "File is empty."
        if size_bytes > max_bytes:
            return False, (
                f"File is {format_file_size(size_bytes)}; "
                f"the limit is {format_file_size(max_bytes)}."
            )
        return True, ""

    @staticmethod
    def validate_csv_content(content: str) -> Tuple[bool, str]:
        """
        Validate CSV content structure.

        Args:
            content: CSV content string

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not content or not content.strip():
            return False, "CSV content is empty"

        lines = [line for line in content.splitlines() if line.strip()]
        if len(lines) < 2:
            return False, "CSV must have at least a header and one data row"

        header = lines[0].lower()
        if not any(kw in header for kw in DATALOG_KEYWORDS):
            return False, "CSV does not appear to be a BM3 or MHD datalog"

        return True, ""

    @staticmethod
    def validate_ethanol_percent(value: Any) -> Tuple[bool, str]:
        """
        Check an ethanol percentage from the car profile.

        Blank means "use the default". Any number from 0 to 85 passes, including
        blends the form does not list; non-numeric or out-of-range values fail.
        """
        if value is None or value == "":
            return True, ""
        try:
            ethanol = float(value)
        except (TypeError, ValueError):
            return False, "Ethanol percentage must be a number"
        if math.isnan(ethanol):
            return False, "Ethanol percentage must be a number"
        if not 0 <= ethanol <= 85:
            return False, "Ethanol percentage must be between 0 and 85"
        return True, ""

    @staticmethod
    def validate_car_profile(profile: Optional[Dict[str, Any]]) -> Tuple[bool, str]:
        """Validate the car-profile object sent alongside an upload."""
        if profile is None:
            return True, ""
        if not isinstance(profile, dict):
            return False, "Car details must be an object"

        ethanol = profile.get("ethanolPercent", profile.get("ethanol"))
        is_valid, message = Validators.validate_ethanol_percent(ethanol)
        if not is_valid:
            return False, message

        for key in ("engineModel", "engine", "tuneStage"):
            value = profile.get(key)
            if value is not None and not isinstance(value, str):
                return False, f"{key} must be a string"

        return True, ""
