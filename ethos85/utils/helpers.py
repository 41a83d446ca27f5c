"""
Helper utility functions.
"""

import math
import re
from typing import Optional


def is_missing(value: Optional[float]) -> bool:
    """True for None and NaN readings."""
    return value is None or (isinstance(value, float) and math.isnan(value))


def round_n(value: float, digits: int) -> float:
    """
    Round half away from zero, the way the chart and the JSON report expect.

    Args:
        value: Number to round
        digits: Decimal places

    Returns:
        Rounded float
    """
    factor = 10 ** digits
    scaled = abs(value) * factor
    rounded = math.floor(scaled + 0.5) / factor
    return math.copysign(rounded, value) if rounded else 0.0


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


def safe_filename(filename: str, max_length: int = 100) -> str:
    """
    Convert an uploaded file name to a safe display/report name.

    Args:
        filename: Original filename
        max_length: Maximum length

    Returns:
        Safe filename
    """
    safe = re.sub(r'[<>:"/\\|?*\x00]', '', filename or "")
    safe = safe.replace(' ', '_')

    if len(safe) > max_length:
        safe = safe[:max_length]

    return safe
