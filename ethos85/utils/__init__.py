"""Utility modules for Ethos85."""

from .validators import Validators, SUPPORTED_ETHANOL_BLENDS
from .helpers import is_missing, round_n, format_file_size, safe_filename

__all__ = [
    "Validators",
    "SUPPORTED_ETHANOL_BLENDS",
    "is_missing",
    "round_n",
    "format_file_size",
    "safe_filename",
]
