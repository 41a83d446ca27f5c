"""
Application settings and configuration management.
Loads configuration from environment variables and .env file.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Tuple, List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass
class Settings:
    """Application configuration settings."""

    # Logging
    log_level: str = field(
        default_factory=lambda: os.getenv("ETHOS85_LOG_LEVEL", "INFO")
    )
    log_to_file: bool = field(
        default_factory=lambda: _env_bool("ETHOS85_LOG_TO_FILE")
    )
    structured_logs: bool = field(
        default_factory=lambda: _env_bool("ETHOS85_STRUCTURED_LOGS")
    )
    log_dir: Path = field(
        default_factory=lambda: Path(os.getenv("ETHOS85_LOG_DIR", "./logs"))
    )

    # Car profile defaults used when the form leaves a field blank
    default_ethanol_percent: float = field(
        default_factory=lambda: _env_float("ETHOS85_DEFAULT_ETHANOL", 10.0)
    )
    default_engine: str = field(
        default_factory=lambda: os.getenv("ETHOS85_DEFAULT_ENGINE", "B58")
    )

    # Analysis
    chart_max_points: int = field(
        default_factory=lambda: _env_int("ETHOS85_CHART_MAX_POINTS", 150)
    )
    max_upload_mb: float = field(
        default_factory=lambda: _env_float("ETHOS85_MAX_UPLOAD_MB", 20.0)
    )

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)

    def validate(self) -> Tuple[bool, List[str]]:
        """Validate settings values."""
        errors = []

        if self.chart_max_points <= 0:
            errors.append("ETHOS85_CHART_MAX_POINTS must be greater than 0")
        if self.max_upload_mb <= 0:
            errors.append("ETHOS85_MAX_UPLOAD_MB must be greater than 0")
        if not 0 <= self.default_ethanol_percent <= 85:
            errors.append("ETHOS85_DEFAULT_ETHANOL must be between 0 and 85")

        return len(errors) == 0, errors


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
