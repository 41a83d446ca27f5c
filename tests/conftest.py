"""
Pytest fixtures and configuration.
"""

import pytest
from pathlib import Path

# Add project root to path
import sys
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# BM3-style export: AFR in ratio units, psi boost, Fahrenheit IAT, logged HPFP target
BM3_HEALTHY_CSV = """Time (s),RPM,Load (%),AFR,AFR Target,Boost (psi),Intake Air Temp [°F],HPFP Actual (psi),HPFP Target (psi),Accel Pedal (%),Throttle Position (%),Timing Correction Cyl1,Timing Correction Cyl2,Timing Correction Cyl3,Timing Correction Cyl4
0.0,850,20,14.7,14.7,-10.0,95,500,450,0,2,0,0,0,0
0.1,1500,35,14.5,14.7,-5.0,96,800,800,10,12,0,0,0,0
0.2,2500,60,12.5,12.5,3.0,98,2500,2600,60,50,0,0,0,0
0.3,3500,85,11.8,11.8,12.0,100,2900,3000,100,100,0,-0.5,0,0
0.4,4500,95,11.7,11.8,18.0,102,2950,3000,100,100,-1.0,0,0,0
0.5,5500,98,11.9,11.8,19.0,104,2900,3000,100,100,0,0,-1.5,0
0.6,6000,97,11.8,11.8,18.5,105,2880,3000,100,100,0,0,0,-0.5
0.7,6200,96,11.9,11.8,18.0,106,2870,3000,100,100,0,0,0,0
0.8,4000,15,19.5,14.7,-8.0,104,600,500,0,1,0,0,0,0
0.9,2500,10,21.0,14.7,-10.0,103,550,500,0,1,0,0,0,0
"""

# MHD-style export: lambda, gauge bar boost, Celsius IAT, no HPFP target
MHD_RISK_CSV = """Time,Engine speed [rpm],Engine load [%],Lambda act. [-],Boost pressure [bar],IAT [°C],HPFP act. [psi],Accel. pedal [%],Throttle angle [%],Ignition correction cyl 1,Ignition correction cyl 2,Ignition correction cyl 3,Ignition correction cyl 4
0.00,900,18,1.00,-0.40,40,350,0,2,0,0,0,0
0.05,1800,40,0.99,-0.10,41,900,20,20,0,0,0,0
0.10,3000,75,0.78,0.80,45,2200,100,100,0,-1.0,0,0
0.15,4000,88,0.80,1.20,52,2300,100,100,-2.5,0,0,0
0.20,5000,92,0.78,1.40,58,1700,100,100,0,-4.5,0,0
0.25,6000,95,0.77,1.50,62,2250,100,100,0,0,-3.0,0
0.30,6500,96,0.79,1.45,61,2200,100,100,0,0,0,-1.0
0.35,4000,12,1.30,-0.50,60,400,0,1,0,0,0,0
"""


@pytest.fixture
def bm3_csv_text():
    """Healthy BM3 pull: idle, ramp, WOT, lift into fuel cut."""
    return BM3_HEALTHY_CSV


@pytest.fixture
def mhd_csv_text():
    """MHD pull on E40 with lean, HPFP, IAT and timing problems."""
    return MHD_RISK_CSV


@pytest.fixture
def sample_bm3_csv(tmp_path):
    """Write the healthy BM3 log to disk."""
    csv_file = tmp_path / "bm3_pull.csv"
    csv_file.write_text(BM3_HEALTHY_CSV, encoding="utf-8")
    return str(csv_file)


@pytest.fixture
def sample_mhd_csv(tmp_path):
    """Write the MHD log to disk."""
    csv_file = tmp_path / "mhd_pull.csv"
    csv_file.write_text(MHD_RISK_CSV, encoding="utf-8")
    return str(csv_file)


@pytest.fixture
def empty_csv(tmp_path):
    """Create an empty CSV file."""
    csv_file = tmp_path / "empty.csv"
    csv_file.write_text("")
    return str(csv_file)


@pytest.fixture
def non_csv_file(tmp_path):
    """Create a non-CSV file."""
    txt_file = tmp_path / "test.txt"
    txt_file.write_text("This is not a CSV file")
    return str(txt_file)


@pytest.fixture
def log_parser():
    """Get LogParser instance."""
    from ethos85.services.log_parser import LogParser
    return LogParser()


@pytest.fixture
def column_resolver():
    """Get ColumnResolver instance."""
    from ethos85.services.column_resolver import ColumnResolver
    return ColumnResolver()


@pytest.fixture
def settings(monkeypatch):
    """Settings built from a clean environment."""
    import ethos85.config.settings as settings_module

    for name in (
        "ETHOS85_LOG_LEVEL", "ETHOS85_LOG_TO_FILE", "ETHOS85_LOG_DIR",
        "ETHOS85_STRUCTURED_LOGS", "ETHOS85_DEFAULT_ETHANOL", "ETHOS85_DEFAULT_ENGINE",
        "ETHOS85_CHART_MAX_POINTS", "ETHOS85_MAX_UPLOAD_MB",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings_module, "_settings", None)
    return settings_module.Settings()


@pytest.fixture
def log_analyzer(settings):
    """Get LogAnalyzer instance with default settings."""
    from ethos85.services.log_analyzer import LogAnalyzer
    return LogAnalyzer(settings)


@pytest.fixture
def prepare_log():
    """
    Parse CSV text and resolve it the way the analyzer does.

    Returns a function: text -> (log, columns, regimes).
    """
    from ethos85.services.column_resolver import ColumnResolver
    from ethos85.services.log_parser import LogParser
    from ethos85.services.row_classifier import regime_inputs

    def _prepare(text):
        log = LogParser().parse_text(text)
        columns = ColumnResolver().resolve(log)
        regimes = regime_inputs(log, columns.mapping, columns.boost_unit)
        return log, columns, regimes

    return _prepare


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers added by setup_logging() so streams are not reused across tests."""
    import logging
    from ethos85.config.logging_config import ROOT_LOGGER

    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
