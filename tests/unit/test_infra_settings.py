"""
Deployment settings tests.

Run with: pytest tests/unit/test_infra_settings.py -v
"""

from unittest.mock import patch

from infrastructure.config.settings import Settings


def test_defaults():
    with patch.dict("os.environ", {}, clear=True):
        settings = Settings.from_environment()
    assert settings.environment == "dev"
    assert settings.log_level == "INFO"
    assert settings.table_name == "transit-tickets-dev"


def test_log_level_from_environment():
    with patch.dict("os.environ", {"LOG_LEVEL": "debug", "DAY_BOUNDARY_TZ": "Europe/Madrid"}):
        settings = Settings.from_environment()
    assert settings.log_level == "DEBUG"
    assert settings.day_boundary_tz == "Europe/Madrid"


def test_prod_overrides_keep_log_level():
    with patch.dict("os.environ", {"ENVIRONMENT": "prod", "LOG_LEVEL": "WARNING"}):
        settings = Settings.from_environment()
    assert settings.point_in_time_recovery is True
    assert settings.lambda_memory_mb == 512
    assert settings.log_level == "WARNING"
