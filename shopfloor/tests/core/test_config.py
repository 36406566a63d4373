"""
Tests for settings parsing and logging setup.
"""

import pytest
import structlog

from shopfloor.core.config import Settings, parse_status_list
from shopfloor.core.observability import get_logger, setup_structured_logging


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.STRICT_BREAKDOWN_RESOLUTION is True
        assert settings.DEDUPLICATE_BREAKDOWN_REPORTS is True
        assert settings.ACTUAL_HOURS_PRECISION == 2
        assert settings.TIMELINE_EXCLUDED_ORDER_STATUSES == ["DELIVERED", "CANCELLED", "CLOSED"]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SHOPFLOOR_STRICT_BREAKDOWN_RESOLUTION", "false")
        monkeypatch.setenv("SHOPFLOOR_TIMELINE_EXCLUDED_ORDER_STATUSES", "delivered, closed")

        settings = Settings(_env_file=None)

        assert settings.STRICT_BREAKDOWN_RESOLUTION is False
        assert settings.TIMELINE_EXCLUDED_ORDER_STATUSES == ["DELIVERED", "CLOSED"]

    def test_parse_status_list(self):
        assert parse_status_list("a,b") == ["A", "B"]
        assert parse_status_list(["X"]) == ["X"]
        with pytest.raises(ValueError):
            parse_status_list(3)


class TestLogging:
    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_setup_structured_logging(self, log_format):
        settings = Settings(_env_file=None, LOG_FORMAT=log_format, LOG_LEVEL="debug")

        setup_structured_logging(settings)

        assert structlog.is_configured()
        get_logger("shopfloor.tests").info("configured", log_format=log_format)
