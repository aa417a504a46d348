"""
Unit Tests - Configuration
"""
import logging

import pytest
from pydantic import ValidationError
import structlog

from admin_dashboard.config import Settings
from admin_dashboard.config.logging import configure_logging
from admin_dashboard.config.settings import AdminApiSettings, DashboardSettings


class TestSettings:
    """Tests for settings sections"""

    def test_defaults(self, test_settings):
        """Test defaults used by the aggregator"""
        dashboard = test_settings.dashboard

        assert test_settings.app_env == "testing"
        assert dashboard.default_range == "7d"
        assert dashboard.top_products_limit == 6
        assert dashboard.low_stock_threshold == 5
        assert dashboard.all_range_series_days == 30
        assert dashboard.exclude_flagged_refunds is False

    def test_environment_variables(self, monkeypatch):
        """Test prefixed environment variables"""
        monkeypatch.setenv("ADMIN_API_BASE_URL", "https://shop.example.com/api/admin/v1")
        monkeypatch.setenv("ADMIN_API_TOKEN", "s3cret")
        monkeypatch.setenv("ADMIN_API_AMOUNT_UNIT", "minor")
        monkeypatch.setenv("DASHBOARD_TIMEZONE", "Australia/Sydney")

        admin_api = AdminApiSettings()
        dashboard = DashboardSettings()

        assert admin_api.base_url == "https://shop.example.com/api/admin/v1"
        assert admin_api.token.get_secret_value() == "s3cret"
        assert "s3cret" not in repr(admin_api)
        assert admin_api.amount_unit == "minor"
        assert dashboard.timezone == "Australia/Sydney"

    def test_invalid_amount_unit(self):
        """Test currency unit validation"""
        with pytest.raises(ValidationError):
            AdminApiSettings(amount_unit="pennies")

    def test_invalid_environment(self):
        """Test environment validation"""
        with pytest.raises(ValidationError):
            Settings(app_env="moon")


class TestLogging:
    """Tests for logging setup"""

    def test_configure_logging(self):
        """Test the root logger gets a single handler at the requested level"""
        configure_logging("WARNING")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").propagate is False

        structlog.get_logger(__name__).warning("configured", check=True)
