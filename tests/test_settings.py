"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from finledger.config import AppSettings, LedgerSettings, get_settings, validate_all_settings


class TestLedgerSettings:
    """Tests for LedgerSettings."""

    def test_defaults(self, monkeypatch):
        """Test the default windows, caps and labels."""
        for name in (
            "LEDGER_UNCATEGORIZED_LABEL",
            "LEDGER_SPENDING_PACE_DAYS",
            "LEDGER_TOP_CATEGORIES_LIMIT",
            "LEDGER_PERCENTAGE_PLACES",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = LedgerSettings(_env_file=None)
        assert settings.uncategorized_label == "Uncategorized"
        assert settings.spending_pace_days == 30
        assert settings.top_categories_limit == 5
        assert settings.recent_transactions_days == 7
        assert settings.recent_transactions_limit == 5
        assert settings.upcoming_window_days == 14
        assert settings.percentage_places == 4
        assert settings.day_label_format == "%d/%m"

    def test_env_override(self, monkeypatch):
        """Test values are read from LEDGER_ prefixed variables."""
        monkeypatch.setenv("LEDGER_TOP_CATEGORIES_LIMIT", "3")
        monkeypatch.setenv("LEDGER_UNCATEGORIZED_LABEL", "Sem Categoria")

        settings = LedgerSettings(_env_file=None)
        assert settings.top_categories_limit == 3
        assert settings.uncategorized_label == "Sem Categoria"

    def test_rejects_out_of_range(self, monkeypatch):
        """Test a zero-day spending pace is rejected."""
        monkeypatch.setenv("LEDGER_SPENDING_PACE_DAYS", "0")
        with pytest.raises(ValidationError):
            LedgerSettings(_env_file=None)


class TestAppSettings:
    """Tests for AppSettings."""

    def test_log_level_normalized(self):
        """Test log level is upper-cased."""
        assert AppSettings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_log_level_rejected(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None, log_level="verbose")


class TestSettingsRoot:
    """Tests for the cached settings root."""

    def test_get_settings_is_cached(self):
        """Test the same instance is returned until the cache is cleared."""
        assert get_settings() is get_settings()

    def test_validate_all_settings(self):
        """Test both sections validate with defaults."""
        results = validate_all_settings()
        assert results["ledger"] is True
        assert results["app"] is True
