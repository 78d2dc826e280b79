"""
Tests for logging setup.

Covers:
- stderr sink honours the configured level
- Optional file sink
"""

from loguru import logger

from affiliate_engine.config.settings import Settings
from affiliate_engine.utils.logging import setup_logging


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "environment": "development",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSetupLogging:
    """Test setup_logging."""

    def teardown_method(self):
        logger.remove()

    def test_file_sink_receives_records(self, tmp_path):
        """Test records reach the configured log file."""
        log_file = tmp_path / "engine.log"
        setup_logging(make_settings(log_file=str(log_file), log_level="info"))

        logger.info("Commission credited")
        logger.complete()

        content = log_file.read_text(encoding="utf-8")
        assert "Logging configured" in content
        assert "Commission credited" in content

    def test_level_filters_file_sink(self, tmp_path):
        """Test records below the level are dropped."""
        log_file = tmp_path / "engine.log"
        setup_logging(make_settings(log_file=str(log_file), log_level="WARNING"))

        logger.info("not written")
        logger.warning("balance below threshold")
        logger.complete()

        content = log_file.read_text(encoding="utf-8")
        assert "not written" not in content
        assert "balance below threshold" in content

    def test_without_log_file(self, capsys):
        """Test stderr-only configuration."""
        setup_logging(make_settings(log_level="DEBUG"))

        logger.debug("debug line")

        assert "debug line" in capsys.readouterr().err
