"""Tests for configuration settings."""
import logging

import pytest

from nativepace.config import Settings, settings
from nativepace.logging_config import setup_logging
from nativepace.services.review_queue import DEFAULT_DUE_PATTERNS_LIMIT, DEFAULT_NEW_PATTERNS_LIMIT
from nativepace.services.spaced_repetition import DEFAULT_AVERAGE_TIME_MS
from nativepace.services.text_similarity import DEFAULT_SIMILARITY_THRESHOLD


def test_test_database_is_in_memory() -> None:
    """Test that the suite runs against an in-memory database."""
    assert settings.database.url == "sqlite://"


def test_learning_defaults_match_engine_constants() -> None:
    """Test that configured defaults agree with the engine constants."""
    assert settings.learning.similarity_threshold == DEFAULT_SIMILARITY_THRESHOLD
    assert settings.learning.average_response_time_ms == DEFAULT_AVERAGE_TIME_MS
    assert settings.learning.due_patterns_limit == DEFAULT_DUE_PATTERNS_LIMIT
    assert settings.learning.new_patterns_limit == DEFAULT_NEW_PATTERNS_LIMIT


def test_validate_rejects_bad_values() -> None:
    """Test settings validation."""
    test_settings = Settings()
    test_settings.learning.similarity_threshold = 120
    with pytest.raises(ValueError):
        test_settings.validate()

    test_settings = Settings()
    test_settings.monitoring.port = 0
    with pytest.raises(ValueError):
        test_settings.validate()


def test_setup_logging_level() -> None:
    """Test that logging is configured at the requested level."""
    setup_logging("test run", level="warning")
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    setup_logging(level=logging.INFO)
