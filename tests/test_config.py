"""
Tests for settings and logging setup.
"""

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from topkeval.config import Settings
from topkeval.logging_utils import JsonFormatter, setup_logging


class TestSettings:
    """Test configuration defaults and validation."""

    def test_defaults(self, monkeypatch):
        for name in ("TOP_K", "THREAD_NUM", "IGNORE_TRAIN", "INTERVAL", "MAX_ITER_ONLINE"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.top_k == 100
        assert settings.thread_num == 1
        assert settings.ignore_train is False
        assert settings.max_iter_online == 1
        assert settings.breakdown_intervals == 10
        assert settings.data_path == Path("data/")

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("TOP_K", "10")
        monkeypatch.setenv("THREAD_NUM", "4")

        settings = Settings(_env_file=None)

        assert settings.top_k == 10
        assert settings.thread_num == 4

    @pytest.mark.parametrize("field,value", [
        ("top_k", 0),
        ("thread_num", 0),
        ("interval", -1),
        ("breakdown_intervals", -2),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})


class TestLogging:
    """Test logger configuration."""

    def test_setup_is_idempotent(self):
        logger = setup_logging(level="DEBUG", fmt="text")
        setup_logging(level="DEBUG", fmt="text")

        assert logger.name == "topkeval"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        logger.handlers.clear()

    def test_json_formatter(self):
        record = logging.LogRecord("topkeval.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "topkeval.test"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
