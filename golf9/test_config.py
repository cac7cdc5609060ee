"""
Tests for environment-driven configuration and structured logging.

Run with: pytest golf9/test_config.py -v
"""

import json
import logging

import pytest

from golf9 import config as config_module
from golf9.config import get_env_bool, get_env_float, get_env_int, reload_config
from golf9.logging_config import DevelopmentFormatter, JSONFormatter, get_logger


# =============================================================================
# Config Tests
# =============================================================================

class TestEnvHelpers:

    def test_bool_values(self, monkeypatch):
        monkeypatch.setenv("GOLF9_FLAG", "yes")
        assert get_env_bool("GOLF9_FLAG") is True
        monkeypatch.setenv("GOLF9_FLAG", "off")
        assert get_env_bool("GOLF9_FLAG", True) is False
        monkeypatch.setenv("GOLF9_FLAG", "maybe")
        assert get_env_bool("GOLF9_FLAG", True) is True

    def test_bad_numbers_use_default(self, monkeypatch):
        monkeypatch.setenv("GOLF9_NUMBER", "lots")
        assert get_env_int("GOLF9_NUMBER", 3) == 3
        assert get_env_float("GOLF9_NUMBER", 2.5) == 2.5


class TestReloadConfig:

    @pytest.fixture(autouse=True)
    def restore_config(self):
        yield
        reload_config()

    def test_reload_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TURN_DURATION", "12")
        monkeypatch.setenv("PEEK_DURATION", "6.5")
        monkeypatch.setenv("DEFAULT_ROUNDS", "5")
        monkeypatch.setenv("DEFAULT_USE_JOKERS", "true")
        monkeypatch.setenv("CARD_JOKER", "-3")

        cfg = reload_config()
        assert cfg.TURN_DURATION == 12.0
        assert cfg.PEEK_DURATION == 6.5
        assert cfg.game_defaults.rounds == 5
        assert cfg.game_defaults.use_jokers is True
        assert cfg.card_values.to_dict()["★"] == -3
        assert config_module.config is cfg

    def test_defaults_without_environment(self, monkeypatch):
        for key in ("TURN_DURATION", "PEEK_DURATION", "EXPIRY_POLL_INTERVAL", "CARD_JOKER"):
            monkeypatch.delenv(key, raising=False)
        cfg = reload_config()
        assert cfg.TURN_DURATION == 25.0
        assert cfg.PEEK_DURATION == 15.0
        assert cfg.EXPIRY_POLL_INTERVAL == 0.25
        assert cfg.card_values.FIVE == -5


# =============================================================================
# Logging Tests
# =============================================================================

def _capture(logger_name: str):
    records: list[logging.LogRecord] = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = ListHandler()
    base = logging.getLogger(logger_name)
    base.addHandler(handler)
    base.setLevel(logging.DEBUG)
    return records, base, handler


class TestContextLogging:

    def test_context_reaches_json_output(self):
        records, base, handler = _capture("golf9.test.json")
        try:
            log = get_logger("golf9.test.json").with_context(game_id="game-1234")
            log.with_context(round_num=3).info("Round 3 complete")
        finally:
            base.removeHandler(handler)

        data = json.loads(JSONFormatter().format(records[0]))
        assert data["message"] == "Round 3 complete"
        assert data["game_id"] == "game-1234"
        assert data["round_num"] == 3
        assert data["level"] == "INFO"

    def test_no_context_fields_without_context(self):
        records, base, handler = _capture("golf9.test.plain")
        try:
            get_logger("golf9.test.plain").warning("plain")
        finally:
            base.removeHandler(handler)

        data = json.loads(JSONFormatter().format(records[0]))
        assert "game_id" not in data
        assert "round_num" not in data

    def test_development_format_shows_context(self):
        records, base, handler = _capture("golf9.test.dev")
        try:
            get_logger("golf9.test.dev").with_context(game_id="abcdef123456", round_num=2).info("hi")
        finally:
            base.removeHandler(handler)

        line = DevelopmentFormatter().format(records[0])
        assert "[game=abcdef12, round=2]" in line
        assert line.endswith("hi")
