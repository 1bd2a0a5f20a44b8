"""
Tests for environment configuration and log formatting.

Run with: pytest test_config.py -v
"""

import json
import logging

import config as config_module
from config import ServerConfig, get_env_bool, get_env_int, get_env_list
from logging_config import DevelopmentFormatter, JSONFormatter, get_logger


class TestEnvHelpers:

    def test_bool(self, monkeypatch):
        monkeypatch.setenv("FLAG", "yes")
        assert get_env_bool("FLAG") is True
        monkeypatch.setenv("FLAG", "off")
        assert get_env_bool("FLAG", True) is False
        monkeypatch.setenv("FLAG", "maybe")
        assert get_env_bool("FLAG", True) is True

    def test_int_falls_back_on_garbage(self, monkeypatch):
        monkeypatch.setenv("NUM", "abc")
        assert get_env_int("NUM", 7) == 7

    def test_list(self, monkeypatch):
        monkeypatch.setenv("ITEMS", "a, b,,c ")
        assert get_env_list("ITEMS") == ["a", "b", "c"]


class TestServerConfig:

    def test_defaults(self, monkeypatch):
        for key in ("PORT", "DEFAULT_MAX_PLAYERS", "DEFAULT_ROUNDS", "LAST_ROUND_PICK_LIMIT"):
            monkeypatch.delenv(key, raising=False)
        cfg = ServerConfig.from_env()
        assert cfg.PORT == 3000
        assert cfg.game_defaults.max_players == 4
        assert cfg.game_defaults.rounds == 10
        assert cfg.game_defaults.last_round_pick_limit == 3

    def test_game_defaults_from_env(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_MAX_PLAYERS", "6")
        monkeypatch.setenv("DEFAULT_ROUNDS", "5")
        cfg = config_module.reload_config()
        assert cfg.game_defaults.max_players == 6
        assert cfg.game_defaults.rounds == 5

        monkeypatch.delenv("DEFAULT_MAX_PLAYERS")
        monkeypatch.delenv("DEFAULT_ROUNDS")
        config_module.reload_config()


class TestLogFormatting:

    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord("room", logging.WARNING, __file__, 1, "Player left", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_includes_extras(self):
        line = JSONFormatter().format(self._record(room_id="g1", error_code="NOT_YOUR_TURN"))
        data = json.loads(line)
        assert data["message"] == "Player left"
        assert data["level"] == "WARNING"
        assert data["room_id"] == "g1"
        assert data["error_code"] == "NOT_YOUR_TURN"

    def test_dev_format_shows_context(self):
        line = DevelopmentFormatter().format(self._record(room_id="g1", player_id="abcdef123456"))
        assert "room=g1" in line
        assert "player=abcdef12" in line
        assert "Player left" in line

    def test_context_logger_merges_extras(self):
        logger = get_logger("test").with_context(room_id="g1")
        msg, kwargs = logger.process("hi", {"extra": {"player_id": "p1"}})
        assert kwargs["extra"] == {"room_id": "g1", "player_id": "p1"}
