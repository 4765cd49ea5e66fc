"""Tests for configuration loading and AgentSettings."""

import json

import pytest

from agentloop.config import (
    DEFAULT_MAX_LOOPS,
    AgentMode,
    AgentSettings,
    PlaybackControl,
    get_agentloop_config,
    get_api_base,
    get_api_key,
    get_config_path,
    get_default_max_loops,
    is_valid_api_key,
    save_agentloop_config,
)
from agentloop.errors import ConfigurationError

VALID_KEY = "sk-" + "a1B2" * 12


class TestConfigFile:
    def test_missing_file_is_empty(self):
        assert get_agentloop_config() == {}

    def test_save_and_load(self):
        path = save_agentloop_config({"api_base": "http://saved.test/api", "max_loops": 4})

        assert path == get_config_path()
        assert get_agentloop_config()["max_loops"] == 4
        assert get_api_base() == "http://saved.test/api"
        assert get_default_max_loops() == 4

    def test_unreadable_file_is_ignored(self):
        get_config_path().write_text("{not json", encoding="utf-8")

        assert get_agentloop_config() == {}

    def test_env_overrides_file(self, monkeypatch):
        save_agentloop_config({"api_base": "http://saved.test/api", "api_key": "sk-file"})
        monkeypatch.setenv("AGENTLOOP_API_BASE", "http://env.test/api")
        monkeypatch.setenv("AGENTLOOP_API_KEY", "sk-env")

        assert get_api_base() == "http://env.test/api"
        assert get_api_key() == "sk-env"

    def test_custom_api_key_env_var(self, monkeypatch):
        save_agentloop_config({"api_key_env_var": "MY_PLATFORM_KEY"})
        monkeypatch.setenv("MY_PLATFORM_KEY", "sk-custom")

        assert get_api_key() == "sk-custom"

    def test_default_max_loops(self):
        assert get_default_max_loops() == DEFAULT_MAX_LOOPS

    @pytest.mark.parametrize("value", ["lots", 0, -3])
    def test_invalid_max_loops(self, value):
        get_config_path().write_text(json.dumps({"max_loops": value}), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            get_default_max_loops()


class TestApiKeyFormat:
    def test_valid_key(self):
        assert is_valid_api_key(VALID_KEY)

    @pytest.mark.parametrize(
        "key",
        ["", "sk-short", VALID_KEY + "x", "pk-" + "a" * 48, "sk-" + "a" * 47 + "!"],
    )
    def test_invalid_keys(self, key):
        assert not is_valid_api_key(key)


class TestAgentSettings:
    def test_defaults(self):
        settings = AgentSettings()

        assert settings.mode == AgentMode.AUTOMATIC
        assert settings.web_search_enabled is False
        assert settings.effective_max_loops() == DEFAULT_MAX_LOOPS
        assert settings.iteration_delay_seconds == 1.0
        assert settings.task_delay_seconds == 0.8

    def test_override_wins_over_default(self):
        assert AgentSettings(max_loops=3).effective_max_loops() == 3

    def test_string_values_coerced(self):
        settings = AgentSettings(mode="stepwise", playback_control="play")

        assert settings.mode == AgentMode.STEPWISE
        assert settings.playback_control == PlaybackControl.PLAY

    def test_rejects_negative_values(self):
        with pytest.raises(ConfigurationError):
            AgentSettings(max_loops=-1)
        with pytest.raises(ConfigurationError):
            AgentSettings(iteration_delay_seconds=-0.5)

    def test_from_config(self):
        save_agentloop_config(
            {
                "max_loops": 12,
                "web_search_enabled": True,
                "mode": "stepwise",
                "llm": {"model": "gpt-4", "temperature": 0.2},
            }
        )

        settings = AgentSettings.from_config(max_loops=None, mode=None)

        assert settings.default_max_loops == 12
        assert settings.effective_max_loops() == 12
        assert settings.web_search_enabled is True
        assert settings.mode == AgentMode.STEPWISE
        assert settings.model_settings.model == "gpt-4"
        assert settings.model_settings.temperature == 0.2
        assert settings.model_settings.max_tokens == 400

    def test_from_config_overrides(self):
        save_agentloop_config({"max_loops": 12})

        settings = AgentSettings.from_config(max_loops=2, web_search_enabled=True)

        assert settings.effective_max_loops() == 2
        assert settings.web_search_enabled is True
