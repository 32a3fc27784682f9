# tests/test_config.py
import pytest
from pydantic import ValidationError

from adaptlearn.core.config import DEFAULT_TIMEOUT_SECONDS, LLMSettings

ENV_VARS = ("OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL", "OPENAI_TIMEOUT")


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_read_openai_env(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-env")
    clean_env.setenv("OPENAI_BASE_URL", "http://localhost:8080/v1")
    clean_env.setenv("OPENAI_MODEL", "local-model")
    clean_env.setenv("OPENAI_TIMEOUT", "12.5")
    s = LLMSettings()
    assert s.api_key == "sk-env"
    assert s.base_url == "http://localhost:8080/v1"
    assert s.model == "local-model"
    assert s.timeout_seconds == 12.5
    assert s.configured


def test_settings_defaults(clean_env):
    s = LLMSettings()
    assert s.api_key is None
    assert s.model == "gpt-4o-mini"
    assert s.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert not s.configured


def test_blank_key_is_not_configured(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "   ")
    assert not LLMSettings().configured


def test_empty_env_values_fall_back_to_defaults(clean_env):
    clean_env.setenv("OPENAI_MODEL", "")
    clean_env.setenv("OPENAI_TIMEOUT", "")
    s = LLMSettings()
    assert s.model == "gpt-4o-mini"
    assert s.timeout_seconds == DEFAULT_TIMEOUT_SECONDS


@pytest.mark.parametrize("value", ["soon", "0", "-5"])
def test_bad_timeout_is_rejected(clean_env, value):
    clean_env.setenv("OPENAI_TIMEOUT", value)
    with pytest.raises(ValidationError):
        LLMSettings()


def test_keyword_arguments_override_env(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-env")
    s = LLMSettings(api_key=None, model="test-model")
    assert s.api_key is None
    assert s.model == "test-model"
