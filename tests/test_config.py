"""
tests/test_config.py
Unit tests for src/config.py — environment-backed settings.
"""

import pytest


def test_load_agent_settings_defaults():
    from src.config import Config

    settings = Config.load_agent_settings()

    assert settings.llm_model == "gemini/gemini-2.5-flash"
    assert settings.llm_temperature == 0.7
    assert settings.llm_max_tokens == 4000
    assert settings.max_link_fetch_tokens == 2000
    assert settings.max_image_bytes == 5 * 1024 * 1024
    assert settings.link_fetch_timeout_seconds == 5.0


def test_load_agent_settings_reads_overrides(monkeypatch):
    from src.config import Config

    monkeypatch.setenv("FIRSTDRAFT_LLM_MODEL", "gemini/gemini-2.5-pro")
    monkeypatch.setenv("FIRSTDRAFT_LLM_TEMPERATURE", "0.2")
    monkeypatch.setenv("FIRSTDRAFT_MAX_LINK_FETCH_TOKENS", "500")

    settings = Config.load_agent_settings()

    assert settings.llm_model == "gemini/gemini-2.5-pro"
    assert settings.llm_temperature == 0.2
    assert settings.max_link_fetch_tokens == 500


@pytest.mark.parametrize("value", ["abc", "0", "-5"])
def test_invalid_positive_int_raises(monkeypatch, value):
    from src.config import Config

    monkeypatch.setenv("FIRSTDRAFT_MAX_IMAGE_BYTES", value)
    with pytest.raises(RuntimeError, match="FIRSTDRAFT_MAX_IMAGE_BYTES"):
        Config.get_max_image_bytes()


def test_invalid_float_raises(monkeypatch):
    from src.config import Config

    monkeypatch.setenv("FIRSTDRAFT_LLM_TEMPERATURE", "warm")
    with pytest.raises(RuntimeError, match="FIRSTDRAFT_LLM_TEMPERATURE"):
        Config.get_llm_temperature()


def test_require_gemini_api_key_falls_back_to_google_key(monkeypatch):
    from src.config import Config

    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
    assert Config.require_gemini_api_key() == "google-key"

    monkeypatch.delenv("GOOGLE_API_KEY")
    with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
        Config.require_gemini_api_key()


def test_public_url_strips_trailing_slash(monkeypatch):
    from src.config import Config

    monkeypatch.setenv("FIRSTDRAFT_PUBLIC_URL", "https://agent.test/")
    assert Config.get_public_url() == "https://agent.test"


def test_scopes_default():
    from src.config import Config

    assert Config.get_linear_scopes() == "read,write,app:assignable,app:mentionable"
