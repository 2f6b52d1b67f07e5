"""Tests for settings and startup validation"""

import pytest

from app.errors import ConfigurationError
from conftest import make_settings


def test_missing_twilio_settings_named():
    settings = make_settings(twilio_account_sid="", twilio_phone_number="")

    with pytest.raises(ConfigurationError) as exc_info:
        settings.validate_startup()

    assert "TWILIO_ACCOUNT_SID" in str(exc_info.value)
    assert "TWILIO_PHONE_NUMBER" in str(exc_info.value)
    assert "TWILIO_AUTH_TOKEN" not in str(exc_info.value)


def test_startup_warnings():
    warnings = make_settings().validate_startup()

    assert any("LLM provider 'openai'" in warning for warning in warnings)
    assert any("Transcription is simulated" in warning for warning in warnings)


def test_llm_configured_per_provider():
    assert make_settings(openai_api_key="sk-test").llm_configured
    assert not make_settings(default_llm_provider="anthropic", openai_api_key="sk-test").llm_configured
    assert make_settings(default_llm_provider="ollama").llm_configured


def test_status_callback_url():
    assert make_settings().status_callback_url == "https://calls.example.com/webhook/call-status"


def test_provisioned_tokens():
    settings = make_settings(auth_tokens_json='{"tok": {"id": "u1", "phone_number": "+15551234567"}}')

    assert settings.provisioned_tokens() == {"tok": {"id": "u1", "phone_number": "+15551234567"}}
    assert make_settings().provisioned_tokens() == {}

    with pytest.raises(ConfigurationError):
        make_settings(auth_tokens_json="{not json").validate_startup()
    with pytest.raises(ConfigurationError):
        make_settings(auth_tokens_json="[1, 2]").provisioned_tokens()
