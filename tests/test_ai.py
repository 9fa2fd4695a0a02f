"""
Tests for ai.py - the OpenAI-backed assistance client.
"""
import json
from unittest.mock import patch

import pytest
from openai import OpenAIError

from core.ai import (
    AssistanceRequest,
    AssistantClient,
    build_assistance_prompt,
    build_debug_prompt,
    clamp_confidence,
)
from core.errors import ConfigurationError, ProviderResponseError, ProviderTransportError

from .conftest import completion


@pytest.fixture
def assistant(isolated_settings, fake_openai):
    client = AssistantClient(isolated_settings, api_key="sk-test")
    client._client = fake_openai
    return client


def _request(**overrides):
    fields = {"code": "let a = 1", "language": "javascript", "prompt": "optimize"}
    fields.update(overrides)
    return AssistanceRequest(**fields)


# =============================================================================
# clamp_confidence
# =============================================================================

class TestClampConfidence:
    """Tests for confidence normalisation."""

    @pytest.mark.parametrize("raw, expected", [(-5, 0.0), (0.5, 0.5), (99, 1.0), (0, 0.0), ("0.7", 0.7)])
    def test_clamps_into_unit_interval(self, raw, expected):
        assert clamp_confidence(raw) == expected

    @pytest.mark.parametrize("raw", [None, "high", True, float("nan"), [1]])
    def test_unusable_values_use_default(self, raw):
        assert clamp_confidence(raw) == 0.5


# =============================================================================
# Prompt building
# =============================================================================

class TestPrompts:
    """Tests for the user prompts sent to the model."""

    def test_assistance_prompt_includes_code_and_request(self):
        prompt = build_assistance_prompt(_request())
        assert "Language: javascript" in prompt
        assert "```javascript\nlet a = 1\n```" in prompt
        assert "Request: optimize" in prompt
        assert "Additional Context" not in prompt

    def test_assistance_prompt_with_context(self):
        prompt = build_assistance_prompt(_request(context="runs in a browser"))
        assert "Additional Context: runs in a browser" in prompt

    def test_debug_prompt_mentions_error(self):
        prompt = build_debug_prompt("x()", "python", "NameError")
        assert prompt.startswith("Debug this python code that's producing this error: NameError:")

    def test_debug_prompt_without_error(self):
        assert build_debug_prompt("x()", "python").startswith("Debug this python code:")


# =============================================================================
# AssistantClient
# =============================================================================

class TestAssistantClient:
    """Tests for the assistance operations against a fake SDK client."""

    def test_get_assistance_parses_json(self, assistant, fake_openai):
        fake_openai.chat.completions.create.return_value = completion(
            json.dumps({"suggestion": "const a = 1", "explanation": "use const", "confidence": 0.9})
        )
        response = assistant.get_assistance(_request())
        assert response.to_dict() == {"suggestion": "const a = 1", "explanation": "use const", "confidence": 0.9}
        kwargs = fake_openai.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.3
        assert kwargs["response_format"] == {"type": "json_object"}

    def test_get_assistance_clamps_confidence(self, assistant, fake_openai):
        fake_openai.chat.completions.create.return_value = completion(
            json.dumps({"suggestion": "s", "explanation": "e", "confidence": 99})
        )
        assert assistant.get_assistance(_request()).confidence == 1.0

    def test_empty_object_gets_defaults(self, assistant, fake_openai):
        fake_openai.chat.completions.create.return_value = completion("{}")
        response = assistant.get_assistance(_request())
        assert response.suggestion == "I need more information to provide a helpful suggestion."
        assert response.explanation == "Please provide more details about what you'd like help with."
        assert response.confidence == 0.5

    def test_invalid_json_is_response_error(self, assistant, fake_openai):
        fake_openai.chat.completions.create.return_value = completion("not json")
        with pytest.raises(ProviderResponseError):
            assistant.get_assistance(_request())

    def test_transport_failure(self, assistant, fake_openai):
        fake_openai.chat.completions.create.side_effect = OpenAIError("connection reset")
        with pytest.raises(ProviderTransportError, match="Failed to get code assistance"):
            assistant.get_assistance(_request())

    def test_generate_code(self, assistant, fake_openai):
        fake_openai.chat.completions.create.return_value = completion("print('hi')")
        assert assistant.generate_code("say hi", "python") == "print('hi')"
        kwargs = fake_openai.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 2000
        assert "python" in kwargs["messages"][0]["content"]

    def test_generate_code_empty(self, assistant, fake_openai):
        fake_openai.chat.completions.create.return_value = completion(None)
        assert assistant.generate_code("say hi") == ""

    def test_explain_code_fallback(self, assistant, fake_openai):
        fake_openai.chat.completions.create.return_value = completion("")
        assert assistant.explain_code("x = 1", "python") == "Unable to explain the code."

    def test_debug_code_defaults(self, assistant, fake_openai):
        fake_openai.chat.completions.create.return_value = completion('{"confidence": -5}')
        response = assistant.debug_code("x = 1", "python")
        assert response.suggestion == "No specific issues found in the code."
        assert response.explanation == "The code appears to be syntactically correct."
        assert response.confidence == 0.0


class TestAssistantCredentials:
    """Tests for credential handling and rotation."""

    def test_missing_key_is_configuration_error(self, isolated_settings):
        client = AssistantClient(isolated_settings)
        assert not client.configured
        with pytest.raises(ConfigurationError):
            client.generate_code("anything")

    def test_reset_rebuilds_connection(self, isolated_settings):
        client = AssistantClient(isolated_settings, api_key="sk-old")
        with patch("core.ai.OpenAI") as sdk:
            client._connection()
            client.reset("sk-new")
            client._connection()
        assert [c.kwargs["api_key"] for c in sdk.call_args_list] == ["sk-old", "sk-new"]
        assert all(c.kwargs["max_retries"] == 0 for c in sdk.call_args_list)

    def test_reset_to_empty_unconfigures(self, isolated_settings):
        client = AssistantClient(isolated_settings, api_key="sk-old")
        client.reset("  ")
        assert not client.configured
        with pytest.raises(ConfigurationError):
            client._connection()
