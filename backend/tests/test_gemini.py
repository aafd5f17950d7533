from unittest.mock import patch

import httpx
import pytest

from gemchat.config import Settings
from gemchat.errors import ConfigurationError, UpstreamError
from gemchat.gemini import GENERATION_CONFIG, generate_reply, parse_reply

MESSAGES = [{"role": "user", "content": "What is a streak?"}]


def make_settings(**overrides) -> Settings:
    values = {"GOOGLE_AI_API_KEY": "test-key", "GEMINI_MODEL": "gemini-test"}
    values.update(overrides)
    return Settings(**values)


def gemini_payload(text="A run of days.", tokens=42) -> dict:
    return {
        "candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}],
        "usageMetadata": {"totalTokenCount": tokens},
    }


@pytest.fixture
def http_post():
    """Patches httpx.Client used by the Gemini client; yields the post mock."""
    with patch("gemchat.gemini.httpx.Client") as client_cls:
        yield client_cls.return_value.__enter__.return_value.post


class TestParseReply:
    def test_text_and_tokens(self):
        reply = parse_reply(gemini_payload(), 120)
        assert reply.text == "A run of days."
        assert reply.tokens_used == 42
        assert reply.response_time_ms == 120

    def test_missing_usage_defaults_to_zero(self):
        data = gemini_payload()
        del data["usageMetadata"]
        assert parse_reply(data, 5).tokens_used == 0

    def test_no_candidates(self):
        with pytest.raises(UpstreamError, match="No response from Gemini API"):
            parse_reply({"candidates": []}, 5)

    def test_malformed_candidate(self):
        with pytest.raises(UpstreamError):
            parse_reply({"candidates": [{"finishReason": "SAFETY"}]}, 5)


class TestGenerateReply:
    def test_missing_api_key(self, http_post):
        with pytest.raises(ConfigurationError):
            generate_reply(make_settings(GOOGLE_AI_API_KEY=""), MESSAGES)
        http_post.assert_not_called()

    def test_request_shape(self, http_post):
        http_post.return_value = httpx.Response(200, json=gemini_payload())
        reply = generate_reply(make_settings(), MESSAGES, boost=True)

        assert reply.text == "A run of days."
        url = http_post.call_args.args[0]
        assert url.endswith("/models/gemini-test:generateContent")
        kwargs = http_post.call_args.kwargs
        assert kwargs["headers"]["x-goog-api-key"] == "test-key"
        assert kwargs["json"]["generationConfig"] == GENERATION_CONFIG
        assert kwargs["json"]["contents"][-1] == {"role": "user", "parts": [{"text": "What is a streak?"}]}

    def test_error_status_raises(self, http_post):
        http_post.return_value = httpx.Response(503, text="overloaded")
        with pytest.raises(UpstreamError, match="Gemini API error: 503"):
            generate_reply(make_settings(), MESSAGES)

    def test_transport_error_raises(self, http_post):
        http_post.side_effect = httpx.ConnectError("boom")
        with pytest.raises(UpstreamError):
            generate_reply(make_settings(), MESSAGES)
