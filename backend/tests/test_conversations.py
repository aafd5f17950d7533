from gemchat.engine.conversations import (
    derive_title, system_prompt, to_gemini_contents,
    BOOST_SYSTEM_PROMPT, STANDARD_SYSTEM_PROMPT,
)


class TestDeriveTitle:
    def test_short_message_kept(self):
        assert derive_title("Hello there") == "Hello there"

    def test_exactly_fifty_chars_not_truncated(self):
        text = "x" * 50
        assert derive_title(text) == text

    def test_long_message_truncated_with_ellipsis(self):
        title = derive_title("y" * 51)
        assert title == "y" * 50 + "..."


class TestGeminiContents:
    def test_system_prompt_by_boost(self):
        assert system_prompt(True) == BOOST_SYSTEM_PROMPT
        assert system_prompt(False) == STANDARD_SYSTEM_PROMPT

    def test_prompt_first_then_roles_mapped(self):
        contents = to_gemini_contents([
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
            {"role": "user", "content": "how are you?"},
        ])
        assert contents[0] == {"role": "user", "parts": [{"text": STANDARD_SYSTEM_PROMPT}]}
        assert [c["role"] for c in contents[1:]] == ["user", "model", "user"]
        assert contents[2]["parts"] == [{"text": "hello"}]

    def test_boost_prompt_used(self):
        contents = to_gemini_contents([{"role": "user", "content": "hi"}], boost=True)
        assert contents[0]["parts"][0]["text"] == BOOST_SYSTEM_PROMPT
