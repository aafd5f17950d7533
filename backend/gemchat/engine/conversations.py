"""
Conversation text helpers — pure functions, no DB or network access.
"""

DEFAULT_TITLE = "New Conversation"
TITLE_MAX_CHARS = 50

BOOST_SYSTEM_PROMPT = (
    "You are a highly intelligent and helpful AI assistant. "
    "Provide detailed, accurate, and priority responses."
)
STANDARD_SYSTEM_PROMPT = "You are a helpful AI assistant. Provide clear and accurate responses."

# Gemini calls the assistant side of the conversation "model"
GEMINI_ROLES = {"user": "user", "assistant": "model"}


def derive_title(first_message: str) -> str:
    if len(first_message) > TITLE_MAX_CHARS:
        return first_message[:TITLE_MAX_CHARS] + "..."
    return first_message


def system_prompt(boost: bool) -> str:
    return BOOST_SYSTEM_PROMPT if boost else STANDARD_SYSTEM_PROMPT


def to_gemini_contents(messages: list[dict], boost: bool = False) -> list[dict]:
    """
    Gemini has no system role on this endpoint, so the prompt goes first
    as a user turn.
    """
    contents = [{"role": "user", "parts": [{"text": system_prompt(boost)}]}]
    for msg in messages:
        contents.append({
            "role": GEMINI_ROLES.get(msg["role"], "user"),
            "parts": [{"text": msg["content"]}],
        })
    return contents
