import logging
from functools import lru_cache

from supabase import create_client, Client

from .config import get_settings
from .engine.conversations import DEFAULT_TITLE
from .engine.rewards import LedgerEntry

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "reward_points, daily_streak, last_message_date, total_messages"


@lru_cache(maxsize=1)
def get_client() -> Client:
    settings = get_settings()
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)


def get_user_id(db: Client, token: str) -> str | None:
    """Resolve a Supabase access token to its user id, or None if rejected."""
    try:
        res = db.auth.get_user(token)
    except Exception as e:
        # supabase-py raises on expired or malformed tokens
        logger.info("Token rejected by auth service: %s", e)
        return None
    user = getattr(res, "user", None)
    return user.id if user else None


# ── Profiles & rewards ────────────────────────────────────────────────────────

def get_profile(db: Client, user_id: str) -> dict | None:
    res = db.table("profiles").select(PROFILE_COLUMNS).eq("user_id", user_id).execute()
    return res.data[0] if res.data else None


def update_profile(db: Client, user_id: str, updates: dict) -> None:
    db.table("profiles").update(updates).eq("user_id", user_id).execute()


def record_transaction(db: Client, user_id: str, entry: LedgerEntry) -> None:
    db.table("reward_transactions").insert({
        "user_id": user_id,
        "points_change": entry.points_change,
        "transaction_type": entry.transaction_type,
        "description": entry.description,
    }).execute()


def list_transactions(db: Client, user_id: str, limit: int = 20) -> list[dict]:
    res = (
        db.table("reward_transactions")
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return res.data or []


# ── Conversations & messages ──────────────────────────────────────────────────

def list_conversations(db: Client, user_id: str) -> list[dict]:
    res = (
        db.table("conversations")
        .select("*")
        .eq("user_id", user_id)
        .order("updated_at", desc=True)
        .execute()
    )
    return res.data or []


def get_conversation(db: Client, conversation_id: str, user_id: str) -> dict | None:
    res = (
        db.table("conversations")
        .select("*")
        .eq("id", conversation_id)
        .eq("user_id", user_id)
        .execute()
    )
    return res.data[0] if res.data else None


def create_conversation(db: Client, user_id: str, title: str = DEFAULT_TITLE) -> dict:
    res = db.table("conversations").insert({"user_id": user_id, "title": title}).execute()
    return res.data[0]


def delete_conversation(db: Client, conversation_id: str, user_id: str) -> None:
    db.table("conversations").delete().eq("id", conversation_id).eq("user_id", user_id).execute()


def update_conversation_title(db: Client, conversation_id: str, user_id: str, title: str) -> None:
    db.table("conversations").update({"title": title}).eq("id", conversation_id).eq("user_id", user_id).execute()


def insert_message(
    db: Client,
    conversation_id: str,
    user_id: str,
    role: str,
    content: str,
    tokens_used: int | None = None,
    response_time_ms: int | None = None,
) -> None:
    row = {"conversation_id": conversation_id, "user_id": user_id, "role": role, "content": content}
    if tokens_used is not None:
        row["tokens_used"] = tokens_used
    if response_time_ms is not None:
        row["response_time_ms"] = response_time_ms
    db.table("messages").insert(row).execute()


def count_messages(db: Client, conversation_id: str) -> int:
    res = db.table("messages").select("id", count="exact").eq("conversation_id", conversation_id).execute()
    return res.count or 0


def list_messages(db: Client, conversation_id: str) -> list[dict]:
    res = (
        db.table("messages")
        .select("*")
        .eq("conversation_id", conversation_id)
        .order("created_at")
        .execute()
    )
    return res.data or []
