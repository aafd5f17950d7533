"""
Gemini Chat — FastAPI backend
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Header, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import get_settings
from .db import (
    get_client, get_user_id, get_profile, update_profile, record_transaction,
    list_transactions, list_conversations, get_conversation, create_conversation,
    delete_conversation, update_conversation_title, insert_message, count_messages,
    list_messages,
)
from .engine.conversations import derive_title
from .engine.rewards import ProfileSnapshot, RewardOutcome, compute_reward
from .errors import (
    ChatAppError, AuthenticationError, InvalidRequestError, NotFoundError,
    ProfileUnavailableError, ServiceUnavailableError, chat_app_error_handler,
    validation_error_handler, rate_limit_error_handler, unhandled_error_handler,
)
from .gemini import GeminiReply, generate_reply
from .models import ChatRequest, ChatResponse, ConversationCreate

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

settings = get_settings()

limiter = Limiter(key_func=get_remote_address)
app = FastAPI(title="Gemini Chat API")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)
app.add_exception_handler(ChatAppError, chat_app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "apikey", "x-client-info"],
)


@app.get("/health")
def health():
    try:
        db = get_client()
        db.table("profiles").select("user_id").limit(1).execute()
        return {"status": "ok", "db": "ok"}
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
        raise ServiceUnavailableError("DB unavailable")


# ── Auth ──────────────────────────────────────────────────────────────────────

def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization:
        raise AuthenticationError("No authorization header")
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Missing Bearer token")
    return authorization.removeprefix("Bearer ").strip()


def require_user(token: str = Depends(get_bearer_token)) -> str:
    db = get_client()
    user_id = get_user_id(db, token)
    if not user_id:
        raise AuthenticationError("Authentication failed")
    return user_id


# ── Chat ──────────────────────────────────────────────────────────────────────

@app.post("/api/chat")
@limiter.limit(settings.CHAT_RATE_LIMIT)
def chat(request: Request, body: ChatRequest, user_id: str = Depends(require_user)):
    if not body.messages:
        raise InvalidRequestError("No messages provided")

    db = get_client()
    logger.info("Processing chat request for user: %s...", user_id[:8])

    try:
        profile_row = get_profile(db, user_id)
    except Exception as e:
        logger.error("Error fetching profile for %s...: %s", user_id[:8], e)
        raise ProfileUnavailableError()
    if profile_row is None:
        raise ProfileUnavailableError()

    today = datetime.now(timezone.utc).date()
    # Rejects an unaffordable boost before Gemini is called or anything is written
    outcome = compute_reward(ProfileSnapshot.from_row(profile_row), today, body.boost)

    # Only the caller's own conversations receive messages or titles
    if body.conversation_id and not get_conversation(db, body.conversation_id, user_id):
        raise NotFoundError("Conversation not found")

    messages = [m.model_dump() for m in body.messages]
    reply = generate_reply(settings, messages, body.boost)

    _persist_rewards(db, user_id, outcome)
    if body.conversation_id:
        _persist_exchange(db, user_id, body.conversation_id, messages, reply)

    if outcome.net_delta:
        logger.info("Chat for %s...: %+d points, streak %d",
                    user_id[:8], outcome.net_delta, outcome.new_streak)

    return ChatResponse(
        response=reply.text,
        tokens_used=reply.tokens_used,
        response_time=reply.response_time_ms,
        points_earned=outcome.points_earned,
        points_spent=outcome.points_spent,
        new_streak=outcome.new_streak,
        total_points=outcome.new_total_points,
    ).model_dump(by_alias=True)


# ── Profile & rewards ─────────────────────────────────────────────────────────

@app.get("/api/profile")
def read_profile(user_id: str = Depends(require_user)):
    db = get_client()
    row = get_profile(db, user_id)
    if row is None:
        raise NotFoundError("Profile not found")
    snapshot = ProfileSnapshot.from_row(row)
    return {
        "reward_points": snapshot.reward_points,
        "daily_streak": snapshot.daily_streak,
        "last_message_date": snapshot.last_message_date.isoformat() if snapshot.last_message_date else None,
        "total_messages": snapshot.total_messages,
    }


@app.get("/api/rewards/transactions")
def read_transactions(user_id: str = Depends(require_user), limit: int = Query(20, ge=1, le=100)):
    db = get_client()
    return {"transactions": list_transactions(db, user_id, limit)}


# ── Conversations ─────────────────────────────────────────────────────────────

@app.get("/api/conversations")
def read_conversations(user_id: str = Depends(require_user)):
    db = get_client()
    return {"conversations": list_conversations(db, user_id)}


@app.post("/api/conversations", status_code=201)
@limiter.limit("20/minute")
def new_conversation(request: Request, body: Optional[ConversationCreate] = None,
                     user_id: str = Depends(require_user)):
    db = get_client()
    title = body.title if body else ConversationCreate().title
    conversation = create_conversation(db, user_id, title)
    logger.info("Conversation created for %s...", user_id[:8])
    return conversation


@app.delete("/api/conversations/{conversation_id}")
def remove_conversation(conversation_id: str, user_id: str = Depends(require_user)):
    db = get_client()
    if not get_conversation(db, conversation_id, user_id):
        raise NotFoundError("Conversation not found")
    delete_conversation(db, conversation_id, user_id)
    return {"status": "deleted"}


@app.get("/api/conversations/{conversation_id}/messages")
def read_messages(conversation_id: str, user_id: str = Depends(require_user)):
    db = get_client()
    if not get_conversation(db, conversation_id, user_id):
        raise NotFoundError("Conversation not found")
    return {"messages": list_messages(db, conversation_id)}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _persist_rewards(db, user_id: str, outcome: RewardOutcome) -> None:
    """Best-effort: the reply is returned even if these writes fail."""
    try:
        update_profile(db, user_id, outcome.profile_updates)
    except Exception as e:
        logger.error("Error updating profile for %s...: %s", user_id[:8], e)

    if outcome.transaction is None:
        return
    try:
        record_transaction(db, user_id, outcome.transaction)
    except Exception as e:
        logger.error("Error recording transaction for %s...: %s", user_id[:8], e)


def _persist_exchange(db, user_id: str, conversation_id: str, messages: list[dict], reply: GeminiReply) -> None:
    """Store the latest user turn and the reply; title the conversation on its first exchange."""
    try:
        insert_message(db, conversation_id, user_id, "user", messages[-1]["content"])
        insert_message(
            db, conversation_id, user_id, "assistant", reply.text,
            tokens_used=reply.tokens_used, response_time_ms=reply.response_time_ms,
        )
        if count_messages(db, conversation_id) <= 2:
            update_conversation_title(db, conversation_id, user_id, derive_title(messages[0]["content"]))
    except Exception as e:
        logger.error("Error storing messages for conversation %s: %s", conversation_id, e)
