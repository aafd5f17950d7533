from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .engine.conversations import DEFAULT_TITLE


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    model_config = {"extra": "ignore"}


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = []
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    boost: bool = False
    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("conversation_id")
    @classmethod
    def validate_conversation_id(cls, v):
        if v is not None and len(v) > 200:
            raise ValueError("conversationId too long")
        return v if v else None


class ChatResponse(BaseModel):
    response: str
    tokens_used: int = Field(serialization_alias="tokensUsed")
    response_time: int = Field(serialization_alias="responseTime")
    points_earned: int = Field(serialization_alias="pointsEarned")
    points_spent: int = Field(serialization_alias="pointsSpent")
    new_streak: int = Field(serialization_alias="newStreak")
    total_points: int = Field(serialization_alias="totalPoints")


class ConversationCreate(BaseModel):
    title: str = Field(default=DEFAULT_TITLE, min_length=1, max_length=200)
