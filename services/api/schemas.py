from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sqlgate.rag.schemas import ChatResponse, ConversationTurn

__all__ = ["ChatRequest", "ChatResponse", "QueryRequest", "ErrorResponse", "HealthResponse"]


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1)
    conversation_history: List[ConversationTurn] = Field(default_factory=list, alias="conversationHistory")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be blank")
        return v


class QueryRequest(BaseModel):
    query: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
