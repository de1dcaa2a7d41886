from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant", "system"]

# Rows as column -> value; [] means "query ran, no rows", None means "no query".
QueryResultSet = List[Dict[str, Any]]


class ConversationTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ModelIntent(BaseModel):
    """What the model asked for. ``query`` is untrusted text until the guard approves it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    needs_query: bool = Field(default=False, alias="needsQuery")
    query: Optional[str] = None
    explanation: Optional[str] = None
    response: str = ""


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    query_result: Optional[QueryResultSet] = Field(default=None, alias="queryResult")
    timestamp: str
