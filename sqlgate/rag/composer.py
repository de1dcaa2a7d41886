from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlgate.rag.schemas import ChatResponse, ModelIntent, QueryResultSet
from sqlgate.utils.formatting import render_rows


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def truncation_note(shown: int) -> str:
    return f"_Showing first {shown} rows; the query returned more._"


def compose(
    intent: ModelIntent,
    result_set: Optional[QueryResultSet],
    *,
    result_format: str = "json",
    truncated: bool = False,
    now: Optional[datetime] = None,
) -> ChatResponse:
    if result_set is None:
        return ChatResponse(response=intent.response, query_result=None, timestamp=utc_timestamp(now))

    base = intent.response or intent.explanation or ""
    text = f"{base}\n\nQuery Results:\n{render_rows(result_set, result_format)}"
    if truncated:
        text += f"\n\n{truncation_note(len(result_set))}"
    return ChatResponse(response=text, query_result=result_set, timestamp=utc_timestamp(now))
