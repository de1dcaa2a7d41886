from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from sqlgate.rag.schemas import ModelIntent

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```[A-Za-z]*\s*\n?(.*?)\n?```$", re.DOTALL)


def _strip_fence(text: str) -> str:
    m = _CODE_FENCE.match(text)
    return m.group(1).strip() if m else text


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON object from the text, or from its outermost ``{...}`` span."""
    candidates = [text]
    start, end = text.find("{"), text.rfind("}")
    if -1 < start < end and (start, end) != (0, len(text) - 1):
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            obj = json.loads(candidate)
        except (ValueError, RecursionError):
            continue
        if isinstance(obj, dict):
            return obj
    return None


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def fallback_intent(raw_text: str) -> ModelIntent:
    return ModelIntent(needs_query=False, query=None, explanation=None, response=raw_text)


def interpret(raw_text: str) -> ModelIntent:
    """
    Turn the model's raw output into a ModelIntent.

    Unstructured output is an expected condition: anything that does not parse
    to a JSON object becomes a plain answer carrying the raw text. The query
    text is returned verbatim and is not trusted here.
    """
    raw_text = raw_text if isinstance(raw_text, str) else ""
    obj = _load_object(_strip_fence(raw_text.strip()))
    if obj is None:
        logger.info("Model output is not structured JSON; using raw text as the answer")
        return fallback_intent(raw_text)

    query = _str_or_none(obj.get("query"))
    needs_query = obj.get("needsQuery") is True and bool(query and query.strip())
    explanation = _str_or_none(obj.get("explanation"))
    response = _str_or_none(obj.get("response"))
    if response is None:
        response = explanation if explanation is not None else raw_text

    intent = ModelIntent(
        needs_query=needs_query,
        query=query if needs_query else None,
        explanation=explanation,
        response=response,
    )
    logger.debug("Interpreted intent: needs_query=%s", intent.needs_query)
    return intent
