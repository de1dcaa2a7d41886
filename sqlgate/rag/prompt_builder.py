from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from sqlgate.rag.schemas import ConversationTurn
from sqlgate.utils.prompt_loader import render_prompt

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_FILE = "chat_system.txt"

PromptPayload = List[Dict[str, str]]


def build_system_prompt(tables: Sequence[str]) -> str:
    listed = ", ".join(tables) if tables else "(no tables available)"
    return render_prompt(SYSTEM_PROMPT_FILE, tables=listed)


def build_context(
    tables: Sequence[str],
    history: Sequence[ConversationTurn],
    message: str,
) -> PromptPayload:
    """
    Instruction block first, then the prior turns in the order received, then
    the new user message. History is passed through as-is.
    """
    payload: PromptPayload = [{"role": "system", "content": build_system_prompt(tables)}]
    payload.extend({"role": turn.role, "content": turn.content} for turn in history)
    payload.append({"role": "user", "content": message})
    logger.debug("Built prompt: tables=%s history_turns=%s", len(tables), len(history))
    return payload
