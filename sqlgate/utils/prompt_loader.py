from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

PROMPTS_DIR = Path(os.getenv("SQLGATE_PROMPTS_DIR") or Path(__file__).resolve().parents[2] / "prompts")


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    path = PROMPTS_DIR / name
    return path.read_text(encoding="utf-8").strip()


def render_prompt(name: str, **values: str) -> str:
    """Load a prompt template and fill its ``{placeholders}``."""
    return load_prompt(name).format(**values)
