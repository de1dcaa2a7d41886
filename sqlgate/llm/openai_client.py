from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import openai
from dotenv import load_dotenv
from openai import AsyncOpenAI

from sqlgate.errors import UpstreamMalformed, UpstreamRejected, UpstreamTimeout, UpstreamUnavailable

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenAIConfig:
    api_key: str
    model: str
    base_url: Optional[str] = None
    timeout: float = 30.0
    max_output_tokens: int = 1000


def get_openai_config() -> OpenAIConfig:
    api_key = os.getenv("OPENAI_API_KEY", "")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is not set. Put it in .env (do not commit).")
    return OpenAIConfig(
        api_key=api_key,
        model=os.getenv("OPENAI_MODEL", "gpt-5-mini"),
        base_url=os.getenv("OPENAI_BASE_URL") or None,
        timeout=float(os.getenv("OPENAI_TIMEOUT_SECONDS", "30")),
        max_output_tokens=int(os.getenv("OPENAI_MAX_OUTPUT_TOKENS", "1000")),
    )


class ModelClient:
    """Sends a prompt payload to the hosted model and returns its raw text.

    The upstream is opaque and fallible. Every call is time-bounded and no
    retries happen here (the SDK's own retries are switched off).
    """

    def __init__(self, cfg: Optional[OpenAIConfig] = None, client: Optional[Any] = None):
        cfg = cfg or get_openai_config()
        self.model = cfg.model
        self.timeout = cfg.timeout
        self.max_output_tokens = cfg.max_output_tokens
        self.client = client or AsyncOpenAI(
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout=cfg.timeout,
            max_retries=0,
        )

    async def complete(self, payload: List[Dict[str, str]]) -> str:
        logger.info("Calling model %s with %s messages", self.model, len(payload))
        try:
            resp = await asyncio.wait_for(
                self.client.responses.create(
                    model=self.model,
                    input=payload,
                    max_output_tokens=self.max_output_tokens,
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError) as e:
            logger.error("Model call timed out after %ss", self.timeout)
            raise UpstreamTimeout(f"model call exceeded {self.timeout}s") from e
        except openai.APIConnectionError as e:
            logger.error("Model service unreachable: %s", type(e).__name__)
            raise UpstreamUnavailable(f"connection error: {type(e).__name__}") from e
        except openai.APIStatusError as e:
            logger.error("Model service rejected the request: status=%s", e.status_code)
            raise UpstreamRejected(f"status {e.status_code}", status=e.status_code) from e
        except openai.APIError as e:
            # e.g. APIResponseValidationError: a reply the SDK could not read
            logger.error("Model service returned an unusable response: %s", type(e).__name__)
            raise UpstreamMalformed(f"unusable response: {type(e).__name__}") from e

        text = getattr(resp, "output_text", None)
        if not isinstance(text, str) or not text.strip():
            logger.error("Model response carried no output text")
            raise UpstreamMalformed("response has no output text")

        logger.debug("Model output: %s", text)
        return text
