# adaptlearn/services/llm.py
import logging
from typing import Protocol

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    OpenAI,
    RateLimitError,
)

from adaptlearn.core.config import LLMSettings
from adaptlearn.core.errors import ConfigurationError, LLMServiceError, TransientServiceError

log = logging.getLogger("llm")

# statuses the backend uses for "over capacity, try again later"
TRANSIENT_STATUSES = {429, 503, 529}


class LLMClient(Protocol):
    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        ...


class OpenAIChatClient:
    """Single-prompt completions over the OpenAI Chat Completions API.

    Works against any OpenAI-compatible endpoint (set `base_url`). The SDK's
    own retries are disabled: a failed call is reported once and the caller
    decides how to degrade.
    """

    def __init__(self, settings: LLMSettings):
        if not settings.configured:
            raise ConfigurationError("OPENAI_API_KEY is not configured")
        self.model = settings.model
        self._client = OpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            max_retries=0,
        )

    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        log.info("LLM chat call model=%s, prompt_chars=%d", self.model, len(prompt))
        try:
            resp = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except RateLimitError as e:
            raise TransientServiceError(f"Rate limited: {e}", status_code=429) from e
        except APITimeoutError as e:
            raise TransientServiceError("AI request timed out", status_code=None) from e
        except APIStatusError as e:
            if e.status_code in TRANSIENT_STATUSES:
                raise TransientServiceError(f"AI service busy: {e}", status_code=e.status_code) from e
            raise LLMServiceError(f"AI service error: {e}", status_code=e.status_code) from e
        except APIConnectionError as e:
            raise LLMServiceError(f"AI service unreachable: {e}") from e

        text = resp.choices[0].message.content if resp.choices else None
        log.info("LLM response received, chars=%d", len(text or ""))
        return text or ""
