"""Adapter around the external generative planning backend."""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import openai

from app.core.config import Settings, settings
from app.core.errors import (
    BackendAuthError,
    BackendError,
    BackendRateLimitError,
    BackendTimeoutError,
    EmptyResponseError,
)
from app.observability.tracing import trace

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Invalid or missing API key"


class PlanningBackend(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send one instruction pair and return the raw response text."""


class OpenAIPlanningBackend:
    """Chat-completions backend for any OpenAI-compatible endpoint (Groq by default).

    The SDK's own retries are disabled: retry policy belongs to the caller.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str,
        base_url: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        timeout_seconds: float = 60.0,
        client: Any = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client
        if self._client is None and api_key:
            self._client = openai.OpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout_seconds,
                max_retries=0,
            )

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "OpenAIPlanningBackend":
        return cls(
            api_key=config.llm_api_key,
            model=config.llm_model,
            base_url=config.llm_base_url,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
            timeout_seconds=config.llm_timeout_seconds,
        )

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        if self._client is None:
            raise BackendAuthError(MISSING_KEY_MESSAGE)

        with trace("plan.backend", metadata={"model": self.model, "prompt_chars": len(user_prompt)}):
            try:
                completion = self._client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    response_format={"type": "json_object"},
                )
            except openai.RateLimitError as exc:
                raise BackendRateLimitError(f"Backend rate limit exceeded: {exc}") from exc
            except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
                raise BackendAuthError(MISSING_KEY_MESSAGE) from exc
            except openai.APITimeoutError as exc:
                raise BackendTimeoutError("Backend request timed out") from exc
            except openai.APIConnectionError as exc:
                raise BackendError(f"Backend unreachable: {exc}") from exc
            except openai.APIError as exc:
                raise BackendError(str(exc)) from exc

        content = _first_message_content(completion)
        if not content or not content.strip():
            raise EmptyResponseError("Empty response from AI")
        logger.debug("Planning backend returned %d characters", len(content))
        return content


def _first_message_content(completion: Any) -> Optional[str]:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)


def get_planning_backend() -> PlanningBackend:
    """FastAPI dependency returning the configured backend."""
    return OpenAIPlanningBackend.from_settings(settings)
