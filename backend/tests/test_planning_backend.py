"""Tests for the OpenAI-compatible planning backend adapter."""
from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from app.core.errors import (
    BackendAuthError,
    BackendError,
    BackendRateLimitError,
    BackendTimeoutError,
    EmptyResponseError,
)
from app.services.planning_backend import OpenAIPlanningBackend

REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class _FakeCompletions:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.result


def _backend(result=None, error=None):
    completions = _FakeCompletions(result=result, error=error)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIPlanningBackend(api_key=None, model="test-model", client=client), completions


def test_complete_returns_raw_content_and_requests_json_mode() -> None:
    backend, completions = _backend(result=_completion('{"milestones": []}'))

    assert backend.complete("system", "user") == '{"milestones": []}'
    assert completions.kwargs["model"] == "test-model"
    assert completions.kwargs["response_format"] == {"type": "json_object"}
    assert completions.kwargs["temperature"] == 0.3
    assert completions.kwargs["max_tokens"] == 2048
    assert completions.kwargs["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "user"},
    ]


@pytest.mark.parametrize("content", [None, "", "   "])
def test_blank_content_raises_empty_response(content) -> None:
    backend, _ = _backend(result=_completion(content))

    with pytest.raises(EmptyResponseError):
        backend.complete("system", "user")


def test_missing_api_key_is_an_auth_error() -> None:
    backend = OpenAIPlanningBackend(api_key=None, model="test-model")

    with pytest.raises(BackendAuthError, match="Invalid or missing API key"):
        backend.complete("system", "user")


@pytest.mark.parametrize(
    "error, expected, retryable",
    [
        (
            openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None),
            BackendRateLimitError,
            True,
        ),
        (
            openai.AuthenticationError("bad key", response=httpx.Response(401, request=REQUEST), body=None),
            BackendAuthError,
            False,
        ),
        (openai.APITimeoutError(request=REQUEST), BackendTimeoutError, True),
        (openai.APIConnectionError(request=REQUEST), BackendError, False),
        (
            openai.InternalServerError("boom", response=httpx.Response(500, request=REQUEST), body=None),
            BackendError,
            False,
        ),
    ],
)
def test_sdk_errors_are_translated(error, expected, retryable) -> None:
    backend, _ = _backend(error=error)

    with pytest.raises(expected) as excinfo:
        backend.complete("system", "user")

    assert excinfo.value.retryable is retryable
