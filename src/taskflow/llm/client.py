# src/taskflow/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
import openai
from openai import OpenAI

from ..core.ports import ChatMessage

logger = logging.getLogger(__name__)

# Seconds a model that answered 404 is skipped before we try it again.
MODEL_COOLDOWN_SECONDS = 3600.0

# Checked in order; the first matching class decides what happens to the model.
_FAILURE_KINDS: tuple[tuple[str, tuple[type[BaseException], ...]], ...] = (
    ("auth", (openai.AuthenticationError, openai.PermissionDeniedError)),
    ("missing", (openai.NotFoundError,)),
    ("rate_limit", (openai.RateLimitError,)),
    ("network", (openai.APIConnectionError, httpx.TimeoutException, TimeoutError)),
)


def classify_failure(exc: BaseException) -> str:
    for kind, types in _FAILURE_KINDS:
        if isinstance(exc, types):
            return kind
    return "other"


def _reply_text(completion: Any) -> str:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return (getattr(message, "content", None) or "").strip()


class OpenRouterLLMClient:
    """
    One-shot chat completions against an OpenAI-compatible endpoint.

    Models from settings are tried in order. A model is skipped when it
    errors out or answers with nothing; one that answers 404 is also parked
    for an hour. A rejected key stops the whole attempt because every other
    model would be rejected the same way.

    Construction raises RuntimeError when the key, base URL or model list is
    missing, which is what bootstrap uses to pick the offline client.
    """

    def __init__(self, settings: Any) -> None:
        api_key = (getattr(settings, "openrouter_api_key", None) or "").strip()
        base_url = (getattr(settings, "openrouter_base_url", None) or "").strip()
        models = [m.strip() for m in getattr(settings, "llm_models", None) or [] if m.strip()]

        if not api_key:
            raise RuntimeError("TASKFLOW_OPENROUTER_API_KEY is not set.")
        if not base_url:
            raise RuntimeError("TASKFLOW_OPENROUTER_BASE_URL is not set.")
        if not models:
            raise RuntimeError("TASKFLOW_LLM_MODELS is empty.")

        self._models = models
        self._headers: dict[str, str] = dict(getattr(settings, "extra_headers", None) or {})
        self._parked: dict[str, float] = {}  # model -> monotonic time it may be retried

        connect = float(getattr(settings, "llm_connect_timeout_seconds", 5.0))
        read = float(getattr(settings, "llm_read_timeout_seconds", 30.0))

        # Retries would stall the fallback to the next model.
        self._client = OpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=httpx.Timeout(connect=connect, read=read, write=10.0, pool=connect),
            max_retries=0,
        )

    @property
    def models(self) -> list[str]:
        return list(self._models)

    def _available(self) -> list[str]:
        now = time.monotonic()
        return [m for m in self._models if self._parked.get(m, 0.0) <= now]

    def complete(self, messages: list[ChatMessage], system_prompt: str) -> str:
        last_error: BaseException | None = None

        for model in self._available():
            started = time.monotonic()
            try:
                completion = self._client.chat.completions.create(
                    model=model,
                    messages=[{"role": "system", "content": system_prompt}, *messages],
                    extra_headers=self._headers or None,
                )
            except Exception as e:
                kind = classify_failure(e)
                if kind == "auth":
                    raise RuntimeError("LLM provider rejected the API key.") from e
                if kind == "missing":
                    self._parked[model] = time.monotonic() + MODEL_COOLDOWN_SECONDS
                logger.info("LLM: model=%s failed (%s), trying next", model, kind)
                last_error = e
                continue

            text = _reply_text(completion)
            if text:
                logger.debug("LLM: model=%s answered in %.2fs", model, time.monotonic() - started)
                return text

            logger.info("LLM: model=%s returned no content, trying next", model)
            last_error = RuntimeError(f"Empty reply from {model}")

        raise RuntimeError("No LLM model produced an answer.") from last_error
