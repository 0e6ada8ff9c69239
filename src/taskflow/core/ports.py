# src/taskflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/LLM providers/alert devices swappable and makes testing easier.
"""

from typing import Any, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Chat completion client (OpenAI/OpenRouter-compatible). Raises on failure."""

    def complete(self, messages: list[ChatMessage], system_prompt: str) -> str: ...


class BlobStore(Protocol):
    """
    Key-value store of whole text documents.

    get() returns None when nothing was stored under the key.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class AlarmSound(Protocol):
    """Audible alert: start() loops until stop(); stop() also rewinds."""

    def start(self) -> None: ...
    def stop(self) -> None: ...


class Notifier(Protocol):
    """
    System notification collaborator.

    request_permission() is called once at startup;
    notify() must be a no-op unless permission was granted.
    """

    @property
    def permission(self) -> Any: ...

    def request_permission(self) -> Any: ...
    def notify(self, *, title: str, body: str) -> None: ...
