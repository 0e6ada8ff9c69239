# src/taskflow/llm/offline.py

from __future__ import annotations

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Stand-in used when no provider is configured.

    Breakdown prompts get an empty checklist and everything else an empty
    reply, so callers land on their own fallbacks without network access.
    """

    def complete(self, messages: list[ChatMessage], system_prompt: str) -> str:
        if "sub_tasks" in (system_prompt or ""):
            return '{"sub_tasks": []}'
        return ""
