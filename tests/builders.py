# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Message builders and fake collaborators shared by the tests."""

import asyncio
from typing import Any, Optional

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from chat_context.compression.token_counter import TRUNCATION_SEPARATOR, TokenEstimator
from chat_context.core.exceptions import ArchiveStoreError
from chat_context.messages.types import content_to_text
from chat_context.storage.interfaces import (
    ArchiveLocator,
    ArchiveRequest,
    ArchiveStoreInterface,
)


class CharTokenEstimator(TokenEstimator):
    """Deterministic estimator: one token per character."""

    def count_content(self, content: Any) -> int:
        if content is None:
            return 0
        return len(content_to_text(content))

    def truncate_text(self, text: str, target_tokens: int) -> str:
        if len(text) <= target_tokens:
            return text
        available = max(0, target_tokens - len(TRUNCATION_SEPARATOR))
        head = int(available * 0.7)
        tail = available - head
        return f"{text[:head]}{TRUNCATION_SEPARATOR}{text[-tail:] if tail else ''}"


class BrokenTruncateEstimator(CharTokenEstimator):
    """Counts like CharTokenEstimator but fails on every truncation."""

    def truncate_text(self, text: str, target_tokens: int) -> str:
        raise RuntimeError("tokenizer crashed")


class FailingArchiveStore(ArchiveStoreInterface):
    """Store that always rejects writes."""

    def __init__(self):
        self.calls = 0

    async def write_archive(self, request: ArchiveRequest) -> ArchiveLocator:
        self.calls += 1
        raise ArchiveStoreError("file service unavailable", status_code=503)

    async def read_archive(self, locator_id: str) -> Optional[str]:
        return None


class CancelledArchiveStore(ArchiveStoreInterface):
    """Store whose write is cancelled mid-flight."""

    async def write_archive(self, request: ArchiveRequest) -> ArchiveLocator:
        raise asyncio.CancelledError()

    async def read_archive(self, locator_id: str) -> Optional[str]:
        return None


class SlowArchiveStore(ArchiveStoreInterface):
    """Store that never answers within a short timeout."""

    async def write_archive(self, request: ArchiveRequest) -> ArchiveLocator:
        await asyncio.sleep(5)
        return ArchiveLocator(locator_id="too-late")

    async def read_archive(self, locator_id: str) -> Optional[str]:
        return None


def system(size: int) -> SystemMessage:
    return SystemMessage(content="s" * size)


def human(size: int) -> HumanMessage:
    return HumanMessage(content="h" * size)


def ai(size: int) -> AIMessage:
    return AIMessage(content="a" * size)


def ai_call(call_id: str, size: int, name: str = "search", *more_ids: str) -> AIMessage:
    """AI message issuing one tool call per id."""
    return AIMessage(
        content="a" * size,
        tool_calls=[
            {"id": cid, "name": name, "args": {"query": cid}}
            for cid in (call_id, *more_ids)
        ],
    )


def tool(call_id: str, size: int, name: str = "search") -> ToolMessage:
    return ToolMessage(content="t" * size, tool_call_id=call_id, name=name)


def assert_tool_pairing(messages: list[BaseMessage]) -> None:
    """Every tool call has its result and every result has its call."""
    issued = {
        tc["id"]
        for msg in messages
        if isinstance(msg, AIMessage)
        for tc in msg.tool_calls
    }
    answered = {msg.tool_call_id for msg in messages if isinstance(msg, ToolMessage)}
    assert issued == answered


