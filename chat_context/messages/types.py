# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Message kinds used by the compaction engine.

Conversation messages are langchain-core message objects. The engine never
inspects ``message.type`` strings; every decision goes through
``message_kind()`` so the four kinds are matched exhaustively:

- SYSTEM: instruction text, always inside the protected prefix
- HUMAN: user-authored text
- AI: model output, optionally carrying tool calls
- TOOL: the result of exactly one tool call
"""

import json
from enum import Enum
from typing import Any

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)


class MessageKind(str, Enum):
    """Message kind enumeration."""

    SYSTEM = "system"
    HUMAN = "human"
    AI = "ai"
    TOOL = "tool"


def message_kind(message: BaseMessage) -> MessageKind:
    """Classify a message.

    Message classes outside the four known kinds (e.g. ``ChatMessage``) are
    treated as HUMAN so they become standalone eviction units.
    """
    if isinstance(message, ToolMessage):
        return MessageKind.TOOL
    if isinstance(message, AIMessage):
        return MessageKind.AI
    if isinstance(message, SystemMessage):
        return MessageKind.SYSTEM
    if isinstance(message, HumanMessage):
        return MessageKind.HUMAN
    return MessageKind.HUMAN


def has_tool_calls(message: BaseMessage) -> bool:
    return message_kind(message) is MessageKind.AI and bool(message.tool_calls)


def tool_call_ids(message: BaseMessage) -> list[str]:
    """Return the ids of the tool calls issued by an AI message."""
    if not has_tool_calls(message):
        return []
    return [tc["id"] for tc in message.tool_calls if tc.get("id")]


def tool_call_names(message: BaseMessage) -> list[str]:
    if not has_tool_calls(message):
        return []
    return [tc["name"] for tc in message.tool_calls]


def content_to_text(content: Any) -> str:
    """Render message content as plain text (non-string content is JSON-encoded)."""
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False, default=str)
