# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Conversion between role/content dicts and langchain-core messages."""

from typing import Any

from langchain_core.messages import BaseMessage
from langchain_core.messages.utils import convert_to_messages

from .types import MessageKind, message_kind

_ROLE_BY_KIND = {
    MessageKind.SYSTEM: "system",
    MessageKind.HUMAN: "user",
    MessageKind.AI: "assistant",
    MessageKind.TOOL: "tool",
}


def messages_from_dicts(data: list[dict[str, Any]]) -> list[BaseMessage]:
    """Build messages from ``{"role", "content", "tool_calls"?, "tool_call_id"?}`` dicts.

    Tool calls may use either the langchain ``{"id", "name", "args"}`` shape or
    the OpenAI ``{"id", "function": {"name", "arguments"}}`` shape.
    """
    return convert_to_messages(data)


def messages_to_dicts(messages: list[BaseMessage]) -> list[dict[str, Any]]:
    """Serialize messages to role/content dicts."""
    result = []
    for msg in messages:
        kind = message_kind(msg)
        item: dict[str, Any] = {"role": _ROLE_BY_KIND[kind], "content": msg.content}
        if kind is MessageKind.AI and msg.tool_calls:
            item["tool_calls"] = [
                {"id": tc.get("id"), "name": tc["name"], "args": tc.get("args", {})}
                for tc in msg.tool_calls
            ]
        elif kind is MessageKind.TOOL:
            item["tool_call_id"] = msg.tool_call_id
            if msg.name:
                item["name"] = msg.name
        result.append(item)
    return result
