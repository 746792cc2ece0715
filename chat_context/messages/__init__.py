# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Message classification and conversion helpers."""

from .convert import messages_from_dicts, messages_to_dicts
from .types import (
    MessageKind,
    content_to_text,
    has_tool_calls,
    message_kind,
    tool_call_ids,
    tool_call_names,
)

__all__ = [
    "MessageKind",
    "message_kind",
    "has_tool_calls",
    "tool_call_ids",
    "tool_call_names",
    "content_to_text",
    "messages_from_dicts",
    "messages_to_dicts",
]
