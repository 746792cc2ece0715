# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Partition the compressible range into atomic eviction units."""

import logging
from dataclasses import dataclass, field

from langchain_core.messages import BaseMessage

from chat_context.messages.types import MessageKind, message_kind, tool_call_ids

from .token_counter import TokenEstimator, count_message_tokens

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageEntry:
    """A message together with its position and token cost."""

    message: BaseMessage
    index: int
    tokens: int

    @property
    def indices(self) -> tuple[int, ...]:
        return (self.index,)


@dataclass(frozen=True)
class ToolPairGroup:
    """An AI message with tool calls plus the ToolMessages answering it.

    Attributes:
        ai_entry: The AI message that issued the tool calls
        tool_entries: ToolMessages answering those calls, in call order
        total_tokens: Combined token cost of the group
    """

    ai_entry: MessageEntry
    tool_entries: tuple[MessageEntry, ...] = field(default_factory=tuple)
    total_tokens: int = 0

    @property
    def index(self) -> int:
        return self.ai_entry.index

    @property
    def indices(self) -> tuple[int, ...]:
        return (self.ai_entry.index,) + tuple(t.index for t in self.tool_entries)

    @property
    def tool_names(self) -> list[str]:
        return [tc["name"] for tc in self.ai_entry.message.tool_calls]


def build_compressible_tool_pair_groups(
    messages: list[BaseMessage],
    start_index: int,
    end_index: int,
    estimator: TokenEstimator,
) -> tuple[list[ToolPairGroup], list[MessageEntry]]:
    """Build eviction units from messages in ``[start_index, end_index)``.

    The boundary functions guarantee that every AI message with tool calls in
    this range has its ToolMessages in the range too. ToolMessages that do not
    match any AI message in the range are kept as standalone units rather
    than failing the whole compression.

    Returns:
        Tuple of (tool pair groups, standalone messages), both sorted by index
        descending (newest first)
    """
    standalone_messages: list[MessageEntry] = []
    tool_entries_by_call_id: dict[str, MessageEntry] = {}
    ai_entries_with_tool_calls: list[MessageEntry] = []

    # First pass: classify messages in the compressible range
    for i in range(start_index, end_index):
        msg = messages[i]
        entry = MessageEntry(
            message=msg, index=i, tokens=count_message_tokens(estimator, msg)
        )
        kind = message_kind(msg)

        if kind is MessageKind.TOOL:
            if msg.tool_call_id and msg.tool_call_id not in tool_entries_by_call_id:
                tool_entries_by_call_id[msg.tool_call_id] = entry
            else:
                standalone_messages.append(entry)
        elif kind is MessageKind.AI:
            if tool_call_ids(msg):
                ai_entries_with_tool_calls.append(entry)
            else:
                standalone_messages.append(entry)
        elif kind in (MessageKind.HUMAN, MessageKind.SYSTEM):
            standalone_messages.append(entry)

    # Second pass: build tool pair groups
    tool_pair_groups: list[ToolPairGroup] = []
    for ai_entry in ai_entries_with_tool_calls:
        paired = []
        for call_id in tool_call_ids(ai_entry.message):
            tool_entry = tool_entries_by_call_id.pop(call_id, None)
            if tool_entry is not None:
                paired.append(tool_entry)

        tool_pair_groups.append(
            ToolPairGroup(
                ai_entry=ai_entry,
                tool_entries=tuple(paired),
                total_tokens=ai_entry.tokens + sum(t.tokens for t in paired),
            )
        )

    if tool_entries_by_call_id:
        logger.debug(
            "[ToolPairGrouper] %d orphan ToolMessages kept as standalone units",
            len(tool_entries_by_call_id),
        )
        standalone_messages.extend(tool_entries_by_call_id.values())

    # Newest first; older content stays adjacent to the cache prefix
    tool_pair_groups.sort(key=lambda g: g.index, reverse=True)
    standalone_messages.sort(key=lambda e: e.index, reverse=True)

    return tool_pair_groups, standalone_messages
