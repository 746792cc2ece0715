# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Boundary calculations for cache-friendly history compression.

The compressible range of a conversation is ``[prefix_end, compressible_end)``:

    [System][Msg1][Msg2] | [Msg3][Msg4][Msg5] | [Current]
    \\___ cache prefix __/ \\_ compressible __/ \\_ tail _/

Messages in the cache prefix are never altered so that providers with
prompt caching keep hitting the cached prefix. Both boundaries are adjusted
so that an AI message with tool calls always stays on the same side as the
ToolMessages answering it.
"""

import logging

from langchain_core.messages import BaseMessage

from chat_context.messages.types import MessageKind, message_kind, tool_call_ids

from .token_counter import TokenEstimator, count_message_tokens

logger = logging.getLogger(__name__)


def _index_tool_results(messages: list[BaseMessage]) -> dict[str, list[int]]:
    """Map tool_call_id -> indices of ToolMessages answering it."""
    results: dict[str, list[int]] = {}
    for idx, msg in enumerate(messages):
        if message_kind(msg) is MessageKind.TOOL and msg.tool_call_id:
            results.setdefault(msg.tool_call_id, []).append(idx)
    return results


def calculate_cache_prefix_boundary(
    messages: list[BaseMessage],
    estimator: TokenEstimator,
    min_tokens: int,
    prefix_message_count: int = 2,
) -> int:
    """Calculate the cache prefix boundary index.

    Messages before the returned index form the stable cache prefix and are
    never compressed.

    Strategy:
    1. Always include the system message (index 0)
    2. Add ``prefix_message_count`` messages after it
    3. Extend until the prefix holds at least ``min_tokens`` tokens (or covers
       every message)
    4. Extend further so the prefix does not split a tool pair

    Args:
        messages: Full message sequence
        estimator: Token estimator
        min_tokens: Smallest prefix for which prompt caching is effective
        prefix_message_count: Messages after the system message always kept

    Returns:
        First index that may be compressed
    """
    if not messages:
        return 0

    prefix_end = min(1 + prefix_message_count, len(messages))
    prefix_tokens = sum(
        count_message_tokens(estimator, messages[i]) for i in range(prefix_end)
    )

    while prefix_end < len(messages) and prefix_tokens < min_tokens:
        prefix_tokens += count_message_tokens(estimator, messages[prefix_end])
        prefix_end += 1

    return adjust_prefix_boundary_for_tool_pairing(messages, prefix_end)


def adjust_prefix_boundary_for_tool_pairing(
    messages: list[BaseMessage], prefix_end: int
) -> int:
    """Extend a prefix boundary so it never separates a tool call from its result.

    If a tool call issued inside the prefix is answered by a ToolMessage at or
    beyond the boundary, the boundary moves to just past that ToolMessage.
    Repeats until stable, since the extended prefix may itself end on another
    AI message with tool calls.
    """
    results = _index_tool_results(messages)

    while 0 < prefix_end < len(messages):
        last_result = -1
        for i in range(prefix_end):
            for call_id in tool_call_ids(messages[i]):
                for result_idx in results.get(call_id, ()):
                    if result_idx >= prefix_end:
                        last_result = max(last_result, result_idx)

        if last_result < prefix_end:
            break
        prefix_end = last_result + 1

    return prefix_end


def adjust_end_index_for_tool_pairing(
    messages: list[BaseMessage], start_index: int, end_index: int
) -> int:
    """Pull a compressible end index back so it never cuts a tool pair.

    Scans ``[start_index, end_index)`` from the end; any AI message whose
    ToolMessages lie at or beyond the current end is excluded together with
    everything after it.
    """
    if end_index <= start_index:
        return end_index

    results = _index_tool_results(messages)
    adjusted_end = end_index

    for i in range(end_index - 1, start_index - 1, -1):
        for call_id in tool_call_ids(messages[i]):
            if any(idx >= adjusted_end for idx in results.get(call_id, ())):
                adjusted_end = i
                break

    return adjusted_end


def calculate_compressible_end_index(
    messages: list[BaseMessage],
    start_index: int,
    tail_reserve_messages: int = 2,
) -> int:
    """Calculate the (exclusive) end of the compressible range.

    Recent messages are protected based on the type of the last message:
    - ToolMessage: exclude the whole tool pair it belongs to
    - AIMessage: exclude the last ``tail_reserve_messages`` messages
    - HumanMessage: exclude only the current user input

    The result is then adjusted so the range does not end mid-pair.
    """
    if not messages:
        return start_index

    compressible_end = len(messages) - 1
    last_message = messages[-1]
    last_kind = message_kind(last_message)

    if last_kind is MessageKind.TOOL:
        # Find the AI message that issued this tool call
        for i in range(len(messages) - 2, -1, -1):
            if last_message.tool_call_id in tool_call_ids(messages[i]):
                compressible_end = i
                break
    elif last_kind is MessageKind.AI:
        compressible_end = max(start_index, len(messages) - tail_reserve_messages)
    elif last_kind in (MessageKind.HUMAN, MessageKind.SYSTEM):
        compressible_end = len(messages) - 1

    return adjust_end_index_for_tool_pairing(messages, start_index, compressible_end)
