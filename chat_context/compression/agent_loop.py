# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Per-iteration compaction for agent loops.

Call compress_agent_loop_messages before each model invocation:

    result = await compress_agent_loop_messages(
        messages,
        context_limit=128000,
        reserved_output=8000,
        context=ArchiveContext(conversation_id="conv-1", store=store),
    )
    messages = result.messages

History compression runs first. When the sequence is still over budget,
oversize ToolMessages outside the cache prefix are truncated to a fixed cap.
The second pass changes payloads only, never message count or pairing.
"""

import copy
from dataclasses import dataclass, replace
from typing import Any, Optional

from langchain_core.messages import BaseMessage

from chat_context.context_block.models import ArchivedRefType, ContextBlock
from chat_context.context_block.refs import add_archived_ref
from chat_context.messages.types import MessageKind, content_to_text, message_kind
from chat_context.storage.interfaces import ArchiveLocator

from .archive import ArchiveContext
from .boundaries import calculate_cache_prefix_boundary
from .budget import CompressionBudget
from .history import MIN_MESSAGES_TO_COMPRESS, compress_history
from .token_counter import count_message_tokens, count_messages_tokens

# Cache breakpoints besides the system message
MAX_CACHE_BREAKPOINTS = 3
CACHE_CONTROL = {"type": "ephemeral"}


@dataclass
class AgentLoopCompressionResult:
    """Result of one agent-loop compaction.

    Attributes:
        messages: Messages to send (the input list when nothing changed)
        was_compressed: Whether history was archived
        archive_locator: Locator of the archived transcript
        context_block: Context block with the chat_history ref appended
    """

    messages: list[BaseMessage]
    was_compressed: bool = False
    archive_locator: Optional[ArchiveLocator] = None
    context_block: Optional[ContextBlock] = None


async def compress_agent_loop_messages(
    messages: list[BaseMessage],
    context_limit: int,
    reserved_output: int,
    context: ArchiveContext,
    extra_reserved_tokens: int = 0,
    context_block: Optional[ContextBlock] = None,
) -> AgentLoopCompressionResult:
    """Compact the message sequence of an agent loop to fit the model budget.

    Args:
        messages: Current agent loop messages (not modified)
        context_limit: Model context window in tokens
        reserved_output: Tokens reserved for the model reply
        context: Archive context (store, estimator, policy)
        extra_reserved_tokens: Tokens used outside the messages (tool schemas etc.)
        context_block: Optional context block receiving a chat_history ref

    Returns:
        AgentLoopCompressionResult
    """
    if len(messages) < MIN_MESSAGES_TO_COMPRESS:
        return AgentLoopCompressionResult(messages=messages, context_block=context_block)

    estimator = context.estimator
    budget = CompressionBudget(
        context_limit=context_limit,
        reserved_output=reserved_output,
        current_tokens=count_messages_tokens(estimator, messages) + extra_reserved_tokens,
    )

    compression = await compress_history(
        messages,
        remaining_budget=budget.remaining_budget,
        target_budget=budget.target_budget,
        context=context,
    )

    final_messages = compression.compressed_history
    after_history = replace(
        budget,
        current_tokens=count_messages_tokens(estimator, final_messages) + extra_reserved_tokens,
    )
    if after_history.is_over_budget:
        final_messages = truncate_tool_messages_for_budget(
            final_messages,
            target_budget=budget.target_budget,
            context=context,
            extra_reserved_tokens=extra_reserved_tokens,
        )

    if compression.was_compressed and context_block is not None:
        context_block = add_archived_ref(
            context_block,
            type=ArchivedRefType.CHAT_HISTORY,
            source="history",
            locator=str(compression.archive_locator),
            summary=f"{compression.archived_message_count} messages archived",
            tokens_saved=compression.tokens_saved,
            item_count=compression.archived_message_count,
        )

    return AgentLoopCompressionResult(
        messages=final_messages,
        was_compressed=compression.was_compressed,
        archive_locator=compression.archive_locator,
        context_block=context_block,
    )


def truncate_tool_messages_for_budget(
    messages: list[BaseMessage],
    target_budget: int,
    context: ArchiveContext,
    extra_reserved_tokens: int = 0,
) -> list[BaseMessage]:
    """Cap every ToolMessage outside the cache prefix at max_tool_message_tokens.

    Content is truncated head/tail; tool_call_id and name are preserved.
    """
    estimator = context.estimator
    config = context.config
    log = context.log

    current_tokens = count_messages_tokens(estimator, messages) + extra_reserved_tokens
    if current_tokens <= target_budget:
        return messages

    prefix_end = calculate_cache_prefix_boundary(
        messages,
        estimator,
        min_tokens=context.cache_min_tokens,
        prefix_message_count=config.cache_prefix_message_count,
    )
    cap = config.max_tool_message_tokens

    truncated_messages = list(messages)
    truncated_count = 0
    for index in range(prefix_end, len(messages)):
        msg = messages[index]
        if message_kind(msg) is not MessageKind.TOOL:
            continue

        original_tokens = count_message_tokens(estimator, msg)
        if original_tokens <= cap:
            continue

        try:
            content = estimator.truncate_text(content_to_text(msg.content), cap)
        except Exception as e:
            log.warning(
                "[AgentLoopCompression] Failed to truncate tool message %d: %s", index, e
            )
            continue

        truncated_messages[index] = msg.model_copy(update={"content": content})
        truncated_count += 1
        log.info(
            "[AgentLoopCompression] Truncated ToolMessage content for budget: "
            "index=%d, tool_call_id=%s, original_tokens=%d, target_tokens=%d",
            index,
            msg.tool_call_id,
            original_tokens,
            cap,
        )

    if truncated_count == 0:
        if prefix_end >= len(messages):
            log.warning(
                "[AgentLoopCompression] Still over budget but the cache prefix covers "
                "all %d messages: tokens=%d, target=%d",
                len(messages),
                current_tokens,
                target_budget,
            )
        return messages

    return truncated_messages


def _strip_cache_control(content: Any) -> Any:
    if not isinstance(content, list):
        return content

    if not any(isinstance(part, dict) and "cache_control" in part for part in content):
        return content

    parts = [
        {k: v for k, v in part.items() if k != "cache_control"}
        if isinstance(part, dict)
        else part
        for part in content
    ]

    # A lone marked text part came from a plain string
    if (
        len(parts) == 1
        and isinstance(parts[0], dict)
        and set(parts[0]) == {"type", "text"}
        and parts[0]["type"] == "text"
    ):
        return parts[0]["text"]
    return parts


def _with_cache_control(content: Any) -> Any:
    if isinstance(content, str):
        return [{"type": "text", "text": content, "cache_control": dict(CACHE_CONTROL)}]

    parts = copy.deepcopy(content)
    for part in reversed(parts):
        if isinstance(part, dict):
            part["cache_control"] = dict(CACHE_CONTROL)
            break
    return parts


def _is_cacheable(msg: BaseMessage) -> bool:
    kind = message_kind(msg)
    if kind is MessageKind.TOOL:
        return False

    content = msg.content
    if isinstance(content, str):
        return bool(content.strip())
    if not isinstance(content, list) or not content:
        return False

    last = content[-1]
    if not isinstance(last, dict):
        return False
    # Reasoning blocks cannot carry a cache breakpoint
    return last.get("type") not in ("reasoning", "thinking", "redacted_thinking")


def apply_agent_loop_caching(
    messages: list[BaseMessage], supports_prompt_cache: bool
) -> list[BaseMessage]:
    """Mark cache breakpoints on the system message and the latest cacheable messages.

    Earlier breakpoints are stripped first so the marked set follows the
    conversation as it grows. ToolMessages are never marked.
    """
    if not supports_prompt_cache or len(messages) <= 1:
        return messages

    result = []
    for msg in messages:
        stripped = _strip_cache_control(msg.content)
        result.append(
            msg if stripped is msg.content else msg.model_copy(update={"content": stripped})
        )

    marked: set[int] = set()
    if message_kind(result[0]) is MessageKind.SYSTEM and _is_cacheable(result[0]):
        marked.add(0)

    for index in range(len(result) - 1, 0, -1):
        if len(marked - {0}) >= MAX_CACHE_BREAKPOINTS:
            break
        if _is_cacheable(result[index]):
            marked.add(index)

    for index in marked:
        msg = result[index]
        result[index] = msg.model_copy(
            update={"content": _with_cache_control(msg.content)}
        )

    return result
