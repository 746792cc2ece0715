# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Cache-friendly history compression.

CACHE-FRIENDLY COMPRESSION STRATEGY:
- Preserve the prefix (system + first N messages) for prompt caching hits
- Compress the NEWEST messages after the cache prefix first
- Keep the current turn intact

    Before: [System][Msg1][Msg2][Msg3][Msg4][Msg5][Current]
    After:  [System][Msg1][Msg2][Ref][Current]

The prefix stays byte-identical across requests, so providers with prompt
caching keep serving it from cache.

Algorithm:
1. Skip when remaining/target budget >= remaining_space_threshold (20%)
   or the history has fewer than 3 messages
2. Calculate the cache prefix boundary and the compressible range
3. Target = max(tokens needed to restore headroom, 70% of the compressible range)
4. Archive tool pair groups, then standalone messages, newest first
5. Upload the archived messages and splice in one reference message
"""

from dataclasses import dataclass
from typing import Optional

from langchain_core.messages import BaseMessage

from chat_context.storage.interfaces import ArchiveLocator

from .archive import (
    ArchiveContext,
    archive_messages,
    build_compressed_history,
    create_history_reference_message,
    generate_history_summary,
)
from .boundaries import calculate_cache_prefix_boundary, calculate_compressible_end_index
from .budget import CompressionBudget
from .grouping import build_compressible_tool_pair_groups
from .selector import calculate_target_tokens_to_archive, select_messages_to_archive
from .token_counter import count_messages_tokens

# Below this many messages there is nothing worth compressing
MIN_MESSAGES_TO_COMPRESS = 3


@dataclass
class HistoryCompressionResult:
    """Result of history compression.

    Attributes:
        compressed_history: History with archived messages replaced by a reference
        was_compressed: Whether compression occurred
        archive_locator: Locator of the archived transcript
        archived_message_count: Number of messages archived
        tokens_saved: Tokens saved by compression
    """

    compressed_history: list[BaseMessage]
    was_compressed: bool = False
    archive_locator: Optional[ArchiveLocator] = None
    archived_message_count: int = 0
    tokens_saved: int = 0

    @classmethod
    def unchanged(cls, history: list[BaseMessage]) -> "HistoryCompressionResult":
        return cls(compressed_history=history)


async def compress_history(
    messages: list[BaseMessage],
    remaining_budget: int,
    target_budget: int,
    context: ArchiveContext,
) -> HistoryCompressionResult:
    """Compress chat history using the cache-friendly strategy.

    Args:
        messages: Full chat history (not modified)
        remaining_budget: target_budget minus the tokens currently used
        target_budget: Context limit minus reserved output tokens
        context: Archive context (store, estimator, policy)

    Returns:
        HistoryCompressionResult; the original list is returned unchanged when
        nothing was compressed. When the reference message would outweigh the
        archived messages the upload has already happened, so the store keeps
        an archive that nothing refers to; its locator is logged at warning level.
    """
    config = context.config
    estimator = context.estimator
    log = context.log

    remaining_ratio = CompressionBudget.from_remaining(
        remaining_budget, target_budget
    ).remaining_ratio

    if (
        not config.enabled
        or remaining_ratio >= config.remaining_space_threshold
        or len(messages) < MIN_MESSAGES_TO_COMPRESS
    ):
        return HistoryCompressionResult.unchanged(messages)

    history = list(messages)
    total_history_tokens = count_messages_tokens(estimator, history)

    # 1. Messages before prefix_end are never compressed
    prefix_end = calculate_cache_prefix_boundary(
        history,
        estimator,
        min_tokens=context.cache_min_tokens,
        prefix_message_count=config.cache_prefix_message_count,
    )

    if prefix_end >= len(history) - 1:
        log.debug(
            "[HistoryCompression] Cache prefix covers the history: prefix_end=%d, messages=%d",
            prefix_end,
            len(history),
        )
        return HistoryCompressionResult.unchanged(messages)

    # 2. Compressible range: [prefix_end, compressible_end)
    compressible_end = calculate_compressible_end_index(
        history, prefix_end, config.tail_reserve_messages
    )
    if prefix_end >= compressible_end:
        return HistoryCompressionResult.unchanged(messages)

    # 3. How many tokens to archive
    compressible_tokens = count_messages_tokens(
        estimator, history[prefix_end:compressible_end]
    )
    target_tokens = calculate_target_tokens_to_archive(
        remaining_budget=remaining_budget,
        target_budget=target_budget,
        compressible_tokens=compressible_tokens,
        remaining_space_threshold=config.remaining_space_threshold,
        history_compress_ratio=config.history_compress_ratio,
    )

    # 4. Pick eviction units, newest first
    tool_pair_groups, standalone_messages = build_compressible_tool_pair_groups(
        history, prefix_end, compressible_end, estimator
    )
    selection = select_messages_to_archive(
        tool_pair_groups, standalone_messages, target_tokens
    )
    if selection.is_empty:
        return HistoryCompressionResult.unchanged(messages)

    # 5. Upload; any failure leaves the history untouched
    messages_to_archive = [
        msg for i, msg in enumerate(history) if i in selection.archived_indices
    ]
    locator = await archive_messages(messages_to_archive, context)
    if locator is None:
        return HistoryCompressionResult.unchanged(messages)

    reference = create_history_reference_message(
        locator,
        len(messages_to_archive),
        generate_history_summary(messages_to_archive),
    )
    compressed_history = build_compressed_history(
        history, selection.archived_indices, reference
    )

    compressed_tokens = count_messages_tokens(estimator, compressed_history)
    if compressed_tokens > total_history_tokens:
        log.warning(
            "[HistoryCompression] Reference message outweighs archived content "
            "(%d -> %d tokens), keeping history; archive is unreferenced: locator=%s",
            total_history_tokens,
            compressed_tokens,
            locator,
        )
        return HistoryCompressionResult.unchanged(messages)
    tokens_saved = total_history_tokens - compressed_tokens

    log.info(
        "[HistoryCompression] Chat history compressed: prefix_end=%d, "
        "total_tokens=%d, target_to_archive=%d, archived=%d messages (%d tokens), "
        "compressed_messages=%d, compressed_tokens=%d, tokens_saved=%d, "
        "still_over_budget=%s, locator=%s, remaining_ratio=%.1f%%",
        prefix_end,
        total_history_tokens,
        target_tokens,
        len(messages_to_archive),
        selection.archived_tokens,
        len(compressed_history),
        compressed_tokens,
        tokens_saved,
        compressed_tokens > target_budget,
        locator,
        remaining_ratio * 100,
    )

    return HistoryCompressionResult(
        compressed_history=compressed_history,
        was_compressed=True,
        archive_locator=locator,
        archived_message_count=len(messages_to_archive),
        tokens_saved=tokens_saved,
    )
