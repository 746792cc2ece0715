# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Greedy selection of eviction units."""

from dataclasses import dataclass

from .grouping import MessageEntry, ToolPairGroup


@dataclass(frozen=True)
class ArchiveSelection:
    """Messages chosen for archival.

    Attributes:
        archived_indices: Indices into the original sequence
        archived_tokens: Combined token cost of the archived messages
        target_tokens: Token amount the selection was aiming for
    """

    archived_indices: frozenset[int]
    archived_tokens: int
    target_tokens: int

    @property
    def is_empty(self) -> bool:
        return not self.archived_indices


def calculate_target_tokens_to_archive(
    remaining_budget: int,
    target_budget: int,
    compressible_tokens: int,
    remaining_space_threshold: float,
    history_compress_ratio: float,
) -> int:
    """How many tokens one compression pass should archive.

    At least enough to restore the minimum headroom, and at least
    ``history_compress_ratio`` of the compressible range so the history is
    compressed in large steps rather than on every turn.
    """
    min_remaining_tokens = target_budget * remaining_space_threshold
    tokens_to_free = max(0, int(-remaining_budget + min_remaining_tokens))
    min_tokens_to_archive = int(compressible_tokens * history_compress_ratio)
    return max(tokens_to_free, min_tokens_to_archive)


def select_messages_to_archive(
    tool_pair_groups: list[ToolPairGroup],
    standalone_messages: list[MessageEntry],
    target_tokens: int,
) -> ArchiveSelection:
    """Pick eviction units newest first until ``target_tokens`` is reached.

    Tool pair groups are consumed before standalone messages. A unit is
    archived entirely or not at all.
    """
    archived: set[int] = set()
    archived_tokens = 0

    for group in tool_pair_groups:
        if archived_tokens >= target_tokens:
            break
        archived.update(group.indices)
        archived_tokens += group.total_tokens

    for entry in standalone_messages:
        if archived_tokens >= target_tokens:
            break
        if entry.index in archived:
            continue
        archived.add(entry.index)
        archived_tokens += entry.tokens

    return ArchiveSelection(
        archived_indices=frozenset(archived),
        archived_tokens=archived_tokens,
        target_tokens=target_tokens,
    )
