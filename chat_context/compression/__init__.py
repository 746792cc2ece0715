# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Message compaction for handling context window limits.

This module archives older conversation content when a message sequence
approaches the model's context window, while keeping the cache prefix
stable and tool calls paired with their results.
"""

from .agent_loop import (
    AgentLoopCompressionResult,
    apply_agent_loop_caching,
    compress_agent_loop_messages,
    truncate_tool_messages_for_budget,
)
from .archive import ArchiveContext, archive_messages
from .boundaries import (
    adjust_end_index_for_tool_pairing,
    adjust_prefix_boundary_for_tool_pairing,
    calculate_cache_prefix_boundary,
    calculate_compressible_end_index,
)
from .budget import CompressionBudget
from .config import (
    MODEL_CONTEXT_LIMITS,
    CompactionConfig,
    ModelContextConfig,
    get_model_context_config,
)
from .grouping import MessageEntry, ToolPairGroup, build_compressible_tool_pair_groups
from .history import HistoryCompressionResult, compress_history
from .selector import (
    ArchiveSelection,
    calculate_target_tokens_to_archive,
    select_messages_to_archive,
)
from .token_counter import TokenCounter, TokenEstimator

__all__ = [
    "compress_agent_loop_messages",
    "compress_history",
    "apply_agent_loop_caching",
    "truncate_tool_messages_for_budget",
    "archive_messages",
    "AgentLoopCompressionResult",
    "HistoryCompressionResult",
    "ArchiveContext",
    "ArchiveSelection",
    "CompressionBudget",
    "CompactionConfig",
    "ModelContextConfig",
    "MODEL_CONTEXT_LIMITS",
    "get_model_context_config",
    "MessageEntry",
    "ToolPairGroup",
    "build_compressible_tool_pair_groups",
    "calculate_cache_prefix_boundary",
    "adjust_prefix_boundary_for_tool_pairing",
    "adjust_end_index_for_tool_pairing",
    "calculate_compressible_end_index",
    "calculate_target_tokens_to_archive",
    "select_messages_to_archive",
    "TokenCounter",
    "TokenEstimator",
]
