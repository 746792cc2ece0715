# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
chat_context - context window compaction for LLM conversations.

Keeps a conversation inside a model's context window by archiving older
messages to an archive store, without breaking tool call pairing or the
cached prompt prefix, and fits attached context blocks into what is left.
"""

__version__ = "0.1.0"

from chat_context.compression import (
    AgentLoopCompressionResult,
    ArchiveContext,
    CompactionConfig,
    HistoryCompressionResult,
    ModelContextConfig,
    TokenCounter,
    TokenEstimator,
    apply_agent_loop_caching,
    compress_agent_loop_messages,
    compress_history,
    get_model_context_config,
)
from chat_context.context_block import (
    ContextBlock,
    ContextBlockLimits,
    truncate_context_block,
    truncate_context_block_for_model_prompt,
)

__all__ = [
    "__version__",
    "AgentLoopCompressionResult",
    "ArchiveContext",
    "CompactionConfig",
    "ContextBlock",
    "ContextBlockLimits",
    "HistoryCompressionResult",
    "ModelContextConfig",
    "TokenCounter",
    "TokenEstimator",
    "apply_agent_loop_caching",
    "compress_agent_loop_messages",
    "compress_history",
    "get_model_context_config",
    "truncate_context_block",
    "truncate_context_block_for_model_prompt",
]
