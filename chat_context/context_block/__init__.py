# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Context block models and truncation.

Usage:
    from chat_context.context_block import ContextBlock, truncate_context_block

    block = truncate_context_block(block, max_tokens=8000)
"""

from .models import (
    AgentResult,
    ArchivedRef,
    ArchivedRefType,
    ContextBlock,
    ContextFile,
    ContextFileMeta,
)
from .refs import add_archived_ref, get_archived_refs_by_source, get_archived_refs_by_type
from .truncation import (
    ContextBlockLimits,
    TruncateContextResult,
    truncate_context_block,
    truncate_context_block_for_model_prompt,
)

__all__ = [
    "AgentResult",
    "ArchivedRef",
    "ArchivedRefType",
    "ContextBlock",
    "ContextBlockLimits",
    "ContextFile",
    "ContextFileMeta",
    "TruncateContextResult",
    "add_archived_ref",
    "get_archived_refs_by_source",
    "get_archived_refs_by_type",
    "truncate_context_block",
    "truncate_context_block_for_model_prompt",
]
