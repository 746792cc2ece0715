# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Context block truncation.

Fits a ContextBlock into a token budget. Files only carry metadata and are
kept while their name and summary fit. Agent results are kept in order;
an oversize result is truncated head/tail down to the remaining budget, or
skipped when that budget is below the per-item floor. Archived refs are the
routing table for archived content and always survive truncation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from langchain_core.messages import BaseMessage

from chat_context.compression.config import ModelContextConfig
from chat_context.compression.token_counter import (
    TokenCounter,
    TokenEstimator,
    count_messages_tokens,
    safe_count_tokens,
)

from .models import AgentResult, ContextBlock, ContextFileMeta

logger = logging.getLogger(__name__)

# Reserve for formatting and role tokens around the context block
PROMPT_OVERHEAD_TOKENS = 600
IMAGE_OVERHEAD_TOKENS = 2000


@dataclass
class ContextBlockLimits:
    """Per-item limits applied while truncating a context block.

    Attributes:
        max_files: Files considered, in original order
        max_results: Agent results considered, in original order
        max_output_files_per_result: Output files kept per result (metadata only)
        min_result_content_tokens: Floor below which an oversize result is dropped
    """

    max_files: int = 100
    max_results: int = 100
    max_output_files_per_result: int = 100
    min_result_content_tokens: int = 1000

    def __post_init__(self):
        if min(
            self.max_files,
            self.max_results,
            self.max_output_files_per_result,
            self.min_result_content_tokens,
        ) < 0:
            raise ValueError("context block limits must not be negative")

    @classmethod
    def from_settings(cls) -> "ContextBlockLimits":
        """Create ContextBlockLimits from application settings."""
        from chat_context.core.config import settings

        return cls(
            max_files=settings.CONTEXT_MAX_FILES,
            max_results=settings.CONTEXT_MAX_RESULTS,
            max_output_files_per_result=settings.CONTEXT_MAX_OUTPUT_FILES,
            min_result_content_tokens=settings.CONTEXT_MIN_ITEM_CONTENT_TOKENS,
        )


@dataclass
class TruncateContextResult:
    """Result of fitting a context block into a model's prompt budget."""

    context: ContextBlock
    context_budget: int
    fixed_tokens: int
    target_budget: int
    was_truncated: bool
    original_context_tokens: int


def truncate_context_block(
    block: Optional[ContextBlock],
    max_tokens: int,
    limits: Optional[ContextBlockLimits] = None,
    estimator: Optional[TokenEstimator] = None,
) -> ContextBlock:
    """Truncate a context block to fit ``max_tokens``.

    Args:
        block: Context block to truncate (not modified)
        max_tokens: Token budget for the whole block
        limits: Per-item limits, defaults from settings
        estimator: Token estimator, defaults to TokenCounter

    Returns:
        New ContextBlock whose total_tokens is the budget actually used
    """
    archived_refs = list(block.archived_refs) if block is not None else []

    if block is None or max_tokens <= 0:
        return ContextBlock(archived_refs=archived_refs)

    limits = limits or ContextBlockLimits.from_settings()
    estimator = estimator or TokenCounter()

    used_tokens = 0
    files: list[ContextFileMeta] = []
    results: list[AgentResult] = []

    for file in block.files[: limits.max_files]:
        if used_tokens >= max_tokens:
            break

        meta_tokens = safe_count_tokens(estimator, f"{file.name}\n{file.summary}")
        if max_tokens - used_tokens - meta_tokens <= 0:
            break

        files.append(file.model_copy())
        used_tokens += meta_tokens

    for result in block.results[: limits.max_results]:
        if used_tokens >= max_tokens:
            break

        base_tokens = safe_count_tokens(estimator, result.title)
        remaining = max_tokens - used_tokens - base_tokens
        if remaining <= 0:
            break

        content = result.content
        if safe_count_tokens(estimator, content) > remaining:
            if remaining < limits.min_result_content_tokens:
                continue
            try:
                content = estimator.truncate_text(content, remaining)
            except Exception as e:
                logger.warning(
                    "[ContextBlock] Failed to truncate result %s, dropping it: %s",
                    result.result_id,
                    e,
                )
                continue

        # Output files can be huge; keep metadata only
        output_files = [
            output_file.model_copy(update={"content": ""})
            for output_file in result.output_files[: limits.max_output_files_per_result]
        ]

        results.append(
            result.model_copy(update={"content": content, "output_files": output_files})
        )
        used_tokens += base_tokens + safe_count_tokens(estimator, content)

    return ContextBlock(
        files=files,
        results=results,
        total_tokens=used_tokens,
        archived_refs=archived_refs,
    )


def truncate_context_block_for_model_prompt(
    block: Optional[ContextBlock],
    system_prompt: str,
    query: str,
    chat_history: list[BaseMessage],
    messages: list[BaseMessage],
    images: list[Any],
    model: ModelContextConfig,
    estimator: Optional[TokenEstimator] = None,
    limits: Optional[ContextBlockLimits] = None,
    log: Optional[logging.Logger] = None,
    log_meta: Optional[dict[str, Any]] = None,
) -> TruncateContextResult:
    """Fit a context block into what the model has left after the fixed prompt parts.

    The fixed parts are the system prompt, the query, the chat history and the
    in-flight messages plus a formatting overhead (larger when images are
    attached). Whatever remains of the model's target budget goes to the block.
    """
    estimator = estimator or TokenCounter()
    log = log or logger

    target_budget = model.available_tokens
    overhead = PROMPT_OVERHEAD_TOKENS + (IMAGE_OVERHEAD_TOKENS if images else 0)
    fixed_tokens = (
        safe_count_tokens(estimator, system_prompt)
        + safe_count_tokens(estimator, query)
        + count_messages_tokens(estimator, [*(chat_history or []), *(messages or [])])
        + overhead
    )
    context_budget = max(0, target_budget - fixed_tokens)

    original_context_tokens = block.total_tokens if block is not None else 0
    context = truncate_context_block(block, context_budget, limits, estimator)
    was_truncated = original_context_tokens > context.total_tokens

    if was_truncated:
        log.info(
            "[ContextBlock] Truncated for prompt budget: context_window=%d, "
            "output_tokens=%d, target_budget=%d, fixed_tokens=%d, context_budget=%d, "
            "original_tokens=%d, truncated_tokens=%d, meta=%s",
            model.context_window,
            model.output_tokens,
            target_budget,
            fixed_tokens,
            context_budget,
            original_context_tokens,
            context.total_tokens,
            log_meta or {},
        )

    return TruncateContextResult(
        context=context,
        context_budget=context_budget,
        fixed_tokens=fixed_tokens,
        target_budget=target_budget,
        was_truncated=was_truncated,
        original_context_tokens=original_context_tokens,
    )
