# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Configuration for context compaction.

This module defines model context limits (the model capability descriptor)
and the policy constants used by history compression and context-block
truncation. Defaults match the values the engine has always used; every
constant can be overridden through settings or by constructing the
dataclasses directly.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ModelContextConfig:
    """Configuration for a specific model's context limits.

    Attributes:
        context_window: Maximum context window size in tokens
        output_tokens: Reserved tokens for model output
        supports_prompt_cache: Whether the provider caches stable prompt prefixes
    """

    context_window: int
    output_tokens: int = 4096
    supports_prompt_cache: bool = False

    @property
    def available_tokens(self) -> int:
        """Calculate available tokens after reserving output tokens."""
        return max(0, self.context_window - self.output_tokens)


@dataclass
class CompactionConfig:
    """Policy constants for history compression.

    Attributes:
        enabled: Whether compression is enabled
        remaining_space_threshold: Compress when remaining/target budget falls below this
        history_compress_ratio: Minimum share of the compressible range archived per pass
        cache_min_tokens: Smallest prefix for which prompt caching is effective
        cache_prefix_message_count: Messages after the system message kept in the prefix
        tail_reserve_messages: Messages kept at the tail when the last message is an AI turn
        max_tool_message_tokens: Per tool result cap for the secondary truncation pass
        archive_timeout_seconds: Timeout for the archive store hand-off
    """

    enabled: bool = True
    remaining_space_threshold: float = 0.2
    history_compress_ratio: float = 0.7
    cache_min_tokens: int = 4096
    cache_prefix_message_count: int = 2
    tail_reserve_messages: int = 2
    max_tool_message_tokens: int = 4096
    archive_timeout_seconds: float = 30.0

    def __post_init__(self):
        if not 0.0 <= self.remaining_space_threshold <= 1.0:
            raise ValueError(
                f"remaining_space_threshold must be within [0, 1], got {self.remaining_space_threshold}"
            )
        if not 0.0 <= self.history_compress_ratio <= 1.0:
            raise ValueError(
                f"history_compress_ratio must be within [0, 1], got {self.history_compress_ratio}"
            )
        if self.cache_prefix_message_count < 0 or self.tail_reserve_messages < 0:
            raise ValueError("message counts must not be negative")
        if self.max_tool_message_tokens <= 0:
            raise ValueError("max_tool_message_tokens must be positive")

    @classmethod
    def from_settings(cls) -> "CompactionConfig":
        """Create CompactionConfig from application settings."""
        from chat_context.core.config import settings

        return cls(
            enabled=settings.CONTEXT_COMPRESSION_ENABLED,
            remaining_space_threshold=settings.CONTEXT_REMAINING_SPACE_THRESHOLD,
            history_compress_ratio=settings.CONTEXT_HISTORY_COMPRESS_RATIO,
            cache_min_tokens=settings.CONTEXT_CACHE_MIN_TOKENS,
            cache_prefix_message_count=settings.CONTEXT_CACHE_PREFIX_MESSAGE_COUNT,
            tail_reserve_messages=settings.CONTEXT_TAIL_RESERVE_MESSAGES,
            max_tool_message_tokens=settings.CONTEXT_MAX_TOOL_MESSAGE_TOKENS,
            archive_timeout_seconds=settings.ARCHIVE_TIMEOUT_SECONDS,
        )


# Model context limits based on provider documentation
# Reference: https://docs.anthropic.com/claude/docs/models-overview
# Reference: https://platform.openai.com/docs/models
# Reference: https://ai.google.dev/models/gemini
MODEL_CONTEXT_LIMITS: dict[str, ModelContextConfig] = {
    # Anthropic Claude models
    "claude-3-5-sonnet": ModelContextConfig(
        context_window=200000, output_tokens=8192, supports_prompt_cache=True
    ),
    "claude-3-5-haiku": ModelContextConfig(
        context_window=200000, output_tokens=8192, supports_prompt_cache=True
    ),
    "claude-3-opus": ModelContextConfig(
        context_window=200000, output_tokens=4096, supports_prompt_cache=True
    ),
    "claude-sonnet-4": ModelContextConfig(
        context_window=200000, output_tokens=64000, supports_prompt_cache=True
    ),
    "claude-opus-4": ModelContextConfig(
        context_window=200000, output_tokens=32000, supports_prompt_cache=True
    ),
    # OpenAI GPT models
    "gpt-4o-mini": ModelContextConfig(
        context_window=128000, output_tokens=16384, supports_prompt_cache=True
    ),
    "gpt-4o": ModelContextConfig(
        context_window=128000, output_tokens=16384, supports_prompt_cache=True
    ),
    "gpt-4-turbo": ModelContextConfig(context_window=128000, output_tokens=4096),
    "gpt-4": ModelContextConfig(context_window=8192, output_tokens=4096),
    "gpt-3.5-turbo": ModelContextConfig(context_window=16385, output_tokens=4096),
    "o1-mini": ModelContextConfig(context_window=128000, output_tokens=65536),
    "o1": ModelContextConfig(
        context_window=200000, output_tokens=100000, supports_prompt_cache=True
    ),
    "o3-mini": ModelContextConfig(
        context_window=200000, output_tokens=100000, supports_prompt_cache=True
    ),
    "o3": ModelContextConfig(
        context_window=200000, output_tokens=100000, supports_prompt_cache=True
    ),
    # Google Gemini models
    "gemini-1.5-pro": ModelContextConfig(context_window=2097152, output_tokens=8192),
    "gemini-1.5-flash": ModelContextConfig(context_window=1048576, output_tokens=8192),
    "gemini-2.0-flash": ModelContextConfig(context_window=1048576, output_tokens=8192),
}

DEFAULT_MODEL_CONTEXT = ModelContextConfig(context_window=128000, output_tokens=8000)


def get_model_context_config(
    model_id: str,
    model_config: Optional[dict[str, Any]] = None,
) -> ModelContextConfig:
    """Get context configuration for a model.

    Priority for configuration values:
    1. Explicit model configuration (context_window, max_output_tokens, supports_prompt_cache)
    2. Built-in defaults from MODEL_CONTEXT_LIMITS based on model_id
    3. Conservative defaults for unknown models

    Args:
        model_id: Model identifier (e.g., "claude-3-5-sonnet-20241022")
        model_config: Optional model configuration supplied by the caller

    Returns:
        ModelContextConfig for the model
    """
    if model_config:
        context_window = model_config.get("context_window")
        if context_window is not None:
            max_output_tokens = model_config.get("max_output_tokens")
            return ModelContextConfig(
                context_window=context_window,
                output_tokens=max_output_tokens if max_output_tokens is not None else 4096,
                supports_prompt_cache=bool(model_config.get("supports_prompt_cache", False)),
            )

    model_lower = (model_id or "").lower()

    if model_lower in MODEL_CONTEXT_LIMITS:
        return MODEL_CONTEXT_LIMITS[model_lower]

    # Prefix matching handles versioned model names; longest prefix wins
    for prefix in sorted(MODEL_CONTEXT_LIMITS, key=len, reverse=True):
        if model_lower.startswith(prefix):
            return MODEL_CONTEXT_LIMITS[prefix]

    return DEFAULT_MODEL_CONTEXT
