# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for compaction configuration and model context limits.
"""

import pytest

from chat_context.compression.archive import ArchiveContext
from chat_context.compression.config import (
    DEFAULT_MODEL_CONTEXT,
    CompactionConfig,
    ModelContextConfig,
    get_model_context_config,
)
from chat_context.context_block import ContextBlockLimits
from chat_context.core.config import Settings, settings
from chat_context.storage import MemoryArchiveStore


class TestCompactionConfig:
    """Test CompactionConfig defaults and validation."""

    def test_defaults(self):
        config = CompactionConfig()

        assert config.enabled is True
        assert config.remaining_space_threshold == 0.2
        assert config.history_compress_ratio == 0.7
        assert config.cache_min_tokens == 4096
        assert config.cache_prefix_message_count == 2
        assert config.tail_reserve_messages == 2
        assert config.max_tool_message_tokens == 4096

    @pytest.mark.parametrize(
        "overrides",
        [
            {"remaining_space_threshold": 1.5},
            {"history_compress_ratio": -0.1},
            {"tail_reserve_messages": -1},
            {"max_tool_message_tokens": 0},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            CompactionConfig(**overrides)

    def test_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "CONTEXT_HISTORY_COMPRESS_RATIO", 0.5)
        monkeypatch.setattr(settings, "CONTEXT_MAX_TOOL_MESSAGE_TOKENS", 2048)

        config = CompactionConfig.from_settings()

        assert config.history_compress_ratio == 0.5
        assert config.max_tool_message_tokens == 2048

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("CONTEXT_REMAINING_SPACE_THRESHOLD", "0.3")
        monkeypatch.setenv("ARCHIVE_STORAGE_TYPE", "remote")

        loaded = Settings()

        assert loaded.CONTEXT_REMAINING_SPACE_THRESHOLD == 0.3
        assert loaded.ARCHIVE_STORAGE_TYPE == "remote"

    def test_context_block_limits_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "CONTEXT_MAX_RESULTS", 7)

        limits = ContextBlockLimits.from_settings()

        assert limits.max_results == 7
        assert limits.min_result_content_tokens == 1000

    def test_context_block_limits_reject_negative(self):
        with pytest.raises(ValueError):
            ContextBlockLimits(max_files=-1)


class TestCacheMinTokens:
    """The cache minimum follows the model's prompt cache support."""

    def test_without_model(self):
        context = ArchiveContext(conversation_id="c", store=MemoryArchiveStore())
        assert context.cache_min_tokens == context.config.cache_min_tokens

    def test_model_without_prompt_cache(self):
        context = ArchiveContext(
            conversation_id="c",
            store=MemoryArchiveStore(),
            model=ModelContextConfig(context_window=8192, supports_prompt_cache=False),
        )
        assert context.cache_min_tokens == 0

    def test_model_with_prompt_cache(self):
        context = ArchiveContext(
            conversation_id="c",
            store=MemoryArchiveStore(),
            model=ModelContextConfig(context_window=200000, supports_prompt_cache=True),
            config=CompactionConfig(cache_min_tokens=1024),
        )
        assert context.cache_min_tokens == 1024


class TestGetModelContextConfig:
    """Test get_model_context_config."""

    def test_exact_match(self):
        config = get_model_context_config("gpt-4")
        assert config.context_window == 8192

    def test_longest_prefix_wins(self):
        config = get_model_context_config("gpt-4o-mini-2024-07-18")
        assert config.output_tokens == 16384
        assert config.supports_prompt_cache is True

        config = get_model_context_config("claude-3-5-sonnet-20241022")
        assert config.context_window == 200000

    def test_case_insensitive(self):
        assert get_model_context_config("GPT-4").context_window == 8192

    def test_unknown_model(self):
        assert get_model_context_config("my-local-llama") is DEFAULT_MODEL_CONTEXT

    def test_explicit_config_wins(self):
        config = get_model_context_config(
            "gpt-4",
            {"context_window": 32000, "max_output_tokens": 1000, "supports_prompt_cache": True},
        )

        assert config.context_window == 32000
        assert config.output_tokens == 1000
        assert config.available_tokens == 31000
        assert config.supports_prompt_cache is True

    def test_explicit_config_without_window_is_ignored(self):
        config = get_model_context_config("gpt-4", {"max_output_tokens": 1000})
        assert config.context_window == 8192

    def test_available_tokens_never_negative(self):
        assert ModelContextConfig(context_window=100, output_tokens=500).available_tokens == 0
