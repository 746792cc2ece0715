# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for agent-loop compaction and prompt cache breakpoints.
"""

import pytest
from builders import ai, ai_call, assert_tool_pairing, human, system, tool
from langchain_core.messages import AIMessage

from chat_context.compression.agent_loop import (
    apply_agent_loop_caching,
    compress_agent_loop_messages,
    truncate_tool_messages_for_budget,
)
from chat_context.compression.token_counter import TRUNCATION_SEPARATOR
from chat_context.context_block import ArchivedRefType, ContextBlock


def _tool_heavy_messages():
    return [
        system(10),
        human(10),
        ai(10),
        human(10),
        ai_call("c1", 10, "fetch_page"),
        tool("c1", 9000, "fetch_page"),
        human(10),
    ]


class TestCompressAgentLoopMessages:
    """Test compress_agent_loop_messages."""

    @pytest.mark.asyncio
    async def test_scenario_archives_history(self, scenario_messages, make_context):
        result = await compress_agent_loop_messages(
            scenario_messages,
            context_limit=12000,
            reserved_output=2000,
            context=make_context(),
        )

        assert result.was_compressed is True
        assert result.archive_locator.locator_id == "archive-1"
        assert len(result.messages) == 9
        assert_tool_pairing(result.messages)
        assert result.context_block is None

    @pytest.mark.asyncio
    async def test_fewer_than_three_messages(self, make_context):
        messages = [system(50000), human(50000)]

        result = await compress_agent_loop_messages(
            messages, context_limit=1000, reserved_output=100, context=make_context()
        )

        assert result.was_compressed is False
        assert result.messages is messages

    @pytest.mark.asyncio
    async def test_within_budget_is_unchanged(self, scenario_messages, make_context):
        result = await compress_agent_loop_messages(
            scenario_messages,
            context_limit=200000,
            reserved_output=8000,
            context=make_context(),
        )

        assert result.was_compressed is False
        assert result.messages is scenario_messages

    @pytest.mark.asyncio
    async def test_extra_reserved_tokens_count_against_budget(
        self, scenario_messages, make_context
    ):
        without_extra = await compress_agent_loop_messages(
            scenario_messages,
            context_limit=30000,
            reserved_output=0,
            context=make_context(),
        )
        with_extra = await compress_agent_loop_messages(
            scenario_messages,
            context_limit=30000,
            reserved_output=0,
            context=make_context(),
            extra_reserved_tokens=14000,
        )

        assert without_extra.was_compressed is False
        assert with_extra.was_compressed is True

    @pytest.mark.asyncio
    async def test_appends_chat_history_ref(self, scenario_messages, make_context):
        block = ContextBlock()

        result = await compress_agent_loop_messages(
            scenario_messages,
            context_limit=12000,
            reserved_output=2000,
            context=make_context(),
            context_block=block,
        )

        assert block.archived_refs == []
        refs = result.context_block.archived_refs
        assert len(refs) == 1
        assert refs[0].type == ArchivedRefType.CHAT_HISTORY
        assert refs[0].source == "history"
        assert refs[0].locator == "archive-1"
        assert refs[0].item_count == 2
        assert refs[0].tokens_saved > 0

    @pytest.mark.asyncio
    async def test_context_block_untouched_without_compression(
        self, scenario_messages, make_context
    ):
        block = ContextBlock()

        result = await compress_agent_loop_messages(
            scenario_messages,
            context_limit=200000,
            reserved_output=8000,
            context=make_context(),
            context_block=block,
        )

        assert result.context_block is block

    @pytest.mark.asyncio
    async def test_truncates_tool_results_when_archive_fails(
        self, make_context, failing_store
    ):
        messages = _tool_heavy_messages()

        result = await compress_agent_loop_messages(
            messages,
            context_limit=6000,
            reserved_output=0,
            context=make_context(
                store=failing_store, cache_min_tokens=0, max_tool_message_tokens=1000
            ),
        )

        assert result.was_compressed is False
        assert len(result.messages) == len(messages)
        truncated = result.messages[5]
        assert truncated.tool_call_id == "c1"
        assert truncated.name == "fetch_page"
        assert TRUNCATION_SEPARATOR in truncated.content
        assert len(truncated.content) <= 1000
        assert_tool_pairing(result.messages)
        assert messages[5].content == "t" * 9000


class TestTruncateToolMessagesForBudget:
    """Test truncate_tool_messages_for_budget."""

    def test_within_budget_returns_input(self, make_context):
        messages = _tool_heavy_messages()

        result = truncate_tool_messages_for_budget(
            messages, target_budget=100000, context=make_context(cache_min_tokens=0)
        )

        assert result is messages

    def test_small_tool_results_untouched(self, make_context):
        messages = [system(10), human(10), ai(10), ai_call("c1", 10), tool("c1", 500), human(9000)]

        result = truncate_tool_messages_for_budget(
            messages,
            target_budget=1000,
            context=make_context(cache_min_tokens=0, max_tool_message_tokens=1000),
        )

        assert result is messages

    def test_tool_result_in_cache_prefix_untouched(self, make_context):
        messages = [system(10), human(10), ai_call("c1", 10), tool("c1", 9000), human(10)]

        result = truncate_tool_messages_for_budget(
            messages,
            target_budget=1000,
            context=make_context(cache_min_tokens=0, max_tool_message_tokens=1000),
        )

        assert result is messages
        assert result[3].content == "t" * 9000

    def test_extra_reserved_tokens_trigger_truncation(self, make_context):
        messages = _tool_heavy_messages()

        result = truncate_tool_messages_for_budget(
            messages,
            target_budget=10000,
            context=make_context(cache_min_tokens=0, max_tool_message_tokens=2000),
            extra_reserved_tokens=5000,
        )

        assert len(result[5].content) <= 2000
        assert result[:5] == messages[:5]
        assert result[6] is messages[6]


class TestApplyAgentLoopCaching:
    """Test apply_agent_loop_caching."""

    def _conversation(self):
        return [
            system(5),
            human(5),
            ai(5),
            AIMessage(content="", tool_calls=[{"id": "c1", "name": "search", "args": {}}]),
            tool("c1", 5),
            human(5),
        ]

    @staticmethod
    def _marked(messages):
        return [
            i
            for i, msg in enumerate(messages)
            if isinstance(msg.content, list)
            and any(isinstance(p, dict) and "cache_control" in p for p in msg.content)
        ]

    def test_unsupported_model_is_a_no_op(self):
        messages = self._conversation()
        assert apply_agent_loop_caching(messages, supports_prompt_cache=False) is messages

    def test_single_message_is_a_no_op(self):
        messages = [system(5)]
        assert apply_agent_loop_caching(messages, supports_prompt_cache=True) is messages

    def test_marks_system_and_three_latest_cacheable(self):
        result = apply_agent_loop_caching(self._conversation(), supports_prompt_cache=True)

        assert self._marked(result) == [0, 1, 2, 5]
        assert result[0].content == [
            {"type": "text", "text": "sssss", "cache_control": {"type": "ephemeral"}}
        ]
        assert result[4].content == "ttttt"
        assert result[3].tool_calls[0]["id"] == "c1"

    def test_breakpoints_move_with_the_conversation(self):
        first = apply_agent_loop_caching(self._conversation(), supports_prompt_cache=True)
        grown = first + [ai(6), human(6)]

        second = apply_agent_loop_caching(grown, supports_prompt_cache=True)

        assert self._marked(second) == [0, 5, 6, 7]
        assert second[1].content == "hhhhh"
        assert second[2].content == "aaaaa"

    def test_list_content_marks_last_part(self):
        messages = [
            system(5),
            human(5),
            AIMessage(content=[{"type": "text", "text": "one"}, {"type": "text", "text": "two"}]),
        ]

        result = apply_agent_loop_caching(messages, supports_prompt_cache=True)

        assert "cache_control" not in result[2].content[0]
        assert result[2].content[1]["cache_control"] == {"type": "ephemeral"}
        assert "cache_control" not in messages[2].content[1]
