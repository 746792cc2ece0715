# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the chat-context CLI.

Commands run with a Claude model id so token counting is character-based.
"""

import json
import logging

import pytest
from click.testing import CliRunner

from chat_context import __version__
from chat_context.cli.main import cli
from chat_context.core import config as core_config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _conversation():
    return [
        {"role": "system", "content": "s" * 7000},
        {"role": "user", "content": "h" * 7000},
        {"role": "assistant", "content": "a" * 7000},
        {"role": "user", "content": "Read the log file."},
        {
            "role": "assistant",
            "content": "",
            "tool_calls": [{"id": "c1", "name": "read_file", "args": {"path": "app.log"}}],
        },
        {"role": "tool", "content": "x" * 35000, "tool_call_id": "c1", "name": "read_file"},
        {"role": "assistant", "content": "The log shows a timeout."},
        {"role": "user", "content": "Why?"},
    ]


class TestCli:
    """Test CLI commands."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_models(self, runner):
        result = runner.invoke(cli, ["models"])

        assert result.exit_code == 0
        assert "Model Context Limits" in result.output
        assert "claude-3-5-sonnet" in result.output
        assert "(default)" in result.output

    def test_compact_writes_output(self, runner, tmp_path):
        source = tmp_path / "conversation.json"
        source.write_text(json.dumps(_conversation()), encoding="utf-8")
        target = tmp_path / "compacted.json"

        result = runner.invoke(
            cli,
            [
                "compact",
                str(source),
                "--model",
                "claude-3-5-sonnet",
                "--context-limit",
                "16000",
                "--reserved-output",
                "2000",
                "--output",
                str(target),
                "--show-archive",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Compaction Result" in result.output
        assert "archive-1" in result.output
        assert "--- Message 1 [ai] ---" in result.output

        compacted = json.loads(target.read_text(encoding="utf-8"))
        assert len(compacted) == 7
        assert compacted[3]["content"] == "Read the log file."
        assert compacted[4]["role"] == "assistant"
        assert "archived to file: archive-1" in compacted[4]["content"]
        assert all(m["role"] != "tool" for m in compacted)

    def test_compact_with_cache_breakpoints(self, runner, tmp_path):
        source = tmp_path / "conversation.json"
        source.write_text(json.dumps(_conversation()[:3]), encoding="utf-8")
        target = tmp_path / "cached.json"

        result = runner.invoke(
            cli,
            ["compact", str(source), "--model", "claude-3-5-sonnet", "--cache", "-o", str(target)],
        )

        assert result.exit_code == 0, result.output
        compacted = json.loads(target.read_text(encoding="utf-8"))
        assert compacted[0]["content"][0]["cache_control"] == {"type": "ephemeral"}

    def test_compact_invalid_json(self, runner, tmp_path):
        source = tmp_path / "broken.json"
        source.write_text("{not json", encoding="utf-8")

        result = runner.invoke(cli, ["compact", str(source), "--model", "claude-3-5-sonnet"])

        assert result.exit_code == 1
        assert "failed to load messages" in result.output

    def test_compact_rejects_remote_store_without_url(self, runner, tmp_path, monkeypatch):
        monkeypatch.setattr(core_config.settings, "ARCHIVE_STORAGE_TYPE", "remote")
        monkeypatch.setattr(core_config.settings, "ARCHIVE_REMOTE_URL", "")
        source = tmp_path / "conversation.json"
        source.write_text(json.dumps(_conversation()), encoding="utf-8")

        result = runner.invoke(cli, ["compact", str(source), "--model", "claude-3-5-sonnet"])

        assert result.exit_code == 1
        assert "invalid archive store settings" in result.output

    def test_truncate_block(self, runner, tmp_path):
        block = {
            "files": [{"file_id": "f-1", "name": "notes.md", "summary": "meeting notes"}],
            "results": [
                {"result_id": f"r-{i}", "title": f"Result {i}", "content": "c" * 14000}
                for i in range(3)
            ],
            "archived_refs": [
                {"type": "chat_history", "source": "history", "locator": "archive-7"}
            ],
        }
        source = tmp_path / "block.json"
        source.write_text(json.dumps(block), encoding="utf-8")
        target = tmp_path / "truncated.json"

        result = runner.invoke(
            cli,
            [
                "truncate-block",
                str(source),
                "--max-tokens",
                "3000",
                "--model",
                "claude-3-5-sonnet",
                "-o",
                str(target),
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Context Block Truncation" in result.output
        truncated = json.loads(target.read_text(encoding="utf-8"))
        assert len(truncated["files"]) == 1
        assert len(truncated["results"]) == 1
        assert truncated["archived_refs"][0]["locator"] == "archive-7"
        assert truncated["total_tokens"] <= 3000
