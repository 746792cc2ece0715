# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for logging configuration.
"""

import logging

import pytest

from chat_context.core.logging import (
    ConversationIdFilter,
    RelativePathFormatter,
    get_conversation_id,
    set_log_context,
)


@pytest.fixture(autouse=True)
def reset_log_context():
    yield
    set_log_context(None)


def _record(pathname: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="chat_context.test",
        level=logging.INFO,
        pathname=pathname,
        lineno=12,
        msg="[HistoryCompression] archived %d messages",
        args=(2,),
        exc_info=None,
    )


class TestConversationIdFilter:
    """Test ConversationIdFilter."""

    def test_injects_bound_conversation_id(self):
        set_log_context("conv-42")
        record = _record("/tmp/x.py")

        assert ConversationIdFilter().filter(record) is True
        assert record.conversation_id == "conv-42"
        assert get_conversation_id() == "conv-42"

    def test_placeholder_without_context(self):
        record = _record("/tmp/x.py")

        ConversationIdFilter().filter(record)

        assert record.conversation_id == "-"


class TestRelativePathFormatter:
    """Test RelativePathFormatter."""

    def test_strips_base_path(self):
        formatter = RelativePathFormatter(
            "%(relativepath)s:%(lineno)d %(message)s", base_path="/srv/app"
        )

        output = formatter.format(_record("/srv/app/chat_context/compression/history.py"))

        assert output == "chat_context/compression/history.py:12 [HistoryCompression] archived 2 messages"

    def test_keeps_foreign_paths(self):
        formatter = RelativePathFormatter("%(relativepath)s", base_path="/srv/app")

        assert formatter.format(_record("/usr/lib/python3/x.py")) == "/usr/lib/python3/x.py"
