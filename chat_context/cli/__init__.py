# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
chat-context CLI module.

Provides command-line access to the compaction engine:
- chat-context compact: Compact a JSON message list
- chat-context truncate-block: Truncate a JSON context block
- chat-context models: Show built-in model context limits
"""

from chat_context.cli.main import cli

__all__ = ["cli"]
