# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
chat-context CLI main entry point.
"""

import click

from chat_context import __version__
from chat_context.core.logging import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="chat-context")
@click.option("--log-level", default=None, help="Log level (defaults to LOG_LEVEL)")
def cli(log_level):
    """chat-context - Context window compaction tool.

    Inspect how a conversation or context block is compacted to fit
    a model's context window:
    - Archive older messages while keeping tool calls paired
    - Truncate oversize tool results
    - Truncate context blocks to a token budget
    """
    setup_logging(log_level)


from chat_context.cli.commands.compact import compact
from chat_context.cli.commands.models import models
from chat_context.cli.commands.truncate_block import truncate_block

cli.add_command(compact)
cli.add_command(truncate_block)
cli.add_command(models)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
