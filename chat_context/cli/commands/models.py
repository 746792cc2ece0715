# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Models command - Show built-in model context limits.
"""

import click
from rich.console import Console
from rich.table import Table

from chat_context.compression.config import DEFAULT_MODEL_CONTEXT, MODEL_CONTEXT_LIMITS


@click.command("models")
def models():
    """List the built-in model context table.

    Unknown models fall back to the default row; versioned ids such as
    claude-3-5-sonnet-20241022 match the longest known prefix.
    """
    console = Console()

    table = Table(title="Model Context Limits")
    table.add_column("Model", style="cyan")
    table.add_column("Context Window", justify="right")
    table.add_column("Output Tokens", justify="right")
    table.add_column("Available", justify="right")
    table.add_column("Prompt Cache", style="green")

    rows = [*sorted(MODEL_CONTEXT_LIMITS.items()), ("(default)", DEFAULT_MODEL_CONTEXT)]
    for model_id, config in rows:
        table.add_row(
            model_id,
            str(config.context_window),
            str(config.output_tokens),
            str(config.available_tokens),
            "yes" if config.supports_prompt_cache else "no",
        )

    console.print(table)
