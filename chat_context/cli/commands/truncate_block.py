# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Truncate-block command - Fit a JSON context block into a token budget.
"""

import json
import sys
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from chat_context.compression import TokenCounter
from chat_context.context_block import (
    ContextBlock,
    ContextBlockLimits,
    truncate_context_block,
)


@click.command("truncate-block")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--max-tokens", "-t", type=int, required=True, help="Token budget for the block")
@click.option("--model", "-m", default="", help="Model id used for token counting")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the truncated block to this file",
)
def truncate_block(file: str, max_tokens: int, model: str, output: Optional[str]):
    """Truncate a JSON context block to MAX_TOKENS.

    Examples:

        chat-context truncate-block context.json --max-tokens 8000 -o truncated.json
    """
    console = Console()

    try:
        with open(file, encoding="utf-8") as f:
            block = ContextBlock.model_validate(json.load(f))
    except (OSError, ValueError, ValidationError) as e:
        console.print(f"[red]Error: failed to load context block: {e}[/red]")
        sys.exit(1)

    truncated = truncate_context_block(
        block,
        max_tokens,
        limits=ContextBlockLimits.from_settings(),
        estimator=TokenCounter(model or None),
    )

    table = Table(title="Context Block Truncation")
    table.add_column("Item", style="cyan")
    table.add_column("Kept", justify="right")
    table.add_column("Dropped", justify="right")
    table.add_row(
        "Files", str(len(truncated.files)), str(len(block.files) - len(truncated.files))
    )
    table.add_row(
        "Results",
        str(len(truncated.results)),
        str(len(block.results) - len(truncated.results)),
    )
    table.add_row("Archived refs", str(len(truncated.archived_refs)), "0")
    console.print(table)
    console.print(f"Tokens used: {truncated.total_tokens} / {max_tokens}")

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(truncated.model_dump_json(indent=2))
        console.print(f"[green]Wrote truncated block to {output}[/green]")
