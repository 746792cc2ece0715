# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Compact command - Run agent-loop compaction on a JSON message list.
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from chat_context.compression import (
    ArchiveContext,
    CompactionConfig,
    TokenCounter,
    apply_agent_loop_caching,
    compress_agent_loop_messages,
    get_model_context_config,
)
from chat_context.compression.token_counter import count_messages_tokens
from chat_context.core.exceptions import ArchiveStoreError
from chat_context.core.logging import set_log_context
from chat_context.messages import messages_from_dicts, messages_to_dicts
from chat_context.storage import create_archive_store_from_settings

logger = logging.getLogger(__name__)


@click.command("compact")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--model", "-m", default="", help="Model id used for limits and token counting")
@click.option(
    "--context-limit",
    type=int,
    default=None,
    help="Context window in tokens (defaults to the model's limit)",
)
@click.option(
    "--reserved-output",
    type=int,
    default=None,
    help="Tokens reserved for the reply (defaults to the model's output limit)",
)
@click.option(
    "--extra-tokens",
    type=int,
    default=0,
    help="Tokens used outside the messages (tool schemas, etc.)",
)
@click.option("--conversation-id", default="cli", help="Conversation id for the archive")
@click.option("--cache/--no-cache", default=False, help="Mark prompt cache breakpoints")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the compacted message list to this file",
)
@click.option("--show-archive", is_flag=True, help="Print the archived transcript")
def compact(
    file: str,
    model: str,
    context_limit: Optional[int],
    reserved_output: Optional[int],
    extra_tokens: int,
    conversation_id: str,
    cache: bool,
    output: Optional[str],
    show_archive: bool,
):
    """Compact a JSON message list to fit a context window.

    FILE holds a list of {"role", "content", "tool_calls"?, "tool_call_id"?}
    objects. Archived messages go to the store selected by ARCHIVE_STORAGE_TYPE.

    Examples:

        # Compact for a known model
        chat-context compact conversation.json --model claude-3-5-sonnet

        # Compact to an explicit budget and save the result
        chat-context compact conversation.json --context-limit 16000 \\
            --reserved-output 2000 -o compacted.json
    """
    console = Console()

    try:
        with open(file, encoding="utf-8") as f:
            messages = messages_from_dicts(json.load(f))
    except (OSError, ValueError, NotImplementedError) as e:
        console.print(f"[red]Error: failed to load messages: {e}[/red]")
        sys.exit(1)

    model_config = get_model_context_config(model)
    context_limit = context_limit if context_limit is not None else model_config.context_window
    reserved_output = (
        reserved_output if reserved_output is not None else model_config.output_tokens
    )

    set_log_context(conversation_id)
    try:
        store = create_archive_store_from_settings()
    except ValueError as e:
        console.print(f"[red]Error: invalid archive store settings: {e}[/red]")
        sys.exit(1)

    context = ArchiveContext(
        conversation_id=conversation_id,
        store=store,
        estimator=TokenCounter(model or None),
        model=model_config,
        config=CompactionConfig.from_settings(),
    )

    result, archived_content = asyncio.run(
        _run_compaction(
            messages,
            context,
            context_limit=context_limit,
            reserved_output=reserved_output,
            extra_tokens=extra_tokens,
            read_archive=show_archive,
        )
    )

    final_messages = result.messages
    if cache:
        final_messages = apply_agent_loop_caching(
            final_messages, model_config.supports_prompt_cache
        )

    table = Table(title="Compaction Result")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Target budget", str(context_limit - reserved_output))
    table.add_row("Messages", f"{len(messages)} -> {len(final_messages)}")
    table.add_row(
        "Tokens",
        f"{count_messages_tokens(context.estimator, messages) + extra_tokens} -> "
        f"{count_messages_tokens(context.estimator, final_messages) + extra_tokens}",
    )
    table.add_row("History archived", "yes" if result.was_compressed else "no")
    table.add_row("Archive locator", str(result.archive_locator or "-"))
    console.print(table)

    if show_archive and result.archive_locator is not None:
        console.print(f"\n[bold]Archived transcript[/bold] ({result.archive_locator.name})")
        if archived_content is None:
            console.print("[yellow]Archive could not be read back from the store[/yellow]")
        else:
            console.print(archived_content, markup=False)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(messages_to_dicts(final_messages), f, ensure_ascii=False, indent=2)
        console.print(f"[green]Wrote {len(final_messages)} messages to {output}[/green]")


async def _run_compaction(
    messages,
    context: ArchiveContext,
    context_limit: int,
    reserved_output: int,
    extra_tokens: int,
    read_archive: bool,
):
    """Compact and optionally read the archive back, then close the store."""
    store = context.store
    try:
        result = await compress_agent_loop_messages(
            messages,
            context_limit=context_limit,
            reserved_output=reserved_output,
            context=context,
            extra_reserved_tokens=extra_tokens,
        )

        archived_content = None
        if read_archive and result.archive_locator is not None:
            try:
                archived_content = await store.read_archive(result.archive_locator.locator_id)
            except ArchiveStoreError as e:
                logger.warning("[CLI] Failed to read archive %s: %s", result.archive_locator, e)

        return result, archived_content
    finally:
        await store.close()
