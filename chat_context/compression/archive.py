# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Archival of evicted messages and the reference message replacing them.

Archived messages are replaced by a single AIMessage pointing at the
archive. An AIMessage (instead of a HumanMessage) keeps tool_use/tool_result
pairing valid when archived tool calls are replaced:

    Before: [Human1][AI(tool_call:A)][Tool(A)][Human2]
    After:  [Human1][AI("Earlier conversation archived...")][Human2]
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from langchain_core.messages import AIMessage, BaseMessage

from chat_context.messages.types import (
    MessageKind,
    content_to_text,
    message_kind,
    tool_call_names,
)
from chat_context.storage.interfaces import (
    ArchiveLocator,
    ArchiveRequest,
    ArchiveStoreInterface,
)

from .config import CompactionConfig, ModelContextConfig
from .token_counter import TokenCounter, TokenEstimator

logger = logging.getLogger(__name__)


@dataclass
class ArchiveContext:
    """Caller identity, routing and collaborators needed for compaction.

    Attributes:
        conversation_id: Conversation the archived content belongs to
        store: Archive store receiving evicted messages
        estimator: Token estimator
        execution_id: Optional id of the agent run producing the archive
        logger: Optional logger overriding the module logger
        model: Optional model capability descriptor
        config: Policy constants
    """

    conversation_id: str
    store: ArchiveStoreInterface
    estimator: TokenEstimator = field(default_factory=TokenCounter)
    execution_id: Optional[str] = None
    logger: Optional[logging.Logger] = None
    model: Optional[ModelContextConfig] = None
    config: CompactionConfig = field(default_factory=CompactionConfig.from_settings)

    @property
    def log(self) -> logging.Logger:
        return self.logger or logger

    @property
    def cache_min_tokens(self) -> int:
        """Minimum cache prefix size; 0 when the model does not cache prompts."""
        if self.model is not None and not self.model.supports_prompt_cache:
            return 0
        return self.config.cache_min_tokens


def serialize_messages_for_archive(messages: list[BaseMessage]) -> str:
    """Serialize messages to a readable transcript for file storage."""
    blocks = []
    for idx, msg in enumerate(messages):
        kind = message_kind(msg)
        content = content_to_text(msg.content)

        tool_call_id_str = ""
        if kind is MessageKind.TOOL and msg.tool_call_id:
            tool_call_id_str = f" (tool_call_id: {msg.tool_call_id})"

        names = tool_call_names(msg)
        tool_calls_str = f"\n[Tool Calls: {', '.join(names)}]" if names else ""

        blocks.append(
            f"--- Message {idx + 1} [{kind.value}]{tool_call_id_str} ---\n{content}{tool_calls_str}"
        )

    return "\n\n".join(blocks)


def generate_history_summary(messages: list[BaseMessage]) -> str:
    """Generate a brief summary of archived messages."""
    message_types: dict[str, int] = {}
    tools_used: list[str] = []

    for msg in messages:
        kind = message_kind(msg).value
        message_types[kind] = message_types.get(kind, 0) + 1
        for name in tool_call_names(msg):
            if name not in tools_used:
                tools_used.append(name)

    type_summary = ", ".join(f"{count} {kind}" for kind, count in message_types.items())
    tool_summary = f"\nTools used: {', '.join(tools_used)}" if tools_used else ""

    return f"{type_summary} messages{tool_summary}"


def create_history_reference_message(
    locator: ArchiveLocator, archived_count: int, summary: str
) -> AIMessage:
    """Create the AIMessage that replaces archived messages."""
    return AIMessage(
        content=(
            f"[Earlier conversation ({archived_count} messages) has been archived "
            f"to file: {locator}]\n\n"
            f"Summary: {summary}\n\n"
            "You can use read_file tool to retrieve details if needed."
        )
    )


def build_compressed_history(
    messages: list[BaseMessage],
    archived_indices: frozenset[int],
    reference_message: BaseMessage,
) -> list[BaseMessage]:
    """Insert the reference message at the first archived index and drop the rest."""
    compressed: list[BaseMessage] = []
    reference_inserted = False

    for i, msg in enumerate(messages):
        if i in archived_indices:
            if not reference_inserted:
                compressed.append(reference_message)
                reference_inserted = True
            continue
        compressed.append(msg)

    return compressed


async def archive_messages(
    messages: list[BaseMessage], context: ArchiveContext
) -> Optional[ArchiveLocator]:
    """Upload archived messages to the archive store.

    Returns:
        Locator of the stored transcript, or None if archival failed,
        timed out or was cancelled
    """
    try:
        content = serialize_messages_for_archive(messages)
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        request = ArchiveRequest(
            conversation_id=context.conversation_id,
            execution_id=context.execution_id,
            name=f"chat-history-{timestamp}.txt",
            content=content,
            summary=f"Archived chat history ({len(messages)} messages, {len(content)} chars)",
        )
        locator = await asyncio.wait_for(
            context.store.write_archive(request),
            timeout=context.config.archive_timeout_seconds,
        )
    except asyncio.CancelledError:
        context.log.warning(
            "[HistoryArchive] Archive upload cancelled, keeping history uncompressed: "
            "message_count=%d",
            len(messages),
        )
        return None
    except Exception as e:
        context.log.warning(
            "[HistoryArchive] Failed to upload history to archive store: %s, message_count=%d",
            e,
            len(messages),
        )
        return None

    if not locator or not str(locator):
        context.log.warning("[HistoryArchive] Archive store returned an empty locator")
        return None

    return locator
