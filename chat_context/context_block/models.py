# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Context block schemas.

A context block carries the structured retrieval material injected into the
prompt next to the conversation: uploaded files, results of earlier agent
runs, and references to content that was archived out of the live prompt.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ArchivedRefType(str, Enum):
    """Kind of content moved out of the live prompt."""

    SEARCH_RESULT = "search_result"
    CHAT_HISTORY = "chat_history"
    TOOL_OUTPUT = "tool_output"
    CONTEXT_FILE = "context_file"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArchivedRef(BaseModel):
    """Reference to archived content that can be fetched on demand."""

    type: ArchivedRefType
    source: str
    locator: str
    summary: str = ""
    archived_at: datetime = Field(default_factory=_utcnow)
    tokens_saved: int = 0
    item_count: Optional[int] = None


class ContextFileMeta(BaseModel):
    """File metadata shown to the model; content is fetched separately."""

    file_id: str
    name: str
    type: str = ""
    summary: str = ""
    variable_id: Optional[str] = None
    variable_name: Optional[str] = None


class ContextFile(ContextFileMeta):
    """File produced by an agent run, optionally with inline content."""

    content: str = ""


class AgentResult(BaseModel):
    """Result of an earlier agent run."""

    result_id: str
    title: str = ""
    content: str = ""
    output_files: List[ContextFile] = Field(default_factory=list)


class ContextBlock(BaseModel):
    """Structured context injected into the prompt."""

    files: List[ContextFileMeta] = Field(default_factory=list)
    results: List[AgentResult] = Field(default_factory=list)
    total_tokens: int = 0
    archived_refs: List[ArchivedRef] = Field(default_factory=list)
