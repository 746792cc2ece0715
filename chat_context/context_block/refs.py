# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Helpers for the archived-ref routing table of a context block."""

from typing import Optional

from .models import ArchivedRef, ArchivedRefType, ContextBlock


def add_archived_ref(
    block: ContextBlock,
    type: ArchivedRefType,
    source: str,
    locator: str,
    summary: str = "",
    tokens_saved: int = 0,
    item_count: Optional[int] = None,
) -> ContextBlock:
    """Return a copy of the block with a new ref stamped with the current time."""
    ref = ArchivedRef(
        type=type,
        source=source,
        locator=locator,
        summary=summary,
        tokens_saved=tokens_saved,
        item_count=item_count,
    )
    return block.model_copy(update={"archived_refs": [*block.archived_refs, ref]})


def get_archived_refs_by_type(
    block: ContextBlock, type: ArchivedRefType
) -> list[ArchivedRef]:
    return [ref for ref in block.archived_refs if ref.type == type]


def get_archived_refs_by_source(block: ContextBlock, source: str) -> list[ArchivedRef]:
    return [ref for ref in block.archived_refs if ref.source == source]
