# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Memory-based archive store.

Provides in-memory storage for CLI and testing scenarios.
Data is lost when the process exits.
"""

from datetime import datetime, timezone
from typing import Optional

from chat_context.storage.interfaces import (
    ArchiveLocator,
    ArchiveRequest,
    ArchiveStoreInterface,
)


class MemoryArchiveStore(ArchiveStoreInterface):
    """In-memory archive store implementation."""

    def __init__(self):
        self._archives: dict[str, ArchiveRequest] = {}
        self._created_at: dict[str, str] = {}
        self._archive_counter = 0

    async def write_archive(self, request: ArchiveRequest) -> ArchiveLocator:
        """Store archived content under a sequential id."""
        self._archive_counter += 1
        locator_id = f"archive-{self._archive_counter}"
        self._archives[locator_id] = request
        self._created_at[locator_id] = datetime.now(timezone.utc).isoformat()
        return ArchiveLocator(
            locator_id=locator_id,
            name=request.name,
            uri=f"memory://{request.conversation_id}/{locator_id}",
        )

    async def read_archive(self, locator_id: str) -> Optional[str]:
        """Read archived content."""
        request = self._archives.get(locator_id)
        return request.content if request else None

    def get_request(self, locator_id: str) -> Optional[ArchiveRequest]:
        """Return the full archive request (used by the CLI and tests)."""
        return self._archives.get(locator_id)

    def list_archives(self, conversation_id: Optional[str] = None) -> list[str]:
        """List archive ids, optionally filtered by conversation."""
        return [
            locator_id
            for locator_id, request in self._archives.items()
            if conversation_id is None or request.conversation_id == conversation_id
        ]
