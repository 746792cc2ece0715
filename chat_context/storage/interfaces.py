# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Archive store interface definitions.

History compression hands evicted messages to an archive store and keeps
only the returned locator in the live prompt. Implementations:

- MemoryArchiveStore: For CLI and testing
- RemoteArchiveStore: For calling a file/drive service over HTTP
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ArchiveRequest:
    """Content to be archived plus routing information."""

    conversation_id: str
    name: str
    content: str
    execution_id: Optional[str] = None
    summary: str = ""
    content_type: str = "text/plain"
    source: str = "agent"
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "conversation_id": self.conversation_id,
            "execution_id": self.execution_id,
            "name": self.name,
            "content": self.content,
            "summary": self.summary,
            "content_type": self.content_type,
            "source": self.source,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class ArchiveLocator:
    """Opaque handle to archived content."""

    locator_id: str
    name: str = ""
    uri: Optional[str] = None

    def __str__(self) -> str:
        return self.locator_id


class ArchiveStoreInterface(ABC):
    """
    Archive storage interface.

    Methods:
        write_archive: Durably store content and return its locator
        read_archive: Fetch archived content by locator id
        close: Release resources held by the store
    """

    @abstractmethod
    async def write_archive(self, request: ArchiveRequest) -> ArchiveLocator:
        """
        Store archived content.

        Args:
            request: Content and routing information

        Returns:
            Locator of the stored content

        Raises:
            ArchiveStoreError: If the content could not be stored
        """
        pass

    @abstractmethod
    async def read_archive(self, locator_id: str) -> Optional[str]:
        """
        Read archived content.

        Args:
            locator_id: Locator id returned by write_archive

        Returns:
            Archived content, or None if not found
        """
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
