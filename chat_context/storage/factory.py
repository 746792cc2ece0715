# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
Archive store factory.

Provides factory functions to create archive stores.
"""

from enum import Enum

from chat_context.storage.interfaces import ArchiveStoreInterface


class StorageType(str, Enum):
    """Storage type enumeration."""

    MEMORY = "memory"
    REMOTE = "remote"


def create_archive_store(
    storage_type: StorageType | str,
    **kwargs,
) -> ArchiveStoreInterface:
    """
    Create an archive store.

    Args:
        storage_type: Type of storage (memory, remote)
        **kwargs: Additional arguments for the store
            - For REMOTE:
                - base_url: File service address (required)
                - auth_token: Bearer token (optional)
                - timeout: Request timeout in seconds (default: 30.0)

    Returns:
        ArchiveStoreInterface instance

    Raises:
        ValueError: If storage_type is unknown or required arguments are missing
    """
    if isinstance(storage_type, str):
        try:
            storage_type = StorageType(storage_type.lower())
        except ValueError:
            raise ValueError(
                f"Unknown storage type: {storage_type}. "
                f"Available types: {', '.join(t.value for t in StorageType)}"
            )

    if storage_type == StorageType.MEMORY:
        from chat_context.storage.memory import MemoryArchiveStore

        return MemoryArchiveStore()

    elif storage_type == StorageType.REMOTE:
        from chat_context.storage.remote import RemoteArchiveStore

        base_url = kwargs.get("base_url")
        if not base_url:
            raise ValueError("base_url is required for remote storage")

        return RemoteArchiveStore(
            base_url,
            auth_token=kwargs.get("auth_token", ""),
            timeout=kwargs.get("timeout", 30.0),
        )

    else:
        raise ValueError(f"Unknown storage type: {storage_type}")


def create_archive_store_from_settings() -> ArchiveStoreInterface:
    """Create the archive store configured in settings."""
    from chat_context.core.config import settings

    return create_archive_store(
        settings.ARCHIVE_STORAGE_TYPE,
        base_url=settings.ARCHIVE_REMOTE_URL,
        auth_token=settings.ARCHIVE_REMOTE_TOKEN,
        timeout=settings.ARCHIVE_TIMEOUT_SECONDS,
    )
