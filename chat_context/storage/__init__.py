# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Archive storage for evicted conversation content."""

from chat_context.storage.factory import (
    StorageType,
    create_archive_store,
    create_archive_store_from_settings,
)
from chat_context.storage.interfaces import (
    ArchiveLocator,
    ArchiveRequest,
    ArchiveStoreInterface,
)
from chat_context.storage.memory import MemoryArchiveStore
from chat_context.storage.remote import RemoteArchiveStore

__all__ = [
    "ArchiveLocator",
    "ArchiveRequest",
    "ArchiveStoreInterface",
    "MemoryArchiveStore",
    "RemoteArchiveStore",
    "StorageType",
    "create_archive_store",
    "create_archive_store_from_settings",
]
