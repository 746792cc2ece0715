# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for chat_context tests."""

from typing import Optional

import pytest
from builders import (
    CharTokenEstimator,
    FailingArchiveStore,
    ai,
    ai_call,
    human,
    system,
    tool,
)
from langchain_core.messages import BaseMessage

from chat_context.compression.archive import ArchiveContext
from chat_context.compression.config import CompactionConfig
from chat_context.storage.interfaces import ArchiveStoreInterface
from chat_context.storage.memory import MemoryArchiveStore


@pytest.fixture
def estimator() -> CharTokenEstimator:
    return CharTokenEstimator()


@pytest.fixture
def memory_store() -> MemoryArchiveStore:
    return MemoryArchiveStore()


@pytest.fixture
def failing_store() -> FailingArchiveStore:
    return FailingArchiveStore()


@pytest.fixture
def make_context(estimator, memory_store):
    """Factory for ArchiveContext with a deterministic estimator."""

    def _make(store: Optional[ArchiveStoreInterface] = None, **config_overrides):
        return ArchiveContext(
            conversation_id="conv-1",
            execution_id="exec-1",
            store=store or memory_store,
            estimator=estimator,
            config=CompactionConfig(**config_overrides),
        )

    return _make


@pytest.fixture
def scenario_messages() -> list[BaseMessage]:
    """Ten-message agent loop totalling 16000 tokens.

    The first three messages (5250 tokens) form the cache prefix; the
    5000 + 5000 tool pair at indices 6-7 is the newest large unit.
    """
    return [
        system(2750),
        human(1500),
        ai(1000),
        human(100),
        ai_call("c1", 200),
        tool("c1", 300),
        ai_call("c2", 5000, "read_file"),
        tool("c2", 5000, "read_file"),
        ai(100),
        human(50),
    ]
