# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Logging configuration for chat_context.

Supports automatic conversation_id injection into log records via ContextVar.
"""

import logging
import os
import sys
from contextvars import ContextVar
from typing import Optional

_conversation_id: ContextVar[Optional[str]] = ContextVar(
    "chat_context_conversation_id", default=None
)


def set_log_context(conversation_id: Optional[str]) -> None:
    """Bind a conversation id to log records emitted in the current context."""
    _conversation_id.set(conversation_id)


def get_conversation_id() -> Optional[str]:
    return _conversation_id.get()


class RelativePathFormatter(logging.Formatter):
    """Custom formatter that shows relative path instead of full pathname."""

    def __init__(self, fmt=None, datefmt=None, base_path=None):
        super().__init__(fmt, datefmt)
        if base_path is None:
            # Go up from chat_context/core to the project root
            self.base_path = os.path.dirname(
                os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
            )
        else:
            self.base_path = base_path

    def format(self, record):
        if record.pathname.startswith(self.base_path):
            record.relativepath = record.pathname[len(self.base_path) + 1 :]
        else:
            record.relativepath = record.pathname
        return super().format(record)


class ConversationIdFilter(logging.Filter):
    """
    A logging filter that adds conversation_id to log records.
    The value comes from the ContextVar set by set_log_context().
    """

    def filter(self, record: logging.LogRecord) -> bool:
        conversation_id = get_conversation_id()
        record.conversation_id = conversation_id if conversation_id else "-"
        return True


def setup_logging(level: Optional[str] = None) -> None:
    """Configure logging format for chat_context."""
    from chat_context.core.config import settings

    log_format = "%(asctime)s %(levelname)-4s [%(conversation_id)s] [%(relativepath)s:%(lineno)d] : %(message)s"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(RelativePathFormatter(log_format, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(ConversationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel((level or settings.LOG_LEVEL).upper())
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Suppress verbose httpx/httpcore request logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
