# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

from typing import Optional


class ChatContextError(Exception):
    """Base exception for chat_context"""


class ArchiveStoreError(ChatContextError):
    """Archive store could not persist or serve content"""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
