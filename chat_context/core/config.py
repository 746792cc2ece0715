# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # History compression
    CONTEXT_COMPRESSION_ENABLED: bool = True
    # Compress when remaining budget drops below this share of the target budget
    CONTEXT_REMAINING_SPACE_THRESHOLD: float = 0.2
    # Share of the compressible range archived in one pass (70% archived, 30% kept)
    CONTEXT_HISTORY_COMPRESS_RATIO: float = 0.7
    # Minimum prefix size for prompt caching to be effective
    CONTEXT_CACHE_MIN_TOKENS: int = 4096
    # Messages after the system message that always belong to the cache prefix
    CONTEXT_CACHE_PREFIX_MESSAGE_COUNT: int = 2
    # Messages kept at the tail when the conversation ends with an AI turn
    CONTEXT_TAIL_RESERVE_MESSAGES: int = 2
    # Cap per tool result when compression alone is not enough
    CONTEXT_MAX_TOOL_MESSAGE_TOKENS: int = 4096

    # Context block limits
    CONTEXT_MAX_FILES: int = 100
    CONTEXT_MAX_RESULTS: int = 100
    CONTEXT_MAX_OUTPUT_FILES: int = 100
    CONTEXT_MIN_ITEM_CONTENT_TOKENS: int = 1000

    # Archive store
    ARCHIVE_STORAGE_TYPE: str = "memory"  # memory or remote
    ARCHIVE_REMOTE_URL: str = ""
    ARCHIVE_REMOTE_TOKEN: str = ""
    ARCHIVE_TIMEOUT_SECONDS: float = 30.0

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global configuration instance
settings = Settings()
