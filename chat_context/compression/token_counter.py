# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Token estimation for context compaction.

The compaction engine treats the token estimator as a collaborator: anything
implementing ``TokenEstimator`` can be passed in. ``TokenCounter`` is the
default implementation, using tiktoken for OpenAI models and character-based
estimation for other providers.
"""

import base64
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Iterable

import tiktoken
from langchain_core.messages import BaseMessage

from chat_context.messages.types import content_to_text

logger = logging.getLogger(__name__)

# Head/tail split used when truncating content
HEAD_RATIO = 0.7
TRUNCATION_SEPARATOR = "\n\n[... truncated ...]\n\n"
SEPARATOR_TOKENS = 5


@lru_cache(maxsize=4)
def _get_encoding(encoding_name: str = "cl100k_base"):
    """Get tiktoken encoding with caching.

    Returns:
        tiktoken.Encoding instance, or None when the encoding cannot be loaded
    """
    try:
        return tiktoken.get_encoding(encoding_name)
    except Exception as e:
        logger.warning(f"Failed to load tiktoken encoding: {e}")
        return None


class TokenEstimator(ABC):
    """Counts tokens for content values and truncates text to a token target."""

    @abstractmethod
    def count_content(self, content: Any) -> int:
        """Return the approximate token count of a message content value."""
        ...

    @abstractmethod
    def truncate_text(self, text: str, target_tokens: int) -> str:
        """Shrink text to at most ``target_tokens``, keeping its head and tail."""
        ...


class TokenCounter(TokenEstimator):
    """Token counter for various model providers.

    Supports accurate counting for OpenAI models using tiktoken,
    and character-based estimation for other providers.

    Usage:
        counter = TokenCounter(model_name="gpt-4o")
        token_count = counter.count_content("Hello")
    """

    # Average characters per token for different providers
    CHARS_PER_TOKEN: dict[str, float] = {
        "openai": 4.0,
        "anthropic": 3.5,
        "google": 4.0,
        "default": 4.0,
    }

    # Claude: ~1600 tokens for a standard image
    # GPT-4V: ~85 tokens for low detail, ~765 for high detail
    TOKENS_PER_IMAGE: dict[str, int] = {
        "openai": 765,
        "anthropic": 1600,
        "google": 1000,
        "default": 1000,
    }

    def __init__(self, model_name: str | None = None):
        self.model_name = (model_name or "gpt-4").lower()
        self.provider = self._detect_provider()
        self._encoding = None

        if self.provider == "openai":
            self._encoding = _get_encoding("cl100k_base")

    def _detect_provider(self) -> str:
        if self.model_name.startswith(("gpt-", "o1", "o3", "chatgpt-")):
            return "openai"
        elif self.model_name.startswith("claude-"):
            return "anthropic"
        elif self.model_name.startswith("gemini-"):
            return "google"
        return "default"

    @property
    def chars_per_token(self) -> float:
        return self.CHARS_PER_TOKEN.get(self.provider, self.CHARS_PER_TOKEN["default"])

    def count_text(self, text: str) -> int:
        """Count tokens in a text string."""
        if not text:
            return 0

        if self._encoding:
            try:
                return len(self._encoding.encode(text, disallowed_special=()))
            except Exception:
                pass

        return int(len(text) / self.chars_per_token)

    def count_image(self, image_data: dict[str, Any] | str) -> int:
        """Count tokens for an image.

        Args:
            image_data: Image data (base64 string or dict with image_url)

        Returns:
            Estimated token count for the image
        """
        tokens_per_image = self.TOKENS_PER_IMAGE.get(
            self.provider, self.TOKENS_PER_IMAGE["default"]
        )

        base64_part = None
        if isinstance(image_data, str):
            base64_part = image_data
        elif isinstance(image_data, dict):
            url = image_data.get("image_url", {})
            if isinstance(url, dict):
                url_str = url.get("url", "")
                if url_str.startswith("data:") and "," in url_str:
                    base64_part = url_str.split(",", 1)[1]

        if base64_part:
            try:
                # Larger images use more tokens
                if len(base64.b64decode(base64_part)) > 1024 * 1024:
                    return tokens_per_image * 2
            except Exception:
                pass

        return tokens_per_image

    def count_content(self, content: Any) -> int:
        """Count tokens in a message content value (text or multimodal parts)."""
        if content is None:
            return 0
        if isinstance(content, str):
            return self.count_text(content)
        if isinstance(content, list):
            tokens = 0
            for part in content:
                if isinstance(part, str):
                    tokens += self.count_text(part)
                elif isinstance(part, dict):
                    part_type = part.get("type", "")
                    if part_type == "text":
                        tokens += self.count_text(part.get("text", ""))
                    elif part_type in ("image_url", "image"):
                        tokens += self.count_image(part)
                    else:
                        tokens += self.count_text(content_to_text(part))
            return tokens
        return self.count_text(content_to_text(content))

    def truncate_text(self, text: str, target_tokens: int) -> str:
        """Truncate text keeping the head (70%) and tail (30%), removing the middle."""
        if not text or self.count_text(text) <= target_tokens:
            return text

        separator_tokens = max(SEPARATOR_TOKENS, self.count_text(TRUNCATION_SEPARATOR) + 1)
        available = max(0, target_tokens - separator_tokens)
        head_tokens = int(available * HEAD_RATIO)
        tail_tokens = available - head_tokens

        if self._encoding:
            try:
                tokens = self._encoding.encode(text, disallowed_special=())
                head = self._encoding.decode(tokens[:head_tokens])
                tail = self._encoding.decode(tokens[-tail_tokens:]) if tail_tokens > 0 else ""
                return f"{head}{TRUNCATION_SEPARATOR}{tail}"
            except Exception:
                pass

        head_chars = int(head_tokens * self.chars_per_token)
        tail_chars = int(tail_tokens * self.chars_per_token)
        tail = text[-tail_chars:] if tail_chars > 0 else ""
        return f"{text[:head_chars]}{TRUNCATION_SEPARATOR}{tail}"


def safe_count_tokens(estimator: TokenEstimator, content: Any) -> int:
    """Count tokens, treating any estimator failure as zero cost."""
    try:
        tokens = estimator.count_content(content)
    except Exception as e:
        logger.debug("[TokenCounter] Estimator failed, counting as 0 tokens: %s", e)
        return 0
    if not isinstance(tokens, int) or isinstance(tokens, bool) or tokens < 0:
        logger.debug("[TokenCounter] Estimator returned invalid count %r, counting as 0", tokens)
        return 0
    return tokens


def count_message_tokens(estimator: TokenEstimator, message: BaseMessage) -> int:
    return safe_count_tokens(estimator, message.content)


def count_messages_tokens(
    estimator: TokenEstimator, messages: Iterable[BaseMessage]
) -> int:
    return sum(count_message_tokens(estimator, msg) for msg in messages)
