"""
Token counting for chunk sizing and usage accounting.

Uses a tiktoken encoding when it can be loaded and falls back permanently
to a characters-per-token ratio when it cannot.

Dependencies: tiktoken, asyncio
System role: Shared size measure for the chunker and embedding batcher
"""

import asyncio
import logging
import math
from typing import Any, Callable

import tiktoken

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


class TokenEstimator:
    """Count tokens with a lazily loaded tokenizer.

    The encoding is loaded off the event loop on first use. Concurrent first
    callers all await the same initialization task, so the encoding is
    loaded at most once per estimator.
    """

    def __init__(
        self,
        encoding_name: str = "cl100k_base",
        chars_per_token: int = CHARS_PER_TOKEN,
        enabled: bool = True,
        loader: Callable[[str], Any] | None = None,
    ) -> None:
        """
        Initialize the estimator without loading the tokenizer.

        Args:
            encoding_name: tiktoken encoding name
            chars_per_token: Ratio used when no tokenizer is available
            enabled: When False the ratio estimate is always used
            loader: Callable returning an encoding for a name (defaults to tiktoken)

        Raises:
            ValueError: When chars_per_token is not positive
        """
        if chars_per_token <= 0:
            raise ValueError("chars_per_token must be positive")

        self._encoding_name = encoding_name
        self._chars_per_token = chars_per_token
        self._loader = loader or tiktoken.get_encoding
        self._encoding: Any = None
        self._fallback = not enabled
        self._init_task: asyncio.Task | None = None

    @property
    def uses_fallback(self) -> bool:
        """True once the estimator has settled on the character ratio."""
        return self._fallback

    async def _ensure_encoding(self) -> Any:
        if self._encoding is not None or self._fallback:
            return self._encoding
        if self._init_task is None:
            self._init_task = asyncio.create_task(self._load_encoding())
        return await asyncio.shield(self._init_task)

    async def _load_encoding(self) -> Any:
        try:
            encoding = await asyncio.to_thread(self._loader, self._encoding_name)
        except Exception as e:
            logger.warning(
                f"{__name__}:_load_encoding - Tokenizer unavailable, using character estimate",
                extra={"encoding": self._encoding_name, "error_type": type(e).__name__},
            )
            self._fallback = True
            return None

        self._encoding = encoding
        logger.info(
            f"{__name__}:_load_encoding - Tokenizer loaded",
            extra={"encoding": self._encoding_name},
        )
        return encoding

    def estimate(self, text: str) -> int:
        """
        Estimate token count from character length only.

        Args:
            text: Input text

        Returns:
            int: ceil(len(text) / chars_per_token)
        """
        if not text:
            return 0
        return math.ceil(len(text) / self._chars_per_token)

    def estimate_chars_from_tokens(self, tokens: int) -> int:
        """Approximate the number of characters covered by a token budget."""
        return max(tokens, 0) * self._chars_per_token

    async def count(self, text: str) -> int:
        """
        Count tokens in text.

        Args:
            text: Input text

        Returns:
            int: Exact token count, or the character-ratio estimate in fallback mode
        """
        if not text:
            return 0
        encoding = await self._ensure_encoding()
        if encoding is None:
            return self.estimate(text)
        return len(encoding.encode(text, disallowed_special=()))

    async def exceeds_limit(self, text: str, max_tokens: int) -> bool:
        """Return True when text holds more than max_tokens tokens."""
        return await self.count(text) > max_tokens

    async def truncate_to_limit(self, text: str, max_tokens: int) -> str:
        """
        Truncate text so it fits in max_tokens.

        Args:
            text: Input text
            max_tokens: Token budget

        Returns:
            str: Original text when within budget, otherwise its longest fitting prefix
        """
        if not text or max_tokens <= 0:
            return ""

        encoding = await self._ensure_encoding()
        if encoding is None:
            max_chars = self.estimate_chars_from_tokens(max_tokens)
            return text if len(text) <= max_chars else text[:max_chars]

        tokens = encoding.encode(text, disallowed_special=())
        if len(tokens) <= max_tokens:
            return text
        return encoding.decode(tokens[:max_tokens])
