"""
Batched, rate-limited embedding generation.

Embeds chunk texts in fixed-size batches through the configured provider.
Every provider call first takes a token from the shared rate limiter, and
transient provider failures are retried with exponential backoff until a
wall-clock ceiling. Validation failures are never retried.

Dependencies: tenacity, content_ingestion.core.document_processing.embedding_provider
System role: Third stage of the ingestion pipeline
"""

import asyncio
import logging
from typing import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_delay,
    wait_exponential,
)

from content_ingestion.core.document_processing.embedding_provider import EmbeddingProvider
from content_ingestion.core.document_processing.models import EmbeddingResult
from content_ingestion.core.document_processing.rate_limiter import TokenBucketRateLimiter
from content_ingestion.core.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Awaitable[None] | None]


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, ExternalServiceError) and exc.transient


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"{__name__}:embed - Retry {retry_state.attempt_number} after transient failure",
        extra={
            "error_type": type(exc).__name__ if exc else None,
            "next_wait_seconds": retry_state.next_action.sleep if retry_state.next_action else None,
        },
    )


class EmbeddingTask:
    """Generate embeddings in rate-limited batches."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        rate_limiter: TokenBucketRateLimiter,
        batch_size: int = 16,
        dimension: int = 1024,
        retry_max_elapsed_seconds: float = 300.0,
        retry_initial_seconds: float = 1.0,
        retry_max_seconds: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize embedding task.

        Args:
            provider: Embedding provider
            rate_limiter: Limiter shared by all ingestions in the process
            batch_size: Maximum texts per provider call
            dimension: Expected vector dimension
            retry_max_elapsed_seconds: Stop retrying transient errors after this long
            retry_initial_seconds: First backoff delay
            retry_max_seconds: Backoff ceiling
            sleep: Coroutine function used between retries

        Raises:
            ValueError: When batch_size is not positive
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

        self._provider = provider
        self._rate_limiter = rate_limiter
        self._batch_size = batch_size
        self._dimension = dimension
        self._retry_max_elapsed = retry_max_elapsed_seconds
        self._retry_initial = retry_initial_seconds
        self._retry_max = retry_max_seconds
        self._sleep = sleep

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_delay(self._retry_max_elapsed),
            wait=wait_exponential(multiplier=self._retry_initial, max=self._retry_max),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )

    async def embed(self, texts: list[str]) -> EmbeddingResult:
        """
        Embed one batch of texts.

        Args:
            texts: Between 1 and batch_size texts

        Returns:
            EmbeddingResult: One vector per text plus usage counters

        Raises:
            ValidationError: When the batch is empty, too large, or rejected
            ExternalServiceError: When transient failures outlast the retry ceiling
        """
        if not texts:
            raise ValidationError("Cannot embed an empty batch", field="texts")
        if len(texts) > self._batch_size:
            raise ValidationError(
                f"Batch of {len(texts)} texts exceeds the maximum of {self._batch_size}",
                field="texts",
            )

        async for attempt in self._retrying():
            with attempt:
                await self._rate_limiter.acquire()
                result = await self._provider.embed(texts)

        if len(result.embeddings) != len(texts):
            raise ValidationError(
                f"Provider returned {len(result.embeddings)} vectors for {len(texts)} texts",
                field="embeddings",
            )
        for vector in result.embeddings:
            if len(vector) != self._dimension:
                raise ValidationError(
                    f"Provider returned a {len(vector)}-dimensional vector, "
                    f"expected {self._dimension}",
                    field="embeddings",
                )
        return result

    async def embed_all(
        self,
        texts: list[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[list[float]]:
        """
        Embed any number of texts, one batch at a time.

        Args:
            texts: Texts to embed
            on_progress: Called with (completed, total) after each batch

        Returns:
            list[list[float]]: Vectors in input order
        """
        vectors: list[list[float]] = []
        total = len(texts)
        input_tokens = 0

        for start in range(0, total, self._batch_size):
            batch = texts[start:start + self._batch_size]
            result = await self.embed(batch)
            vectors.extend(result.embeddings)
            input_tokens += result.usage.input_tokens

            if on_progress is not None:
                outcome = on_progress(len(vectors), total)
                if asyncio.iscoroutine(outcome):
                    await outcome

        logger.info(
            f"{__name__}:embed_all - Embedded {total} texts",
            extra={"text_count": total, "input_tokens": input_tokens},
        )
        return vectors
