"""
Test suite for TokenEstimator.

Tests the character-ratio fallback, one-time tokenizer loading under
concurrency, permanent fallback after a failed load, and truncation.

System role: Verification of token counting shared by chunking and embedding
"""

import asyncio
import threading

import pytest

from content_ingestion.core.text.token_estimator import TokenEstimator


class FakeEncoding:
    """Encoding that treats every whitespace-separated word as one token."""

    def encode(self, text: str, disallowed_special=()) -> list[str]:
        return text.split(" ")

    def decode(self, tokens: list[str]) -> str:
        return " ".join(tokens)


class TestTokenEstimatorFallback:
    """Test suite for the character-ratio estimate."""

    def test_estimate_should_round_up(self) -> None:
        """Test estimate is ceil(len / chars_per_token)."""
        estimator = TokenEstimator(enabled=False)

        assert estimator.estimate("") == 0
        assert estimator.estimate("abc") == 1
        assert estimator.estimate("abcd") == 1
        assert estimator.estimate("abcde") == 2

    @pytest.mark.asyncio
    async def test_count_should_use_estimate_when_disabled(self) -> None:
        """Test a disabled tokenizer never loads and counts by ratio."""
        loader_calls = []
        estimator = TokenEstimator(enabled=False, loader=lambda name: loader_calls.append(name))

        assert await estimator.count("x" * 41) == 11
        assert estimator.uses_fallback is True
        assert loader_calls == []

    @pytest.mark.asyncio
    async def test_count_should_return_zero_for_empty_text(self) -> None:
        """Test empty text has no tokens."""
        estimator = TokenEstimator(enabled=False)

        assert await estimator.count("") == 0

    def test_init_should_reject_non_positive_ratio(self) -> None:
        """Test chars_per_token must be positive."""
        with pytest.raises(ValueError):
            TokenEstimator(chars_per_token=0)


class TestTokenEstimatorLoading:
    """Test suite for lazy tokenizer loading."""

    @pytest.mark.asyncio
    async def test_concurrent_counts_should_load_encoding_once(self) -> None:
        """Test many concurrent first calls share a single load."""
        calls = []
        lock = threading.Lock()

        def loader(name: str) -> FakeEncoding:
            with lock:
                calls.append(name)
            return FakeEncoding()

        estimator = TokenEstimator(encoding_name="fake", loader=loader)

        counts = await asyncio.gather(*(estimator.count("one two three") for _ in range(20)))

        assert counts == [3] * 20
        assert calls == ["fake"]
        assert estimator.uses_fallback is False

    @pytest.mark.asyncio
    async def test_failed_load_should_fall_back_permanently(self) -> None:
        """Test a loader error switches to the ratio estimate and is not retried."""
        calls = []

        def loader(name: str):
            calls.append(name)
            raise OSError("encoding download failed")

        estimator = TokenEstimator(loader=loader)

        first = await estimator.count("x" * 8)
        second = await estimator.count("x" * 9)

        assert first == 2
        assert second == 3
        assert estimator.uses_fallback is True
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_exceeds_limit_should_compare_token_count(self) -> None:
        """Test exceeds_limit is strict."""
        estimator = TokenEstimator(loader=lambda name: FakeEncoding())

        assert await estimator.exceeds_limit("a b c", 2) is True
        assert await estimator.exceeds_limit("a b", 2) is False


class TestTruncateToLimit:
    """Test suite for truncate_to_limit()."""

    @pytest.mark.asyncio
    async def test_truncate_should_keep_text_within_budget(self) -> None:
        """Test text already within the budget is unchanged."""
        estimator = TokenEstimator(loader=lambda name: FakeEncoding())

        assert await estimator.truncate_to_limit("a b c", 5) == "a b c"

    @pytest.mark.asyncio
    async def test_truncate_should_cut_to_token_prefix(self) -> None:
        """Test over-budget text is cut to the first max_tokens tokens."""
        estimator = TokenEstimator(loader=lambda name: FakeEncoding())

        assert await estimator.truncate_to_limit("a b c d e", 2) == "a b"

    @pytest.mark.asyncio
    async def test_truncate_should_use_character_ratio_in_fallback(self) -> None:
        """Test fallback truncation keeps max_tokens * chars_per_token characters."""
        estimator = TokenEstimator(enabled=False)

        assert await estimator.truncate_to_limit("x" * 30, 5) == "x" * 20

    @pytest.mark.asyncio
    async def test_truncate_should_return_empty_for_zero_budget(self) -> None:
        """Test a zero budget yields empty text."""
        estimator = TokenEstimator(enabled=False)

        assert await estimator.truncate_to_limit("anything", 0) == ""
