"""
Test suite for ChunkingTask.

Tests lossless reconstruction, token bounds, overlap, separator
preferences (including abbreviations), hard splitting and capacity.
Uses the character-ratio estimator (four characters per token) so
counts are deterministic.

System role: Verification of the chunking stage
"""

import pytest

from content_ingestion.core.document_processing.tasks import ChunkingTask
from content_ingestion.core.exceptions import CapacityError
from content_ingestion.core.text.token_estimator import TokenEstimator


@pytest.fixture
def chunker(token_estimator: TokenEstimator) -> ChunkingTask:
    """Provide a chunker with small chunks."""
    return ChunkingTask(token_estimator, target_tokens=100, overlap_tokens=20, max_chunks=50)


class TestChunkReconstruction:
    """Test suite for lossless chunking."""

    @pytest.mark.asyncio
    async def test_bodies_should_reconstruct_input(self, chunker: ChunkingTask, sample_text: str) -> None:
        """Test concatenating chunk bodies reproduces the text exactly."""
        chunks = await chunker.chunk(sample_text)

        assert len(chunks) > 1
        assert "".join(chunk.body for chunk in chunks) == sample_text

    @pytest.mark.asyncio
    async def test_positions_should_be_contiguous(self, chunker: ChunkingTask, sample_text: str) -> None:
        """Test positions run 0..n-1 in order."""
        chunks = await chunker.chunk(sample_text)

        assert [chunk.position for chunk in chunks] == list(range(len(chunks)))

    @pytest.mark.asyncio
    async def test_offsets_should_locate_bodies(self, chunker: ChunkingTask, sample_text: str) -> None:
        """Test start/end offsets slice each body out of the source text."""
        chunks = await chunker.chunk(sample_text)

        for chunk in chunks:
            assert sample_text[chunk.start_offset:chunk.end_offset] == chunk.body
        assert chunks[0].start_offset == 0
        assert chunks[-1].end_offset == len(sample_text)

    @pytest.mark.asyncio
    async def test_token_counts_should_respect_target(
        self, chunker: ChunkingTask, sample_text: str, token_estimator: TokenEstimator
    ) -> None:
        """Test every chunk, overlap included, fits the target."""
        chunks = await chunker.chunk(sample_text)

        for chunk in chunks:
            assert chunk.token_count <= 100
            assert chunk.token_count == await token_estimator.count(chunk.text)


class TestChunkOverlap:
    """Test suite for overlap between neighbouring chunks."""

    @pytest.mark.asyncio
    async def test_first_chunk_should_have_no_overlap(self, chunker: ChunkingTask, sample_text: str) -> None:
        """Test the first chunk starts with its own body."""
        chunks = await chunker.chunk(sample_text)

        assert chunks[0].overlap_length == 0
        assert chunks[0].text == chunks[0].body

    @pytest.mark.asyncio
    async def test_overlap_should_repeat_previous_tail(
        self, chunker: ChunkingTask, sample_text: str, token_estimator: TokenEstimator
    ) -> None:
        """Test each overlap prefix is a word-aligned tail of the previous body."""
        chunks = await chunker.chunk(sample_text)

        for previous, current in zip(chunks, chunks[1:]):
            prefix = current.text[:current.overlap_length]
            assert previous.body.endswith(prefix)
            assert await token_estimator.count(prefix) <= 20
            if prefix:
                assert not prefix[0].isspace()

    @pytest.mark.asyncio
    async def test_zero_overlap_should_produce_plain_bodies(
        self, token_estimator: TokenEstimator, sample_text: str
    ) -> None:
        """Test overlap_tokens=0 disables prefixes."""
        chunker = ChunkingTask(token_estimator, target_tokens=100, overlap_tokens=0)

        chunks = await chunker.chunk(sample_text)

        assert all(chunk.overlap_length == 0 for chunk in chunks)


class TestChunkBoundaries:
    """Test suite for separator preferences."""

    @pytest.mark.asyncio
    async def test_short_text_should_be_one_chunk(self, chunker: ChunkingTask) -> None:
        """Test text within the budget is returned whole."""
        text = "A short note about enzymes."

        chunks = await chunker.chunk(text)

        assert len(chunks) == 1
        assert chunks[0].text == text
        assert chunks[0].token_count == 7

    @pytest.mark.asyncio
    async def test_empty_text_should_produce_no_chunks(self, chunker: ChunkingTask) -> None:
        """Test empty input yields an empty list."""
        assert await chunker.chunk("") == []

    @pytest.mark.asyncio
    async def test_paragraph_breaks_should_be_preferred(self, token_estimator: TokenEstimator) -> None:
        """Test chunks end at paragraph breaks when paragraphs fit."""
        paragraph = "Cells divide by mitosis in most tissues of the body. " * 3
        text = "\n\n".join(paragraph.strip() for _ in range(4))
        chunker = ChunkingTask(token_estimator, target_tokens=60, overlap_tokens=0)

        chunks = await chunker.chunk(text)

        for chunk in chunks[:-1]:
            assert chunk.body.endswith("\n\n")

    @pytest.mark.asyncio
    async def test_abbreviations_should_not_end_sentences(self, token_estimator: TokenEstimator) -> None:
        """Test a period after a title abbreviation is not used as a split point."""
        sentence = "Dr. Watson examined the patient carefully today. "
        text = (sentence * 10).strip()
        chunker = ChunkingTask(token_estimator, target_tokens=30, overlap_tokens=0)

        chunks = await chunker.chunk(text)

        assert len(chunks) > 1
        for chunk in chunks:
            assert chunk.body.startswith("Dr. Watson")
            assert chunk.body.rstrip().endswith("today.")

    @pytest.mark.asyncio
    async def test_unbroken_text_should_be_hard_split(self, token_estimator: TokenEstimator) -> None:
        """Test text without separators is cut into budget-sized pieces."""
        text = "x" * 500
        chunker = ChunkingTask(token_estimator, target_tokens=20, overlap_tokens=0)

        chunks = await chunker.chunk(text)

        assert len(chunks) == 7
        assert all(chunk.token_count <= 20 for chunk in chunks)
        assert "".join(chunk.body for chunk in chunks) == text


class TestChunkLimits:
    """Test suite for argument validation and capacity."""

    @pytest.mark.asyncio
    async def test_overlap_not_smaller_than_target_should_raise(self, chunker: ChunkingTask) -> None:
        """Test overlap >= target is rejected."""
        with pytest.raises(ValueError):
            await chunker.chunk("some text", target_tokens=50, overlap_tokens=50)

    def test_constructor_should_validate_sizes(self, token_estimator: TokenEstimator) -> None:
        """Test invalid configured sizes fail fast."""
        with pytest.raises(ValueError):
            ChunkingTask(token_estimator, target_tokens=0)
        with pytest.raises(ValueError):
            ChunkingTask(token_estimator, target_tokens=10, overlap_tokens=-1)

    @pytest.mark.asyncio
    async def test_too_many_chunks_should_raise_capacity_error(self, token_estimator: TokenEstimator) -> None:
        """Test documents needing more than max_chunks chunks are rejected."""
        chunker = ChunkingTask(token_estimator, target_tokens=20, overlap_tokens=0, max_chunks=2)

        with pytest.raises(CapacityError) as exc_info:
            await chunker.chunk("word " * 200)

        assert exc_info.value.details["max_chunks"] == 2

    @pytest.mark.asyncio
    async def test_argument_overrides_should_apply(self, chunker: ChunkingTask, sample_text: str) -> None:
        """Test per-call sizes override the configured ones."""
        default_chunks = await chunker.chunk(sample_text)
        larger_chunks = await chunker.chunk(sample_text, target_tokens=400, overlap_tokens=40)

        assert len(larger_chunks) < len(default_chunks)
