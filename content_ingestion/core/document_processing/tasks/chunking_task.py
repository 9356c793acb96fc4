"""
Token-aware recursive text chunking.

Splits sanitized text on an ordered list of separators from coarse to fine
(paragraph, line, sentence, clause, space, then raw characters), splitting
further only the pieces that are still over budget. Separators stay at the
end of the preceding piece, so the pieces partition the text exactly.
Pieces are merged greedily into chunk bodies, and every chunk after the
first is prefixed with the tail of the previous body as overlap.

Invariant: stripping ``overlap_length`` characters from each chunk and
concatenating the rest reproduces the input text.

Dependencies: re, content_ingestion.core.text.token_estimator
System role: Second stage of the ingestion pipeline
"""

import logging
import re
from typing import Callable

from content_ingestion.core.document_processing.models import TextChunk
from content_ingestion.core.exceptions import CapacityError
from content_ingestion.core.text.token_estimator import TokenEstimator

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = re.compile(r"\n{2,}")
LINE_BREAK = re.compile(r"\n")
SENTENCE_END = re.compile(r"[.!?]+[\"'”’)\]]*\s+")
CLAUSE_END = re.compile(r"[;:,]\s+")
WHITESPACE = re.compile(r"\s+")

# Lowercased words that end with a period without ending a sentence
ABBREVIATIONS = frozenset({
    "mr", "mrs", "ms", "dr", "prof", "sr", "jr", "st", "vs", "etc", "e.g", "i.e",
    "cf", "fig", "no", "vol", "pp", "approx", "ca", "inc", "ltd", "co", "corp",
    "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept", "oct", "nov", "dec",
    "ecc", "sig", "dott", "ing", "avv", "pag", "cap", "es",
})


def _pattern_cuts(pattern: re.Pattern) -> Callable[[str], list[int]]:
    def cuts(segment: str) -> list[int]:
        return [match.end() for match in pattern.finditer(segment)]

    return cuts


def _is_abbreviation(segment: str, dot_index: int) -> bool:
    start = dot_index
    while start > 0 and not segment[start - 1].isspace():
        start -= 1
    word = segment[start:dot_index].lstrip("(\"'“‘[").lower()
    if not word:
        return False
    if len(word) == 1 and word.isalpha():
        return True
    return word in ABBREVIATIONS


def _sentence_cuts(segment: str) -> list[int]:
    cuts = []
    for match in SENTENCE_END.finditer(segment):
        if segment[match.start()] == "." and _is_abbreviation(segment, match.start()):
            continue
        cuts.append(match.end())
    return cuts


SEPARATORS: list[Callable[[str], list[int]]] = [
    _pattern_cuts(PARAGRAPH_BREAK),
    _pattern_cuts(LINE_BREAK),
    _sentence_cuts,
    _pattern_cuts(CLAUSE_END),
    _pattern_cuts(WHITESPACE),
]


def _cut(segment: str, positions: list[int]) -> list[str]:
    pieces = []
    previous = 0
    for position in positions:
        if previous < position < len(segment):
            pieces.append(segment[previous:position])
            previous = position
    pieces.append(segment[previous:])
    return pieces


class ChunkingTask:
    """Split text into overlapping, token-bounded chunks."""

    def __init__(
        self,
        token_estimator: TokenEstimator,
        target_tokens: int = 500,
        overlap_tokens: int = 50,
        max_chunks: int = 50,
    ) -> None:
        """
        Initialize chunking task.

        Args:
            token_estimator: Shared token estimator
            target_tokens: Maximum tokens per chunk, overlap included
            overlap_tokens: Tokens of the previous body repeated at the start of a chunk
            max_chunks: Documents producing more chunks are rejected

        Raises:
            ValueError: When the sizes are inconsistent
        """
        self._validate_sizes(target_tokens, overlap_tokens)
        self._estimator = token_estimator
        self._target_tokens = target_tokens
        self._overlap_tokens = overlap_tokens
        self._max_chunks = max_chunks

    @staticmethod
    def _validate_sizes(target_tokens: int, overlap_tokens: int) -> None:
        if target_tokens <= 0:
            raise ValueError("target_tokens must be positive")
        if overlap_tokens < 0:
            raise ValueError("overlap_tokens cannot be negative")
        if overlap_tokens >= target_tokens:
            raise ValueError("overlap_tokens must be smaller than target_tokens")

    async def chunk(
        self,
        text: str,
        target_tokens: int | None = None,
        overlap_tokens: int | None = None,
    ) -> list[TextChunk]:
        """
        Split text into chunks.

        Args:
            text: Sanitized source text
            target_tokens: Override the configured chunk size
            overlap_tokens: Override the configured overlap

        Returns:
            list[TextChunk]: Chunks with contiguous positions from 0

        Raises:
            ValueError: When overlap_tokens >= target_tokens
            CapacityError: When the text needs more than max_chunks chunks
        """
        target = self._target_tokens if target_tokens is None else target_tokens
        overlap = self._overlap_tokens if overlap_tokens is None else overlap_tokens
        self._validate_sizes(target, overlap)

        if not text:
            return []

        body_budget = target - overlap
        pieces = await self._split(text, 0, body_budget)
        bodies = await self._merge(pieces, body_budget)

        chunks: list[TextChunk] = []
        offset = 0
        for position, body in enumerate(bodies):
            prefix = ""
            if position > 0 and overlap > 0:
                prefix = await self._overlap_prefix(bodies[position - 1], overlap)
            chunk_text = prefix + body
            token_count = await self._estimator.count(chunk_text)
            if prefix and token_count > target:
                prefix = ""
                chunk_text = body
                token_count = await self._estimator.count(body)

            chunks.append(
                TextChunk(
                    text=chunk_text,
                    position=position,
                    start_offset=offset,
                    end_offset=offset + len(body),
                    overlap_length=len(prefix),
                    token_count=token_count,
                )
            )
            offset += len(body)

        logger.info(
            f"{__name__}:chunk - Created {len(chunks)} chunks",
            extra={"char_count": len(text), "target_tokens": target},
        )
        return chunks

    async def _split(self, segment: str, level: int, budget: int) -> list[str]:
        if await self._estimator.count(segment) <= budget:
            return [segment]
        if level >= len(SEPARATORS):
            return await self._hard_split(segment, budget)

        parts = _cut(segment, SEPARATORS[level](segment))
        if len(parts) == 1:
            return await self._split(segment, level + 1, budget)

        pieces: list[str] = []
        for part in parts:
            pieces.extend(await self._split(part, level + 1, budget))
        return pieces

    async def _hard_split(self, segment: str, budget: int) -> list[str]:
        pieces = []
        rest = segment
        window = max(self._estimator.estimate_chars_from_tokens(budget), 1)
        while rest:
            size = min(len(rest), window)
            while size > 1 and await self._estimator.count(rest[:size]) > budget:
                size = max(1, (size * 9) // 10)
            pieces.append(rest[:size])
            rest = rest[size:]
        return pieces

    async def _merge(self, pieces: list[str], budget: int) -> list[str]:
        bodies: list[str] = []
        current = ""
        for piece in pieces:
            if current and await self._estimator.count(current + piece) <= budget:
                current += piece
                continue
            if current:
                bodies.append(current)
                self._check_capacity(len(bodies) + 1)
            current = piece
        if current:
            bodies.append(current)
        self._check_capacity(len(bodies))
        return bodies

    def _check_capacity(self, chunk_count: int) -> None:
        if chunk_count > self._max_chunks:
            raise CapacityError(chunk_count, self._max_chunks)

    async def _overlap_prefix(self, previous_body: str, overlap_tokens: int) -> str:
        """Tail of the previous body worth about overlap_tokens, starting at a word."""
        window = self._estimator.estimate_chars_from_tokens(overlap_tokens)
        start = max(len(previous_body) - window, 0)
        while True:
            start = self._next_word_start(previous_body, start)
            if start >= len(previous_body):
                return ""
            tail = previous_body[start:]
            if await self._estimator.count(tail) <= overlap_tokens:
                return tail
            start += 1

    @staticmethod
    def _next_word_start(text: str, index: int) -> int:
        while index < len(text) and not (
            not text[index].isspace() and (index == 0 or text[index - 1].isspace())
        ):
            index += 1
        return index
