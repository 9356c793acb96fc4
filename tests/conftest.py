"""
Shared test fixtures and configuration for entire test suite.

Provides: SQLite async databases, fake embedding provider, failing vector
store, orchestrator factory, sample texts and PDF builders
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite, httpx, pypdf
System role: Test infrastructure and fixture management
"""

import io
from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio
from pypdf import PdfWriter

from content_ingestion.boundary.db.connection import (
    create_engine_from_settings,
    create_session_factory,
)
from content_ingestion.boundary.db.create_tables import create_all_tables
from content_ingestion.boundary.vdb.memory_vectors_store import MemoryVectorStore
from content_ingestion.boundary.vdb.vector_schemas import MetadataFilter, VectorRecord
from content_ingestion.configs.database import DatabaseSettings
from content_ingestion.core.document_processing.embedding_provider import EmbeddingProvider
from content_ingestion.core.document_processing.entrypoint import IngestionOrchestrator
from content_ingestion.core.document_processing.models import EmbeddingResult, EmbeddingUsage
from content_ingestion.core.document_processing.rate_limiter import TokenBucketRateLimiter
from content_ingestion.core.document_processing.tasks import (
    ChunkingTask,
    EmbeddingTask,
    ExtractionTask,
    ParsingTask,
    SecureFetcher,
    VectorStoreTask,
)
from content_ingestion.core.exceptions import VectorStoreError
from content_ingestion.core.text.token_estimator import TokenEstimator

VECTOR_DIMENSION = 8
PUBLIC_ADDRESS = "93.184.216.34"


async def no_sleep(seconds: float) -> None:
    """Sleep replacement that returns immediately."""
    return None


async def public_resolver(hostname: str, port: int) -> list[str]:
    """Resolver mapping every hostname to one public address."""
    return [PUBLIC_ADDRESS]


class FakeEmbeddingProvider(EmbeddingProvider):
    """Deterministic provider that records calls and can fail on demand."""

    def __init__(self, dimension: int = VECTOR_DIMENSION, failures: list[Exception] | None = None):
        self.dimension = dimension
        self.failures = list(failures or [])
        self.calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> EmbeddingResult:
        self.calls.append(list(texts))
        if self.failures:
            raise self.failures.pop(0)
        vectors = [
            [float((len(text) + i) % 11) / 10 for i in range(self.dimension)]
            for text in texts
        ]
        return EmbeddingResult(
            embeddings=vectors,
            usage=EmbeddingUsage(
                input_tokens=sum(len(text) // 4 for text in texts),
                text_count=len(texts),
            ),
        )


class FlakyVectorStore(MemoryVectorStore):
    """Memory store whose writes and filtered deletes can be made to fail."""

    def __init__(self, namespace: str = "content", dimension: int = VECTOR_DIMENSION):
        super().__init__(namespace=namespace, dimension=dimension)
        self.fail_upsert = False
        self.delete_failures = 0
        self.delete_calls = 0

    async def upsert(self, records: list[VectorRecord]) -> int:
        if self.fail_upsert:
            raise VectorStoreError("Simulated vector store outage", operation="upsert")
        return await super().upsert(records)

    async def delete_by_filter(self, filters: MetadataFilter) -> int:
        self.delete_calls += 1
        if self.delete_failures > 0:
            self.delete_failures -= 1
            raise VectorStoreError("Simulated delete failure", operation="delete_by_filter")
        return await super().delete_by_filter(filters)


def build_text_pdf(lines: list[str], title: str | None = None) -> bytes:
    """
    Build a one-page PDF with a real text layer.

    Args:
        lines: Text lines drawn with a standard font
        title: Optional document information title

    Returns:
        bytes: Complete PDF with a valid cross-reference table
    """
    operations = ["BT", "/F1 11 Tf", "14 TL", "72 740 Td"]
    for line in lines:
        escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        operations.append(f"({escaped}) Tj T*")
    operations.append("ET")
    stream = "\n".join(operations).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    if title is not None:
        objects.append(b"<< /Title (%s) >>" % title.encode("latin-1"))

    output = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(output)
    output += b"xref\n0 %d\n" % (len(objects) + 1)
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += b"%010d 00000 n \n" % offset

    trailer = b"<< /Size %d /Root 1 0 R" % (len(objects) + 1)
    if title is not None:
        trailer += b" /Info 6 0 R"
    trailer += b" >>"
    output += b"trailer\n" + trailer + b"\nstartxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(output)


def build_blank_pdf() -> bytes:
    """Build a PDF whose only page has no text layer."""
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def build_encrypted_pdf() -> bytes:
    """Build a PDF that needs a user password to open."""
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    writer.encrypt(user_password="pw", owner_password="owner", algorithm="RC4-128")
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def sample_text() -> str:
    """Provide a multi-paragraph study text of about four thousand characters."""
    paragraphs = []
    for index in range(12):
        paragraphs.append(
            f"Section {index + 1}. Photosynthesis converts light energy into chemical energy. "
            "Chlorophyll absorbs mostly blue and red light, and reflects green light. "
            "The light reactions happen in the thylakoid membranes, while the Calvin "
            "cycle runs in the stroma. Dr. Smith notes that e.g. temperature and water "
            "availability change the rate of the whole process."
        )
    return "\n\n".join(paragraphs)


@pytest.fixture
def pdf_lines() -> list[str]:
    """Provide text lines for generated PDFs."""
    return [
        "Cell biology lecture notes, week three.",
        "Mitochondria produce most of the chemical energy of the cell.",
        "Ribosomes translate messenger RNA into chains of amino acids.",
        "The Golgi apparatus packages proteins for transport out of the cell.",
    ]


@pytest.fixture
def text_pdf(pdf_lines: list[str]) -> bytes:
    """Provide a valid PDF with a text layer."""
    return build_text_pdf(pdf_lines, title="Cell Biology Notes")


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    Create a file-backed SQLite database with all tables.

    Each session gets its own connection (NullPool), so concurrent
    transactions behave like separate clients.

    Yields:
        AsyncEngine: Engine bound to a fresh database file
    """
    settings = DatabaseSettings(url_override=f"sqlite+aiosqlite:///{tmp_path / 'ingestion.db'}")
    engine = create_engine_from_settings(settings)
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Provide a session factory bound to the test database."""
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide one async session; uncommitted work is rolled back."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def token_estimator() -> TokenEstimator:
    """Provide a deterministic estimator (four characters per token)."""
    return TokenEstimator(enabled=False)


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    """Provide a fake embedding provider."""
    return FakeEmbeddingProvider()


@pytest.fixture
def vector_store() -> FlakyVectorStore:
    """Provide an in-memory vector store with failure switches."""
    return FlakyVectorStore()


@pytest.fixture
def html_handler() -> dict:
    """Provide a mutable page map served by the mock transport."""
    return {}


@pytest.fixture
def fetcher(html_handler: dict) -> SecureFetcher:
    """
    Provide a fetcher that resolves every host publicly and serves pages from html_handler.

    Keys of html_handler are Host header values; values are HTML strings.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        page = html_handler.get(request.headers["host"])
        if page is None:
            return httpx.Response(404, headers={"content-type": "text/html"}, text="missing")
        return httpx.Response(200, headers={"content-type": "text/html; charset=utf-8"}, text=page)

    return SecureFetcher(resolver=public_resolver, transport=httpx.MockTransport(handler))


@pytest.fixture
def make_orchestrator(
    session_factory,
    token_estimator: TokenEstimator,
    embedding_provider: FakeEmbeddingProvider,
    vector_store: FlakyVectorStore,
    fetcher: SecureFetcher,
) -> Callable[..., IngestionOrchestrator]:
    """
    Provide a factory for orchestrators wired to the test collaborators.

    Keyword arguments override quota, chunk sizes and the provider.
    """

    def factory(
        max_documents: int = 50,
        target_tokens: int = 500,
        overlap_tokens: int = 50,
        max_chunks: int = 50,
        provider: EmbeddingProvider | None = None,
    ) -> IngestionOrchestrator:
        extractor = ExtractionTask(fetcher=fetcher, parser=ParsingTask())
        chunker = ChunkingTask(
            token_estimator,
            target_tokens=target_tokens,
            overlap_tokens=overlap_tokens,
            max_chunks=max_chunks,
        )
        embedder = EmbeddingTask(
            provider=provider or embedding_provider,
            rate_limiter=TokenBucketRateLimiter(interval_seconds=0),
            dimension=VECTOR_DIMENSION,
            retry_max_elapsed_seconds=5,
            retry_initial_seconds=0,
            retry_max_seconds=0,
            sleep=no_sleep,
        )
        vector_task = VectorStoreTask(vector_store, delete_attempts=3, retry_initial_seconds=0)
        return IngestionOrchestrator(
            session_factory=session_factory,
            extractor=extractor,
            chunker=chunker,
            embedder=embedder,
            vector_task=vector_task,
            max_documents_per_owner=max_documents,
            deletion_attempts=3,
            retry_initial_seconds=0,
        )

    return factory


@pytest.fixture
def orchestrator(make_orchestrator) -> IngestionOrchestrator:
    """Provide an orchestrator with default limits."""
    return make_orchestrator()
