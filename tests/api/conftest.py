"""
Fixtures for API tests.

Builds the application around a service container whose database is a
SQLite file created at startup, with fake embedding, in-memory vectors
and a mock-transport fetcher.

Dependencies: fastapi, httpx
System role: API test infrastructure
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from content_ingestion.api.main import create_app
from content_ingestion.configs import Settings
from content_ingestion.configs.database import DatabaseSettings
from content_ingestion.configs.embedding import EmbeddingSettings
from content_ingestion.configs.ingestion import IngestionSettings
from content_ingestion.configs.vector_store import VectorStoreSettings
from content_ingestion.core.document_processing.container import ServiceContainer
from content_ingestion.core.document_processing.rate_limiter import TokenBucketRateLimiter
from content_ingestion.core.document_processing.tasks import SecureFetcher
from tests.conftest import (
    VECTOR_DIMENSION,
    FakeEmbeddingProvider,
    FlakyVectorStore,
    public_resolver,
)

API_MAX_DOCUMENTS = 3


@pytest.fixture
def api_pages() -> dict:
    """Pages served to the API fetcher, keyed by Host header."""
    return {}


@pytest.fixture
def api_vector_store() -> FlakyVectorStore:
    return FlakyVectorStore()


@pytest.fixture
def api_settings(tmp_path) -> Settings:
    """Settings for a small, fast, fully local deployment."""
    return Settings(
        database=DatabaseSettings(
            url_override=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
            create_tables_on_startup=True,
        ),
        vector_store=VectorStoreSettings(store_type="memory", dimension=VECTOR_DIMENSION),
        embedding=EmbeddingSettings(dimension=VECTOR_DIMENSION),
        ingestion=IngestionSettings(
            max_documents_per_owner=API_MAX_DOCUMENTS,
            tokenizer_enabled=False,
            embedding_min_interval_seconds=0,
            deletion_retry_initial_seconds=0,
            max_document_bytes=64 * 1024,
        ),
    )


@pytest.fixture
def client(api_settings: Settings, api_pages: dict, api_vector_store: FlakyVectorStore):
    """
    Provide a TestClient with the application lifespan running.

    Yields:
        TestClient: Client bound to a freshly created database
    """

    def handler(request: httpx.Request) -> httpx.Response:
        page = api_pages.get(request.headers["host"])
        if page is None:
            return httpx.Response(404, headers={"content-type": "text/html"}, text="missing")
        return httpx.Response(200, headers={"content-type": "text/html"}, text=page)

    container = ServiceContainer(
        settings=api_settings,
        vector_store=api_vector_store,
        embedding_provider=FakeEmbeddingProvider(),
        fetcher=SecureFetcher(resolver=public_resolver, transport=httpx.MockTransport(handler)),
        rate_limiter=TokenBucketRateLimiter(interval_seconds=0),
    )
    with TestClient(create_app(container)) as test_client:
        yield test_client
