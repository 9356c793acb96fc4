"""
Service container for the ingestion pipeline.

Builds the process-wide collaborators (tokenizer, rate limiter, embedding
provider, vector store, database session factory) once and wires them into
an IngestionOrchestrator. Every ingestion in the process shares these
instances; in particular the rate limiter is what keeps the combined
embedding request rate under the provider ceiling.

Dependencies: content_ingestion.configs, content_ingestion.boundary, All task modules
System role: Composition root for the pipeline
"""

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from content_ingestion.boundary.db.connection import (
    create_engine_from_settings,
    create_session_factory,
)
from content_ingestion.boundary.vdb.base import VectorStoreBase
from content_ingestion.boundary.vdb.vector_store_factory import get_vector_store
from content_ingestion.configs import Settings, get_settings
from content_ingestion.core.document_processing.embedding_provider import (
    EmbeddingProvider,
    build_default_provider,
)
from content_ingestion.core.document_processing.entrypoint import IngestionOrchestrator
from content_ingestion.core.document_processing.rate_limiter import TokenBucketRateLimiter
from content_ingestion.core.document_processing.tasks import (
    ChunkingTask,
    EmbeddingTask,
    ExtractionTask,
    ParsingTask,
    SecureFetcher,
    VectorStoreTask,
)
from content_ingestion.core.text.token_estimator import TokenEstimator

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Lazily built, cached pipeline services."""

    def __init__(
        self,
        settings: Settings | None = None,
        engine: AsyncEngine | None = None,
        vector_store: VectorStoreBase | None = None,
        embedding_provider: EmbeddingProvider | None = None,
        fetcher: SecureFetcher | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
    ) -> None:
        """
        Initialize container.

        Any collaborator passed in replaces the one built from settings.

        Args:
            settings: Application settings (defaults to get_settings())
            engine: Async database engine
            vector_store: Vector store
            embedding_provider: Embedding provider
            fetcher: Secure fetcher for remote URLs
            rate_limiter: Embedding rate limiter
        """
        self.settings = settings or get_settings()
        self._engine = engine
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._vector_store = vector_store
        self._embedding_provider = embedding_provider
        self._fetcher = fetcher
        self._rate_limiter = rate_limiter
        self._token_estimator: TokenEstimator | None = None
        self._orchestrator: IngestionOrchestrator | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_engine_from_settings(self.settings.database)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = create_session_factory(self.engine)
        return self._session_factory

    @property
    def token_estimator(self) -> TokenEstimator:
        if self._token_estimator is None:
            config = self.settings.ingestion
            self._token_estimator = TokenEstimator(
                encoding_name=config.tokenizer_encoding,
                chars_per_token=config.chars_per_token,
                enabled=config.tokenizer_enabled,
            )
        return self._token_estimator

    @property
    def rate_limiter(self) -> TokenBucketRateLimiter:
        if self._rate_limiter is None:
            config = self.settings.ingestion
            self._rate_limiter = TokenBucketRateLimiter(
                interval_seconds=config.embedding_min_interval_seconds,
                capacity=config.embedding_burst,
            )
        return self._rate_limiter

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        if self._embedding_provider is None:
            self._embedding_provider = build_default_provider(
                self.settings.embedding, self.token_estimator
            )
        return self._embedding_provider

    @property
    def vector_store(self) -> VectorStoreBase:
        if self._vector_store is None:
            self._vector_store = get_vector_store(self.settings.vector_store)
        return self._vector_store

    @property
    def fetcher(self) -> SecureFetcher:
        if self._fetcher is None:
            config = self.settings.ingestion
            self._fetcher = SecureFetcher(
                timeout_seconds=config.fetch_timeout_seconds,
                max_bytes=config.fetch_max_bytes,
                max_redirects=config.fetch_max_redirects,
                user_agent=config.fetch_user_agent,
            )
        return self._fetcher

    @property
    def orchestrator(self) -> IngestionOrchestrator:
        """Get the cached orchestrator, building its tasks on first use."""
        if self._orchestrator is None:
            config = self.settings.ingestion
            extractor = ExtractionTask(
                fetcher=self.fetcher,
                parser=ParsingTask(max_bytes=config.max_document_bytes),
                min_text_length=config.min_text_length,
                max_text_length=config.max_text_length,
                max_title_length=config.max_title_length,
            )
            chunker = ChunkingTask(
                token_estimator=self.token_estimator,
                target_tokens=config.chunk_target_tokens,
                overlap_tokens=config.chunk_overlap_tokens,
                max_chunks=config.max_chunks_per_document,
            )
            embedder = EmbeddingTask(
                provider=self.embedding_provider,
                rate_limiter=self.rate_limiter,
                batch_size=config.embedding_batch_size,
                dimension=self.settings.embedding.dimension,
                retry_max_elapsed_seconds=config.embedding_retry_max_elapsed_seconds,
                retry_initial_seconds=config.embedding_retry_initial_seconds,
                retry_max_seconds=config.embedding_retry_max_seconds,
            )
            vector_task = VectorStoreTask(
                vector_store=self.vector_store,
                delete_attempts=config.deletion_attempts,
                retry_initial_seconds=config.deletion_retry_initial_seconds,
            )
            self._orchestrator = IngestionOrchestrator(
                session_factory=self.session_factory,
                extractor=extractor,
                chunker=chunker,
                embedder=embedder,
                vector_task=vector_task,
                max_documents_per_owner=config.max_documents_per_owner,
                max_title_length=config.max_title_length,
                deletion_attempts=config.deletion_attempts,
                retry_initial_seconds=config.deletion_retry_initial_seconds,
                orphan_after=timedelta(seconds=config.orphan_after_seconds),
            )
            logger.info(f"{__name__}:orchestrator - Ingestion services initialized")
        return self._orchestrator

    async def close(self) -> None:
        """Dispose the database engine if this container created one."""
        if self._engine is not None:
            await self._engine.dispose()
