"""
Embedding provider contract and LangChain-backed implementation.

Providers turn a batch of texts into fixed-dimension vectors plus usage
counters, and classify failures as permanent (ValidationError) or
transient (ExternalServiceError). The default provider embeds with Google
Generative AI, pinned to retrieval-document vectors of the index dimension.

Dependencies: langchain_core, langchain_google_genai, pydantic, content_ingestion.core.text
System role: External embedding service adapter
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import pydantic
from langchain_core.embeddings import Embeddings
from langchain_google_genai import GoogleGenerativeAIEmbeddings

from content_ingestion.configs.embedding import EmbeddingSettings
from content_ingestion.core.document_processing.models import EmbeddingResult, EmbeddingUsage
from content_ingestion.core.exceptions import ExternalServiceError, ValidationError
from content_ingestion.core.text.token_estimator import TokenEstimator

logger = logging.getLogger(__name__)

# HTTP status codes that mean the request itself is bad
PERMANENT_STATUS_CODES = {400, 404, 413, 422}


def _status_code(exc: Exception) -> int | None:
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


class EmbeddingProvider(ABC):
    """Embedding service used by the embedding stage."""

    dimension: int

    @abstractmethod
    async def embed(self, texts: list[str]) -> EmbeddingResult:
        """
        Embed a batch of texts.

        Args:
            texts: Texts to embed (non-empty)

        Returns:
            EmbeddingResult: One vector per text, in order, plus usage

        Raises:
            ValidationError: When the provider rejects the request as invalid
            ExternalServiceError: When the call fails for transport reasons
        """


class LangChainEmbeddingProvider(EmbeddingProvider):
    """Adapter over a LangChain Embeddings model."""

    def __init__(
        self,
        embeddings: Embeddings,
        token_estimator: TokenEstimator,
        dimension: int = 1024,
    ) -> None:
        """
        Initialize provider.

        Args:
            embeddings: LangChain embeddings model (blocking API)
            token_estimator: Estimator used for usage counters
            dimension: Vector dimension produced by the model
        """
        self._embeddings = embeddings
        self._token_estimator = token_estimator
        self.dimension = dimension

    async def embed(self, texts: list[str]) -> EmbeddingResult:
        try:
            vectors = await asyncio.to_thread(self._embeddings.embed_documents, texts)
        except (ValueError, TypeError, pydantic.ValidationError) as e:
            raise ValidationError(
                f"Embedding request rejected: {e}",
                field="texts",
            ) from e
        except Exception as e:
            status_code = _status_code(e)
            if status_code in PERMANENT_STATUS_CODES:
                raise ValidationError(
                    f"Embedding request rejected ({status_code}): {e}",
                    field="texts",
                ) from e
            logger.warning(
                f"{__name__}:embed - Provider call failed: {type(e).__name__}",
                extra={"status_code": status_code, "text_count": len(texts)},
            )
            raise ExternalServiceError(
                f"Embedding provider unavailable: {e}",
                service="embedding",
                details={"status_code": status_code},
            ) from e

        input_tokens = 0
        for text in texts:
            input_tokens += await self._token_estimator.count(text)

        return EmbeddingResult(
            embeddings=[list(vector) for vector in vectors],
            usage=EmbeddingUsage(input_tokens=input_tokens, text_count=len(texts)),
        )


class IndexedDocumentEmbeddings(GoogleGenerativeAIEmbeddings):
    """
    Google embeddings that always produce retrieval-document vectors of one size.

    The base class reads the output size per call only, so every chunk batch
    goes through embed_documents with the index dimension filled in.
    """

    _index_dimension: int = 1024

    def __init__(self, index_dimension: int = 1024, **kwargs) -> None:
        super().__init__(**kwargs)
        self._index_dimension = index_dimension

    @property
    def index_dimension(self) -> int:
        return self._index_dimension

    def embed_documents(self, texts: list[str], **kwargs) -> list[list[float]]:
        kwargs.setdefault("task_type", "RETRIEVAL_DOCUMENT")
        kwargs["output_dimensionality"] = self._index_dimension
        return super().embed_documents(texts, **kwargs)


def build_default_provider(
    config: EmbeddingSettings,
    token_estimator: TokenEstimator,
) -> LangChainEmbeddingProvider:
    """
    Build the Google Generative AI provider from settings.

    Args:
        config: Embedding settings
        token_estimator: Shared token estimator

    Returns:
        LangChainEmbeddingProvider: Provider producing config.dimension vectors
    """
    kwargs = {}
    if config.google_api_key:
        kwargs["google_api_key"] = config.google_api_key

    embeddings = IndexedDocumentEmbeddings(
        model=config.model,
        index_dimension=config.dimension,
        **kwargs,
    )
    logger.info(
        f"{__name__}:build_default_provider - Embedding model configured",
        extra={"model": config.model, "dimension": config.dimension},
    )
    return LangChainEmbeddingProvider(
        embeddings=embeddings,
        token_estimator=token_estimator,
        dimension=config.dimension,
    )
