"""Core components for transaction search."""

from .exceptions import (
    TransactionSearchError,
    ValidationError,
    EmbeddingError,
    ModelUnavailableError,
    SearchError,
    ConfigurationError
)
from .similarity import cosine_similarity, batch_cosine_similarity, rank_by_similarity
from .filters import FilterEngine
from .embeddings import (
    EmbeddingProvider,
    TokenAverageEmbeddingProvider,
    TfidfEmbeddingProvider,
    create_embedding_provider
)
from .transformer_embeddings import SentenceEmbeddingProvider
from .store import TransactionStore
from .coordinator import SearchCoordinator, SearchState

__all__ = [
    "SearchCoordinator",
    "SearchState",
    "TransactionStore",
    "FilterEngine",
    "EmbeddingProvider",
    "SentenceEmbeddingProvider",
    "TokenAverageEmbeddingProvider",
    "TfidfEmbeddingProvider",
    "create_embedding_provider",
    "cosine_similarity",
    "batch_cosine_similarity",
    "rank_by_similarity",
    "TransactionSearchError",
    "ValidationError",
    "EmbeddingError",
    "ModelUnavailableError",
    "SearchError",
    "ConfigurationError"
]
