"""
Semantic Transaction Search

Filters account transactions by date, amount, type, cheque flag and
category, and ranks them by embedding similarity to a free-text query.
"""

from .core.exceptions import TransactionSearchError
from .core.coordinator import SearchCoordinator, SearchState
from .core.embeddings import (
    EmbeddingProvider,
    TfidfEmbeddingProvider,
    TokenAverageEmbeddingProvider,
    create_embedding_provider
)
from .core.transformer_embeddings import SentenceEmbeddingProvider
from .models.transaction import Transaction, TransactionType
from .models.criteria import FilterCriteria
from .models.result import SearchResult, SearchMode
from .api.service import TransactionSearchService

__version__ = "1.0.0"

__all__ = [
    "TransactionSearchService",
    "SearchCoordinator",
    "SearchState",
    "EmbeddingProvider",
    "SentenceEmbeddingProvider",
    "TokenAverageEmbeddingProvider",
    "TfidfEmbeddingProvider",
    "create_embedding_provider",
    "Transaction",
    "TransactionType",
    "FilterCriteria",
    "SearchResult",
    "SearchMode",
    "TransactionSearchError",
]
