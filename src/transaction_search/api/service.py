"""High-level API service for transaction search."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from ..config.settings import Settings, get_settings
from ..core.coordinator import SearchCoordinator
from ..core.embeddings import EmbeddingProvider, create_embedding_provider
from ..core.exceptions import SearchError, ValidationError
from ..models.criteria import FilterCriteria, FilterCriteriaModel
from ..models.result import SearchResult
from ..models.transaction import Transaction, TransactionModel
from ..utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

TransactionInput = Union[Transaction, Mapping[str, Any]]
CriteriaInput = Union[FilterCriteria, Mapping[str, Any]]


class TransactionSearchService:
    """
    High-level service interface for transaction search.

    Builds the embedding provider from settings, validates dict input and
    manages the coordinator's lifecycle.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[EmbeddingProvider] = None,
        transactions: Optional[Iterable[TransactionInput]] = None,
        log_level: Optional[str] = None
    ):
        """
        Initialize transaction search service.

        Args:
            settings: Configuration; read from the environment if omitted
            provider: Embedding provider; built from settings if omitted
            transactions: Seed transactions loaded on ``initialize``
            log_level: Logging level, overrides settings
        """
        self.settings = settings or get_settings()
        setup_logging(level=log_level or self.settings.log_level)

        self._provider = provider
        self._seed = [self._to_transaction(t) for t in transactions] if transactions else []
        self.coordinator: Optional[SearchCoordinator] = None
        self._initialized = False
        logger.info("Transaction search service created")

    async def initialize(self) -> None:
        """
        Load the embedding model and the seed transactions.

        Model loading is slow, so it runs in a worker thread. A model that
        fails to load leaves the service usable with plain-text search.
        """
        loop = asyncio.get_running_loop()

        if self._provider is None:
            corpus = [t.title for t in self._seed]
            self._provider = await loop.run_in_executor(
                None, create_embedding_provider, self.settings.embedding, corpus
            )

        self.coordinator = SearchCoordinator.from_settings(self._provider, self.settings.search)
        if self._seed:
            await self.coordinator.add_transactions(self._seed)

        self._initialized = True
        logger.info(
            f"Service initialization complete ({self._provider.strategy} embeddings, "
            f"available={self._provider.is_available})"
        )

    @property
    def provider(self) -> Optional[EmbeddingProvider]:
        return self._provider

    async def add_transactions(self, transactions: Sequence[TransactionInput]) -> List[Transaction]:
        """
        Add transactions given as objects or dicts.

        Raises:
            ValidationError: If any record is invalid
        """
        coordinator = self._check_initialized()
        batch = [self._to_transaction(t) for t in transactions]
        added = await coordinator.add_transactions(batch)
        logger.info(f"Added {len(added)} transactions")
        return added

    async def search(self, criteria: CriteriaInput) -> SearchResult:
        """
        Apply criteria and return the visible result.

        Raises:
            ValidationError: If criteria cannot be parsed
        """
        coordinator = self._check_initialized()
        return await coordinator.apply_filters(self._to_criteria(criteria))

    async def search_text(
        self,
        text: str,
        semantic: bool = True,
        **filters: Any
    ) -> SearchResult:
        """
        Convenience method for a text search with optional filters.

        Filters not given keep their current value.

        Args:
            text: Search text
            semantic: Rank by similarity instead of substring match
            **filters: Any other FilterCriteria field
        """
        coordinator = self._check_initialized()
        try:
            criteria = coordinator.criteria.replace(
                search_text=text, semantic_enabled=semantic, **filters
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid search filters: {e}")
        return await coordinator.apply_filters(criteria)

    async def find_similar(
        self,
        query: Union[str, Transaction],
        threshold: Optional[float] = None
    ) -> SearchResult:
        """Find transactions similar to a text or transaction across the whole store."""
        coordinator = self._check_initialized()
        return await coordinator.find_similar(query, threshold=threshold)

    def reset_filters(self) -> None:
        self._check_initialized().reset_filters()

    async def get_stats(self) -> Dict[str, Any]:
        """Get service and coordinator statistics."""
        coordinator = self._check_initialized()
        return {
            'service': {
                'initialized': self._initialized,
                'embedding_strategy': self.settings.embedding.strategy,
            },
            'coordinator': coordinator.get_stats()
        }

    async def health_check(self) -> Dict[str, Any]:
        """Perform comprehensive health check."""
        if not self._initialized:
            return {
                'status': 'not_initialized',
                'message': 'Service not initialized'
            }
        return await self.coordinator.health_check()

    def _check_initialized(self) -> SearchCoordinator:
        """Check if service is properly initialized."""
        if not self._initialized or self.coordinator is None:
            raise SearchError("Service not initialized. Call initialize() first.")
        return self.coordinator

    @staticmethod
    def _to_transaction(record: TransactionInput) -> Transaction:
        if isinstance(record, Transaction):
            return record
        try:
            return TransactionModel(**record).to_transaction()
        except (PydanticValidationError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid transaction record: {e}")

    @staticmethod
    def _to_criteria(criteria: CriteriaInput) -> FilterCriteria:
        if isinstance(criteria, FilterCriteria):
            return criteria
        try:
            return FilterCriteriaModel(**criteria).to_criteria()
        except (PydanticValidationError, TypeError) as e:
            raise ValidationError(f"Invalid filter criteria: {e}")

    async def close(self) -> None:
        """Clean up resources and close the service."""
        if self.coordinator is not None:
            await self.coordinator.close()
        self._initialized = False
        logger.info("Service closed successfully")

    @classmethod
    @asynccontextmanager
    async def create(cls, **kwargs) -> AsyncIterator['TransactionSearchService']:
        """
        Create and manage service lifecycle with context manager.

        Args:
            **kwargs: Service configuration

        Yields:
            Initialized transaction search service
        """
        service = cls(**kwargs)

        try:
            await service.initialize()
            yield service
        finally:
            await service.close()
