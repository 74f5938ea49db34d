"""Search coordinator combining structured filters with semantic ranking."""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from ..config.settings import SearchSettings
from ..models.criteria import FilterCriteria
from ..models.result import SearchMode, SearchResult
from ..models.transaction import Transaction
from ..utils.debounce import Debouncer
from ..utils.logging_config import StructuredLogger
from ..utils.validators import validate_criteria, validate_threshold
from .embeddings import EmbeddingProvider
from .filters import FilterEngine
from .similarity import rank_by_similarity
from .store import TransactionStore

logger = logging.getLogger(__name__)

Listener = Callable[["SearchCoordinator"], None]


class SearchState(str, Enum):
    """Where the most recent search pass is."""
    IDLE = "idle"
    FILTERING = "filtering"
    SEMANTIC_PENDING = "semantic_pending"
    DONE = "done"


class SearchCoordinator:
    """
    Owns the filter/search state shown to the user.

    Every pass filters the full transaction set first. A non-empty query
    then either narrows the filtered set by substring (semantic mode off)
    or ranks it by embedding similarity (semantic mode on). When semantic
    ranking yields nothing, the filtered set stays visible instead of an
    empty list.

    Passes are numbered when submitted. A pass that finishes after a newer
    one was submitted is discarded, so slow embeddings never overwrite
    fresher results. Embedding and scoring run on a thread pool.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        transactions: Optional[Sequence[Transaction]] = None,
        store: Optional[TransactionStore] = None,
        live_threshold: float = 0.3,
        similar_threshold: float = 0.7,
        debounce_ms: int = 300,
        default_window_days: int = 30,
        max_workers: int = 4,
        executor: Optional[ThreadPoolExecutor] = None
    ):
        """
        Initialize search coordinator.

        Args:
            provider: Embedding provider for queries and titles
            transactions: Initial transactions, embedded immediately
            store: Existing store to search; created from ``provider`` if omitted
            live_threshold: Minimum similarity for incremental search
            similar_threshold: Minimum similarity for ``find_similar``
            debounce_ms: Quiet period before a submitted query runs
            default_window_days: Length of the default date window
            max_workers: Number of worker threads
            executor: Thread pool to use instead of creating one
        """
        validate_threshold(live_threshold)
        validate_threshold(similar_threshold)

        self.provider = provider
        self.store = store or TransactionStore(provider)
        self.filter_engine = FilterEngine()
        self.live_threshold = live_threshold
        self.similar_threshold = similar_threshold
        self.default_window_days = default_window_days

        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=max_workers)
        self._debouncer = Debouncer(debounce_ms / 1000.0)
        self._log = StructuredLogger(__name__)

        if transactions:
            self.store.add(transactions)

        self.criteria = FilterCriteria.default(window_days=default_window_days)
        self.state = SearchState.IDLE
        self._filtered: List[Transaction] = self.store.all()
        self._semantic: List[Transaction] = []
        self.last_result = SearchResult.from_transactions(self._filtered)
        self._latest_seq = 0
        self._listeners: List[Listener] = []

        self._stats = {
            'total_searches': 0,
            'semantic_searches': 0,
            'text_searches': 0,
            'semantic_fallbacks': 0,
            'stale_discarded': 0,
            'avg_search_time': 0.0
        }

        logger.info(
            f"Search coordinator initialized with {len(self.store)} transactions "
            f"({provider.strategy} embeddings, available={provider.is_available})"
        )

    @classmethod
    def from_settings(
        cls,
        provider: EmbeddingProvider,
        settings: Optional[SearchSettings] = None,
        **kwargs
    ) -> "SearchCoordinator":
        """Create a coordinator configured from search settings."""
        settings = settings or SearchSettings()
        options = {
            'live_threshold': settings.live_threshold,
            'similar_threshold': settings.similar_threshold,
            'debounce_ms': settings.debounce_ms,
            'default_window_days': settings.default_window_days,
            'max_workers': settings.max_workers,
        }
        options.update(kwargs)
        return cls(provider, **options)

    @property
    def filtered_transactions(self) -> List[Transaction]:
        """Transactions currently visible, in display order."""
        return list(self._filtered)

    @property
    def semantic_results(self) -> List[Transaction]:
        """Ranked semantic matches of the latest pass; empty when not ranked."""
        return list(self._semantic)

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener(coordinator)`` whenever visible results change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    async def apply_filters(self, criteria: Optional[FilterCriteria] = None) -> SearchResult:
        """
        Run a search pass and publish its result.

        Args:
            criteria: New criteria; the current criteria are reused if omitted

        Returns:
            Result of this pass, or the currently published result if this
            pass was superseded while it ran

        Raises:
            ValidationError: If criteria is invalid
        """
        if criteria is not None:
            validate_criteria(criteria)
            self.criteria = criteria
        criteria = self.criteria

        seq = self._next_sequence()
        log = self._log.with_context(seq=seq)
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        self.state = SearchState.FILTERING
        filtered = self.filter_engine.apply(self.store.all(), criteria)
        query = criteria.query
        semantic: List[Transaction] = []

        if not query:
            result = SearchResult.from_transactions(filtered, SearchMode.FILTER)
        elif not criteria.semantic_enabled:
            matched = self.filter_engine.search_text(filtered, query)
            result = SearchResult.from_transactions(matched, SearchMode.TEXT, query)
        else:
            self.state = SearchState.SEMANTIC_PENDING
            ranked = await loop.run_in_executor(
                self.executor, self._rank, query, filtered, self.live_threshold, SearchMode.SEMANTIC
            )
            if ranked:
                result = ranked
                semantic = ranked.transactions
            else:
                log.debug(f"No semantic matches for '{query[:50]}', keeping filtered results")
                result = SearchResult.from_transactions(filtered, SearchMode.SEMANTIC_FALLBACK, query)

        if seq != self._latest_seq:
            self._stats['stale_discarded'] += 1
            log.debug(f"Discarding stale result, latest is {self._latest_seq}")
            return self.last_result

        self._publish(result.transactions, semantic, result)
        self._update_search_stats(loop.time() - start_time, result.mode)
        log.info(f"Search pass done: {len(result)} results ({result.mode.value})")
        return result

    def submit_search_text(self, text: str) -> None:
        """
        Update the query text and search once typing pauses.

        Must be called from a running event loop. A newer submission within
        the debounce window replaces this one.
        """
        self.criteria = self.criteria.replace(search_text=text)
        self._debouncer.schedule(self.apply_filters)

    async def wait_idle(self) -> None:
        """Wait for any debounced or running pass to finish."""
        await self._debouncer.wait()

    async def find_similar(
        self,
        query: Union[str, Transaction],
        threshold: Optional[float] = None,
        transactions: Optional[Iterable[Transaction]] = None
    ) -> SearchResult:
        """
        Find transactions similar to a text or to another transaction.

        Does not change the visible results.

        Args:
            query: Text, or a transaction whose title embedding is used
            threshold: Minimum similarity; defaults to ``similar_threshold``
            transactions: Candidates; defaults to every stored transaction

        Returns:
            Ranked matches, excluding the query transaction itself
        """
        threshold = self.similar_threshold if threshold is None else threshold
        validate_threshold(threshold)
        candidates = list(transactions) if transactions is not None else self.store.all()

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor, self._rank, query, candidates, threshold, SearchMode.SIMILAR
        )

    def reset_filters(self) -> None:
        """Restore default criteria and show every transaction."""
        self._debouncer.cancel()
        self._next_sequence()

        self.criteria = FilterCriteria.default(window_days=self.default_window_days)
        transactions = self.store.all()
        self._publish(transactions, [], SearchResult.from_transactions(transactions))
        self.state = SearchState.IDLE
        logger.info("Filters reset")

    async def add_transactions(self, transactions: Sequence[Transaction]) -> List[Transaction]:
        """
        Add transactions, embedding their titles in a worker thread.

        Every transaction becomes visible; passes still running are discarded.

        Raises:
            ValidationError: If the batch is invalid
        """
        loop = asyncio.get_running_loop()
        added = await loop.run_in_executor(self.executor, self.store.add, list(transactions))

        self._next_sequence()
        all_transactions = self.store.all()
        self._publish(all_transactions, [], SearchResult.from_transactions(all_transactions))
        return added

    def _rank(
        self,
        query: Union[str, Transaction],
        candidates: List[Transaction],
        threshold: float,
        mode: SearchMode
    ) -> SearchResult:
        """Embed the query and rank candidates. Runs in a worker thread."""
        exclude = None
        if isinstance(query, Transaction):
            exclude = query
            self.store.ensure_embeddings([query])
            query_vector = query.embedding_vector
            query_text = query.title
        else:
            query_vector = self.provider.embed(query)
            query_text = query

        if query_vector is None:
            logger.debug(f"No embedding for query '{query_text[:50]}'")
            return SearchResult(mode=mode, query=query_text)

        self.store.ensure_embeddings(candidates)
        pairs = [(t, t.embedding_vector) for t in candidates if t is not exclude]
        return rank_by_similarity(query_vector, pairs, threshold, mode=mode, query_text=query_text)

    def _next_sequence(self) -> int:
        self._latest_seq += 1
        return self._latest_seq

    def _publish(
        self,
        visible: List[Transaction],
        semantic: List[Transaction],
        result: SearchResult
    ) -> None:
        self._filtered = list(visible)
        self._semantic = list(semantic)
        self.last_result = result
        self.state = SearchState.DONE

        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Result listener failed: {e}")

    def _update_search_stats(self, search_time: float, mode: SearchMode) -> None:
        """Update search performance statistics."""
        self._stats['total_searches'] += 1
        if mode is SearchMode.SEMANTIC:
            self._stats['semantic_searches'] += 1
        elif mode is SearchMode.SEMANTIC_FALLBACK:
            self._stats['semantic_searches'] += 1
            self._stats['semantic_fallbacks'] += 1
        elif mode is SearchMode.TEXT:
            self._stats['text_searches'] += 1

        # Update rolling average
        total_searches = self._stats['total_searches']
        current_avg = self._stats['avg_search_time']
        self._stats['avg_search_time'] = (
            (current_avg * (total_searches - 1) + search_time) / total_searches
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get coordinator statistics."""
        return {
            **self._stats,
            **self.store.get_stats(),
            'embedding': self.provider.get_stats(),
            'live_threshold': self.live_threshold,
            'similar_threshold': self.similar_threshold,
            'state': self.state.value,
            'visible_transactions': len(self._filtered),
        }

    async def health_check(self) -> Dict[str, Any]:
        """Report whether semantic search is available."""
        semantic_ready = self.provider.is_available
        return {
            'status': 'healthy' if semantic_ready else 'degraded',
            'semantic_available': semantic_ready,
            'stats': self.get_stats(),
            'timestamp': time.time()
        }

    async def close(self) -> None:
        """Clean up resources."""
        self._debouncer.cancel()
        await self._debouncer.wait()
        if self._owns_executor:
            self.executor.shutdown(wait=True)
        logger.info("Search coordinator closed")
