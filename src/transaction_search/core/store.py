"""In-memory transaction store with cached title embeddings."""

import logging
import threading
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from ..models.transaction import Transaction
from ..utils.validators import validate_transactions_batch
from .embeddings import EmbeddingProvider

logger = logging.getLogger(__name__)


class TransactionStore:
    """
    Ordered in-memory collection of transactions.

    Insertion order is preserved and is the order filters see. Each
    transaction's embedding is computed at most once: eagerly when added,
    or lazily by ``ensure_embeddings`` for transactions that arrived
    without one. Texts an available provider cannot embed are remembered
    so they are not retried on every search.
    """

    def __init__(self, provider: EmbeddingProvider):
        """
        Initialize transaction store.

        Args:
            provider: Provider used to embed titles
        """
        self.provider = provider
        self._transactions: List[Transaction] = []
        self._index: Dict[str, int] = {}
        self._unembeddable: set = set()
        self._lock = threading.Lock()

    def add(self, transactions: Sequence[Transaction], embed: bool = True) -> List[Transaction]:
        """
        Add a batch of transactions, embedding their titles.

        Blocking; run it in an executor from async code.

        Args:
            transactions: New transactions
            embed: Compute missing embeddings now

        Returns:
            The added transactions

        Raises:
            ValidationError: If the batch is invalid or reuses an existing ID
        """
        with self._lock:
            validate_transactions_batch(transactions, existing_ids=set(self._index))

        self.provider.prepare([t.title for t in transactions])
        if embed:
            self._embed(transactions)

        with self._lock:
            # A concurrent add may have taken an ID while this batch was embedding
            validate_transactions_batch(transactions, existing_ids=self._index.keys())
            start_idx = len(self._transactions)
            self._transactions.extend(transactions)
            for i, transaction in enumerate(transactions):
                self._index[transaction.id] = start_idx + i

        logger.info(f"Added {len(transactions)} transactions to store")
        return list(transactions)

    def ensure_embeddings(self, transactions: Iterable[Transaction]) -> int:
        """
        Embed transactions that have no embedding yet.

        Returns:
            Number of embeddings computed
        """
        pending = [
            t for t in transactions
            if not t.has_embedding and t.id not in self._unembeddable
        ]
        if not pending:
            return 0
        return self._embed(pending)

    def _embed(self, transactions: Sequence[Transaction]) -> int:
        pending = [t for t in transactions if not t.has_embedding]
        if not pending:
            return 0

        if not self.provider.is_available:
            return 0
        vectors = self.provider.embed_batch([t.title for t in pending])

        computed = 0
        with self._lock:
            for transaction, vector in zip(pending, vectors):
                # Another pass may have filled it in meanwhile
                if transaction.has_embedding:
                    continue
                if vector is None:
                    self._unembeddable.add(transaction.id)
                    continue
                transaction.set_embedding(vector)
                computed += 1

        missing = len(pending) - computed
        if missing:
            logger.debug(f"{missing} of {len(pending)} titles could not be embedded")
        return computed

    def get(self, transaction_id: str) -> Optional[Transaction]:
        """Get a transaction by ID."""
        with self._lock:
            idx = self._index.get(transaction_id)
            return None if idx is None else self._transactions[idx]

    def all(self) -> List[Transaction]:
        """Snapshot of every transaction in insertion order."""
        with self._lock:
            return list(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.all())

    def __contains__(self, transaction: Transaction) -> bool:
        with self._lock:
            idx = self._index.get(transaction.id)
            return idx is not None and self._transactions[idx] is transaction

    def get_stats(self) -> Dict[str, Any]:
        """Get store statistics."""
        transactions = self.all()
        embedded = sum(1 for t in transactions if t.has_embedding)
        return {
            'total_transactions': len(transactions),
            'embedded_transactions': embedded,
            'unembeddable_transactions': len(self._unembeddable),
        }
