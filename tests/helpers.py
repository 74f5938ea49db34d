"""
Shared test helpers for transaction search tests.

Plain classes and factories (not fixtures) so test modules can import
them directly. Embedding providers here are deterministic stand-ins for
a real model.
"""

import threading
import time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, Optional, Sequence

import numpy as np

from transaction_search.core.embeddings import EmbeddingProvider
from transaction_search.models.transaction import Transaction, TransactionType

# Axes: coffee, money, shopping, fitness
KEYWORD_VECTORS: Dict[str, Sequence[float]] = {
    "amazon purchase": [0.0, 0.0, 1.0, 0.0],
    "salary deposit": [0.0, 1.0, 0.0, 0.0],
    "starbucks coffee": [1.0, 0.0, 0.1, 0.0],
    "gym membership fee": [0.0, 0.1, 0.0, 1.0],
    "cheque to landlord": [0.0, 0.6, 0.0, 0.0],
    "coffee": [1.0, 0.0, 0.0, 0.0],
    "income": [0.0, 1.0, 0.0, 0.0],
    "online shopping": [0.1, 0.0, 1.0, 0.0],
    "workout": [0.0, 0.0, 0.0, 1.0],
    "latte": [0.9, 0.0, 0.0, 0.1],
}


class KeywordEmbeddingProvider(EmbeddingProvider):
    """Looks cleaned text up in a fixed table; unknown text has no embedding."""

    strategy = "keyword"

    def __init__(self, vectors: Optional[Dict[str, Sequence[float]]] = None, dimension: int = 4):
        super().__init__()
        self.vectors = dict(KEYWORD_VECTORS if vectors is None else vectors)
        self._dimension = dimension
        self._available = True
        self.calls = []
        self._calls_lock = threading.Lock()

    def _encode(self, text: str):
        with self._calls_lock:
            self.calls.append(text)
        vector = self.vectors.get(text)
        return None if vector is None else np.asarray(vector, dtype=np.float32)


class SlowEmbeddingProvider(KeywordEmbeddingProvider):
    """Keyword provider that takes ``delay`` seconds for the texts in ``slow``."""

    def __init__(self, slow: Iterable[str], delay: float = 0.3, **kwargs):
        super().__init__(**kwargs)
        self.slow = set(slow)
        self.delay = delay

    def _encode(self, text: str):
        if text in self.slow:
            time.sleep(self.delay)
        return super()._encode(text)


class UnavailableEmbeddingProvider(EmbeddingProvider):
    """Provider whose model never loaded."""

    strategy = "unavailable"

    def _encode(self, text: str):
        raise AssertionError("encode must not be called on an unavailable provider")


class FakeSentenceModel:
    """Minimal object with the sentence-transformers ``encode`` interface."""

    def __init__(self, dimension: int = 3):
        self.dimension = dimension
        self.inputs = []

    def get_sentence_embedding_dimension(self) -> int:
        return self.dimension

    def encode(self, texts, batch_size: int = 32, convert_to_numpy: bool = True):
        single = isinstance(texts, str)
        batch = [texts] if single else list(texts)
        self.inputs.extend(batch)
        vectors = np.array(
            [[float(len(t)), float(t.count("a")), 1.0] for t in batch],
            dtype=np.float32
        )
        return vectors[0] if single else vectors


def days_ago(days: int, hour: int = 12) -> datetime:
    """A datetime ``days`` calendar days before today at ``hour``:00."""
    today = datetime.now().replace(hour=hour, minute=0, second=0, microsecond=0)
    return today - timedelta(days=days)


def make_transaction(
    title: str = "Amazon Purchase",
    *,
    amount="-50.00",
    type: TransactionType = TransactionType.WITHDRAWAL,
    date: Optional[datetime] = None,
    is_cheque: bool = False,
    category: Sequence[str] = (),
    id: Optional[str] = None,
    embedding: Optional[Sequence[float]] = None
) -> Transaction:
    """
    Factory for Transaction instances with sensible defaults.

    Not a fixture; accepts parameters so tests can vary fields.
    """
    kwargs = {}
    if id is not None:
        kwargs["id"] = id
    return Transaction(
        date=date or days_ago(1),
        title=title,
        type=type,
        amount=amount,
        is_cheque=is_cheque,
        category=tuple(category),
        embedding=embedding,
        **kwargs
    )
