"""Embedding providers turning transaction titles and queries into vectors."""

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer

from ..config.settings import EmbeddingSettings
from ..utils.text_processing import clean_text, tokenize
from .exceptions import ConfigurationError, ModelUnavailableError

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """
    Base class for text embedding providers.

    ``embed`` never raises for ordinary input: an unavailable model, text
    that is empty after cleaning, or text the model cannot represent all
    yield None. Callers skip such items for semantic purposes.

    Providers are read-only after construction and safe to share between
    worker threads.
    """

    strategy = "base"

    def __init__(self) -> None:
        self._available = False
        self._dimension: Optional[int] = None

    @property
    def is_available(self) -> bool:
        """Whether the underlying model loaded."""
        return self._available

    @property
    def dimension(self) -> Optional[int]:
        """Vector length produced by this provider, None if unavailable."""
        return self._dimension

    def embed(self, text: str) -> Optional[np.ndarray]:
        """
        Embed a single text.

        Args:
            text: Raw title or query

        Returns:
            Read-only float32 vector, or None when no embedding can be produced
        """
        if not self._available:
            return None

        cleaned = clean_text(text)
        if not cleaned:
            return None

        try:
            vector = self._encode(cleaned)
        except Exception as e:
            logger.warning(f"Embedding failed for '{cleaned[:50]}': {e}")
            return None

        return self._finalize(vector)

    def embed_batch(self, texts: Sequence[str]) -> List[Optional[np.ndarray]]:
        """Embed several texts; one optional vector per input text."""
        return [self.embed(text) for text in texts]

    def prepare(self, texts: Sequence[str]) -> None:
        """Hook called with the titles of every batch the store ingests."""

    @abstractmethod
    def _encode(self, text: str) -> Optional[np.ndarray]:
        """Encode already-cleaned, non-empty text."""

    def _finalize(self, vector: Optional[Any]) -> Optional[np.ndarray]:
        """Validate a raw model output and freeze it."""
        if vector is None:
            return None

        vector = np.array(vector, dtype=np.float32).ravel()
        if vector.size == 0 or not np.all(np.isfinite(vector)) or not np.any(vector):
            return None
        if self._dimension is not None and vector.size != self._dimension:
            logger.warning(
                f"{self.strategy} provider produced {vector.size} values, expected {self._dimension}"
            )
            return None

        vector.setflags(write=False)
        return vector

    def get_stats(self) -> Dict[str, Any]:
        """Get provider statistics."""
        return {
            'strategy': self.strategy,
            'is_available': self._available,
            'dimension': self._dimension,
        }


def load_word_vectors(
    path: Union[str, Path],
    limit: Optional[int] = None
) -> Dict[str, np.ndarray]:
    """
    Load word vectors from a GloVe or word2vec text file.

    Each line holds a word followed by its components. A word2vec
    ``<count> <dimension>`` header line is skipped.

    Args:
        path: Text file with one vector per line
        limit: Stop after this many vectors

    Returns:
        Mapping from word to vector

    Raises:
        ModelUnavailableError: If the file cannot be read or holds no vectors
    """
    path = Path(path)
    vectors: Dict[str, np.ndarray] = {}

    try:
        with open(path, encoding="utf-8") as f:
            for line_number, line in enumerate(f):
                parts = line.rstrip().split(" ")
                if len(parts) < 2:
                    continue
                if line_number == 0 and len(parts) == 2 and all(p.isdigit() for p in parts):
                    continue
                try:
                    vectors[parts[0]] = np.asarray(parts[1:], dtype=np.float32)
                except ValueError:
                    logger.debug(f"Skipping malformed line {line_number + 1} in {path}")
                    continue
                if limit is not None and len(vectors) >= limit:
                    break
    except OSError as e:
        raise ModelUnavailableError(f"Cannot read word vectors from {path}: {e}")

    if not vectors:
        raise ModelUnavailableError(f"No word vectors found in {path}")

    logger.info(f"Loaded {len(vectors)} word vectors from {path}")
    return vectors


class TokenAverageEmbeddingProvider(EmbeddingProvider):
    """
    Averages word vectors of the tokens in a text.

    For models that only expose token-level vectors. Each recognised token
    contributes its vector to a fixed-size sum (shorter vectors fill a
    prefix, longer ones are truncated) which is then divided by the number
    of recognised tokens. Text with no recognised token has no embedding.
    """

    strategy = "token"

    def __init__(
        self,
        word_vectors: Optional[Mapping[str, Sequence[float]]],
        dimension: int = 300
    ):
        """
        Initialize token-average provider.

        Args:
            word_vectors: Mapping from lowercase token to vector
            dimension: Length of the averaged vector
        """
        super().__init__()
        self._vectors: Mapping[str, Sequence[float]] = word_vectors or {}

        if not self._vectors:
            logger.error("Token embedding unavailable: no word vectors supplied")
            return

        self._dimension = dimension
        self._available = True
        logger.info(f"Token-average embedding ready with {len(self._vectors)} words, dim={dimension}")

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        dimension: int = 300,
        limit: Optional[int] = None
    ) -> "TokenAverageEmbeddingProvider":
        """Build a provider from a word-vector file; unavailable if loading fails."""
        try:
            word_vectors = load_word_vectors(path, limit=limit)
        except ModelUnavailableError as e:
            logger.error(f"Failed to load word vectors: {e}")
            word_vectors = None
        return cls(word_vectors, dimension=dimension)

    def _encode(self, text: str) -> Optional[np.ndarray]:
        sum_vector = np.zeros(self._dimension, dtype=np.float64)
        count = 0

        for token in tokenize(text):
            vector = self._vectors.get(token)
            if vector is None:
                continue
            vector = np.asarray(vector, dtype=np.float64)
            n = min(vector.size, self._dimension)
            sum_vector[:n] += vector[:n]
            count += 1

        if count == 0:
            return None
        return sum_vector / count

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats['vocabulary_size'] = len(self._vectors)
        return stats


class TfidfEmbeddingProvider(EmbeddingProvider):
    """
    TF-IDF vectors from a vectorizer fitted once.

    The vectorizer is fitted on the construction corpus, or, when that is
    empty, on the first ingested batch that yields a vocabulary. The
    vocabulary is frozen after fitting, so every vector has the same length
    for the lifetime of the provider. Text sharing no term with the corpus
    has no embedding.
    """

    strategy = "tfidf"

    def __init__(
        self,
        corpus: Iterable[str],
        max_features: int = 10000,
        ngram_range: Tuple[int, int] = (1, 1),
        stop_words: Optional[str] = 'english'
    ):
        """
        Initialize and fit the TF-IDF provider.

        Args:
            corpus: Texts defining the vocabulary, typically transaction titles
            max_features: Maximum number of terms
            ngram_range: N-gram range for feature extraction
            stop_words: Stop word list passed to the vectorizer
        """
        super().__init__()
        self.vectorizer = TfidfVectorizer(
            max_features=max_features,
            ngram_range=ngram_range,
            stop_words=stop_words,
            lowercase=True,
            strip_accents='unicode',
            token_pattern=r'\b[a-zA-Z][a-zA-Z0-9]*\b'
        )

        self._fit_lock = threading.Lock()

        if not self.fit(corpus):
            logger.warning("TF-IDF embedding not fitted yet, waiting for transactions")

    def fit(self, corpus: Iterable[str]) -> bool:
        """
        Fit the vectorizer unless it is already fitted.

        Args:
            corpus: Texts defining the vocabulary

        Returns:
            Whether the provider is available afterwards
        """
        with self._fit_lock:
            if self._available:
                return True

            texts = [t for t in (clean_text(text) for text in corpus) if t]
            if not texts:
                return False
            try:
                self.vectorizer.fit(texts)
            except ValueError as e:
                # Nothing left after stop words
                logger.error(f"TF-IDF fit failed: {e}")
                return False

            self._dimension = len(self.vectorizer.vocabulary_)
            self._available = True

        logger.info(f"TF-IDF embedding fitted on {len(texts)} texts, dim={self._dimension}")
        return True

    def prepare(self, texts: Sequence[str]) -> None:
        if not self._available:
            self.fit(texts)

    def _encode(self, text: str) -> Optional[np.ndarray]:
        return self.vectorizer.transform([text]).toarray()[0]

    def get_feature_names(self) -> List[str]:
        """Get feature names from the vectorizer."""
        if not self._available:
            return []
        return self.vectorizer.get_feature_names_out().tolist()


def create_embedding_provider(
    settings: Optional[EmbeddingSettings] = None,
    corpus: Optional[Iterable[str]] = None
) -> EmbeddingProvider:
    """
    Build the embedding provider selected by configuration.

    ``auto`` prefers a sentence-level model, then token-level word vectors
    when a vector file is configured, then TF-IDF over ``corpus``.

    Args:
        settings: Embedding settings; defaults are read from the environment
        corpus: Texts used to fit the TF-IDF strategy

    Returns:
        Provider instance; possibly unavailable, never None

    Raises:
        ConfigurationError: If the strategy is unknown
    """
    from .transformer_embeddings import TRANSFORMERS_AVAILABLE, SentenceEmbeddingProvider

    settings = settings or EmbeddingSettings()
    strategy = settings.strategy

    if strategy == "sentence":
        return SentenceEmbeddingProvider(
            model_name=settings.model_name,
            device=settings.device,
            batch_size=settings.batch_size
        )

    if strategy == "token":
        if settings.word_vectors_path is None:
            logger.error("Token strategy selected but EMBEDDING_WORD_VECTORS_PATH is not set")
            return TokenAverageEmbeddingProvider(None, dimension=settings.token_dimension)
        return TokenAverageEmbeddingProvider.from_file(
            settings.word_vectors_path, dimension=settings.token_dimension
        )

    if strategy == "tfidf":
        return TfidfEmbeddingProvider(corpus or [])

    if strategy == "auto":
        if TRANSFORMERS_AVAILABLE:
            provider = SentenceEmbeddingProvider(
                model_name=settings.model_name,
                device=settings.device,
                batch_size=settings.batch_size
            )
            if provider.is_available:
                return provider
            logger.info("Sentence model unavailable, trying token-level fallback")
        if settings.word_vectors_path is not None:
            provider = TokenAverageEmbeddingProvider.from_file(
                settings.word_vectors_path, dimension=settings.token_dimension
            )
            if provider.is_available:
                return provider
        logger.info("Falling back to TF-IDF embeddings")
        return TfidfEmbeddingProvider(corpus or [])

    raise ConfigurationError(f"Unknown embedding strategy: {strategy}")
