"""Sentence-transformer embeddings for transaction search."""

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

try:
    from sentence_transformers import SentenceTransformer
    import torch
    TRANSFORMERS_AVAILABLE = True
except ImportError:
    TRANSFORMERS_AVAILABLE = False

from ..utils.text_processing import clean_text
from .embeddings import EmbeddingProvider
from .exceptions import ModelUnavailableError

logger = logging.getLogger(__name__)

# Loaded models, shared by every provider in the process
_MODEL_CACHE: Dict[Tuple[str, str], Any] = {}
_MODEL_LOCK = threading.Lock()


def get_best_device() -> str:
    """Determine the best available device."""
    if torch.cuda.is_available():
        return "cuda"
    elif hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
        return "mps"
    else:
        return "cpu"


def load_sentence_model(model_name: str, device: Optional[str] = None) -> Any:
    """
    Load a sentence-transformer model once per process.

    Later calls with the same name and device return the same instance.

    Raises:
        ModelUnavailableError: If the library is missing or the model cannot be loaded
    """
    if not TRANSFORMERS_AVAILABLE:
        raise ModelUnavailableError(
            "Transformer dependencies not available. Install with: "
            "pip install sentence-transformers torch"
        )

    if device is None or device == "auto":
        device = get_best_device()

    key = (model_name, device)
    with _MODEL_LOCK:
        if key not in _MODEL_CACHE:
            try:
                _MODEL_CACHE[key] = SentenceTransformer(model_name, device=device)
            except Exception as e:
                raise ModelUnavailableError(f"Failed to load {model_name}: {e}")
            logger.info(f"Loaded sentence model {model_name} on {device}")
        return _MODEL_CACHE[key]


class SentenceEmbeddingProvider(EmbeddingProvider):
    """
    Whole-text embeddings from a sentence-transformer model.

    The model is asked for one vector per text; no manual tokenization or
    averaging happens here. If loading fails the provider stays
    unavailable and every ``embed`` call returns None.
    """

    strategy = "sentence"

    def __init__(
        self,
        model_name: str = "all-MiniLM-L6-v2",
        device: Optional[str] = None,
        batch_size: int = 32,
        model: Optional[Any] = None
    ):
        """
        Initialize sentence embedding provider.

        Args:
            model_name: Sentence transformer model name
            device: Device to run on ('cpu', 'cuda', 'mps', 'auto')
            batch_size: Batch size for batch encoding
            model: Already loaded model exposing ``encode``; skips loading
        """
        super().__init__()
        self.model_name = model_name
        self.batch_size = batch_size
        self._model = model

        if self._model is None:
            try:
                self._model = load_sentence_model(model_name, device)
            except ModelUnavailableError as e:
                logger.error(f"Sentence embedding unavailable: {e}")
                return

        get_dimension = getattr(self._model, "get_sentence_embedding_dimension", None)
        self._dimension = get_dimension() if get_dimension else None
        self._available = True

    def _encode(self, text: str) -> Optional[np.ndarray]:
        return self._model.encode(text, convert_to_numpy=True)

    def embed_batch(self, texts: Sequence[str]) -> List[Optional[np.ndarray]]:
        """Embed several texts in one model call."""
        results: List[Optional[np.ndarray]] = [None] * len(texts)
        if not self._available:
            return results

        cleaned = [clean_text(text) for text in texts]
        indices = [i for i, text in enumerate(cleaned) if text]
        if not indices:
            return results

        try:
            vectors = self._model.encode(
                [cleaned[i] for i in indices],
                batch_size=self.batch_size,
                convert_to_numpy=True
            )
        except Exception as e:
            logger.warning(f"Batch embedding of {len(indices)} texts failed: {e}")
            return results

        for i, vector in zip(indices, vectors):
            results[i] = self._finalize(vector)
        return results

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats['model_name'] = self.model_name
        return stats
