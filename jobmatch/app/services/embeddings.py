import logging
import re
import threading
from functools import lru_cache
from typing import Any, Callable

import numpy as np

from ..config import EMBEDDINGS_ENABLED, EMBEDDINGS_MODEL
from ..utils.error_handlers import EmbeddingError, get_error_message


logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")

# Pooling/normalization contract the ranker relies on (dot product == cosine).
POOLING = "mean"
NORMALIZE = True


def normalize_text(text: str) -> str:
    t = (text or "").strip()
    t = _WS_RE.sub(" ", t)
    return t


def l2_normalize(vector: Any) -> list[float]:
    arr = np.asarray(vector, dtype=np.float64).reshape(-1)
    if arr.size == 0:
        raise EmbeddingError("Embedding backend returned an empty vector")
    if not np.all(np.isfinite(arr)):
        raise EmbeddingError("Embedding backend returned non-finite values")
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        raise EmbeddingError("Embedding backend returned a zero vector")
    return [float(x) for x in (arr / norm).tolist()]


def _load_fastembed(model_name: str):
    from fastembed import TextEmbedding

    # all-MiniLM-L6-v2 is mean-pooled by fastembed; output is re-normalized in embed().
    return TextEmbedding(model_name=model_name)


class EmbeddingGenerator:
    """
    Text -> unit-length vector.

    The backend model is loaded on the first `embed` call and then shared for
    the life of the instance. Loading happens at most once even under
    concurrent first calls.
    """

    def __init__(self, model_name: str = EMBEDDINGS_MODEL, *, loader: Callable[[str], Any] | None = None):
        self.model_name = model_name
        self._loader = loader or _load_fastembed
        self._backend = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._backend is not None

    def _get_backend(self):
        backend = self._backend
        if backend is not None:
            return backend
        with self._lock:
            if self._backend is None:
                logger.info("Loading embedding model %s", self.model_name)
                try:
                    self._backend = self._loader(self.model_name)
                except Exception as e:
                    logger.error("Embedding model %s failed to load: %s", self.model_name, e)
                    raise EmbeddingError(get_error_message("embedding_unavailable")) from e
                logger.info("Embedding model %s loaded", self.model_name)
            return self._backend

    def embed(self, text: str) -> list[float]:
        t = normalize_text(text)
        if not t:
            raise EmbeddingError("Cannot embed empty text")

        backend = self._get_backend()
        try:
            # fastembed yields one numpy array per input document
            raw = next(iter(backend.embed([t])))
        except Exception as e:
            logger.error("Embedding failed (%s): %s", self.model_name, e)
            raise EmbeddingError(get_error_message("embedding_unavailable")) from e
        return l2_normalize(raw)


@lru_cache(maxsize=1)
def _shared_generator() -> EmbeddingGenerator:
    return EmbeddingGenerator(EMBEDDINGS_MODEL)


def get_embedding_generator() -> EmbeddingGenerator:
    """FastAPI dependency: one generator (and one loaded model) per process."""
    if not EMBEDDINGS_ENABLED:
        raise EmbeddingError("Embeddings are disabled (EMBEDDINGS_ENABLED=0)")
    return _shared_generator()
