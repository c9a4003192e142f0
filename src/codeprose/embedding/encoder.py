"""Embedding model management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Literal, Sequence

import numpy as np
from openai import OpenAI
from sentence_transformers import SentenceTransformer

from codeprose.errors import EmbeddingError

DEFAULT_MODEL = "text-embedding-ada-002"
DEFAULT_LOCAL_MODEL = "sentence-transformers/all-mpnet-base-v2"
DEFAULT_DIMENSION = 1536

OPENAI_DIMENSIONS = {
    "text-embedding-ada-002": 1536,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}

Provider = Literal["openai", "local"]

logger = logging.getLogger(__name__)


def default_model(provider: str) -> str:
    """Model used when none is named: ada for OpenAI, mpnet for local."""
    return DEFAULT_LOCAL_MODEL if provider == "local" else DEFAULT_MODEL


def _detect_device() -> str | None:
    """Pick a torch device for local models, or None to let the library decide."""
    try:
        import torch

        if torch.cuda.is_available():
            logger.debug(f"CUDA GPU detected: {torch.cuda.get_device_name(0)}")
            return "cuda"
        if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
            logger.debug("Apple MPS GPU detected")
            return "mps"
        logger.debug("No GPU detected, will use CPU")
        return "cpu"
    except ImportError:
        logger.debug("PyTorch not available for device detection")
        return None


@dataclass(slots=True)
class EmbeddingConfig:
    provider: Provider = "openai"
    model_name: str | None = None
    batch_size: int = 16
    normalize: bool = True
    api_key: str | None = None
    device: str | None = None


class EmbeddingModel:
    """Turns sentences into float32 vectors through OpenAI or a local model.

    The ``openai`` provider calls the embeddings API (1536 dimensions for the
    default model). The ``local`` provider wraps ``SentenceTransformer``.
    Any provider failure is raised as :class:`EmbeddingError`.
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        if self.config.model_name is None:
            self.config.model_name = default_model(self.config.provider)
        if self.config.provider == "openai":
            # OpenAI() falls back to OPENAI_API_KEY when api_key is None.
            self._client = OpenAI(api_key=self.config.api_key)
            self._model = None
            self.dimension = OPENAI_DIMENSIONS.get(self.config.model_name, DEFAULT_DIMENSION)
        elif self.config.provider == "local":
            if self.config.device is None:
                self.config.device = _detect_device()
            self._client = None
            self._model = SentenceTransformer(self.config.model_name, device=self.config.device)
            self.dimension = int(self._model.get_sentence_embedding_dimension())
        else:
            raise ValueError(f"Unknown embedding provider: {self.config.provider}")
        logger.info(
            f"Embedding provider: {self.config.provider} | Model: {self.config.model_name} "
            f"| Dimension: {self.dimension}"
        )

    def _embed_openai(self, sentences: List[str]) -> np.ndarray:
        vectors: List[List[float]] = []
        step = max(self.config.batch_size, 1)
        for start in range(0, len(sentences), step):
            batch = sentences[start : start + step]
            try:
                response = self._client.embeddings.create(
                    model=self.config.model_name, input=batch
                )
            except Exception as exc:
                raise EmbeddingError(f"Embedding request failed: {exc}") from exc
            data = sorted(response.data, key=lambda item: item.index)
            if len(data) != len(batch):
                raise EmbeddingError(
                    f"Expected {len(batch)} embeddings, service returned {len(data)}"
                )
            vectors.extend(item.embedding for item in data)
        embeddings = np.asarray(vectors, dtype="float32")
        if self.config.normalize:
            norms = np.linalg.norm(embeddings, axis=1, keepdims=True)
            embeddings = embeddings / np.where(norms == 0, 1.0, norms)
        return embeddings

    def _embed_local(self, sentences: List[str]) -> np.ndarray:
        try:
            embeddings = self._model.encode(
                sentences,
                batch_size=self.config.batch_size,
                show_progress_bar=False,
                convert_to_numpy=True,
                normalize_embeddings=self.config.normalize,
            )
        except Exception as exc:
            raise EmbeddingError(f"Local embedding failed: {exc}") from exc
        return np.asarray(embeddings)

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        """Return float32 embeddings of shape ``(len(texts), dimension)``."""
        sentences = list(texts)
        if not sentences:
            return np.zeros((0, self.dimension), dtype="float32")
        if self.config.provider == "openai":
            embeddings = self._embed_openai(sentences)
        else:
            embeddings = self._embed_local(sentences)
        return embeddings.astype("float32", copy=False)

    def embed_query(self, text: str) -> np.ndarray:
        """Convenience wrapper for single-query embedding."""
        return self.embed([text])[0]
