"""Semantic search interface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from codeprose.embedding.encoder import EmbeddingModel
from codeprose.index.storage import QdrantVectorStore


@dataclass(slots=True)
class SearchResult:
    path: str
    score: float
    point_id: int | str
    sentence: str | None
    payload: Dict[str, Any]


class Searcher:
    """High-level API to query the vector store."""

    def __init__(self, embedder: EmbeddingModel, store: QdrantVectorStore) -> None:
        self.embedder = embedder
        self.store = store

    def search(self, query: str, *, top_k: int = 1) -> List[SearchResult]:
        embedding = self.embedder.embed_query(query)
        hits = self.store.search(embedding, top_k=top_k)
        return [
            SearchResult(
                path=hit.path or "",
                score=hit.score,
                point_id=hit.point_id,
                sentence=hit.payload.get("sentence"),
                payload=hit.payload,
            )
            for hit in hits
        ]

    def nearest(self, query: str) -> SearchResult | None:
        """Return the file closest to the query, as the original prompt endpoint did."""
        results = self.search(query, top_k=1)
        return results[0] if results else None
