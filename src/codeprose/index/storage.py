"""Qdrant vector store."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

import numpy as np
from qdrant_client import QdrantClient
from qdrant_client.http import models as rest

from codeprose.embedding.encoder import DEFAULT_DIMENSION
from codeprose.models import ScoredHit

LOGGER = logging.getLogger(__name__)

PointId = int | str


class QdrantVectorStore:
    """Persistence layer for sentence and file embeddings in one Qdrant collection.

    Points without an explicit id get the next value of a process-local
    counter starting at 0. That counter assumes a single writer; concurrent
    writers should pass their own ids (see ``Indexer(point_ids="content")``).
    """

    def __init__(
        self,
        client: QdrantClient,
        collection: str,
        *,
        dimension: int = DEFAULT_DIMENSION,
    ) -> None:
        self.client = client
        self.collection = collection
        self.dimension = dimension
        self._next_id = 0

    @classmethod
    def connect(
        cls,
        url: str,
        collection: str,
        *,
        api_key: str | None = None,
        dimension: int = DEFAULT_DIMENSION,
    ) -> "QdrantVectorStore":
        return cls(QdrantClient(url=url, api_key=api_key), collection, dimension=dimension)

    @property
    def next_id(self) -> int:
        return self._next_id

    def close(self) -> None:
        self.client.close()

    def _vectors_config(self) -> rest.VectorParams:
        return rest.VectorParams(size=self.dimension, distance=rest.Distance.COSINE)

    def reset_collection(self) -> None:
        """Drop the collection if present and recreate it empty."""
        self.client.delete_collection(collection_name=self.collection)
        self.client.create_collection(
            collection_name=self.collection,
            vectors_config=self._vectors_config(),
        )
        self._next_id = 0
        LOGGER.info("Reset collection %s (size=%d, cosine)", self.collection, self.dimension)

    def _max_point_id(self) -> int | None:
        """Largest integer id stored in the collection, ignoring UUID ids."""
        highest: int | None = None
        offset = None
        while True:
            records, offset = self.client.scroll(
                collection_name=self.collection,
                limit=256,
                offset=offset,
                with_payload=False,
                with_vectors=False,
            )
            for record in records:
                if isinstance(record.id, int) and (highest is None or record.id > highest):
                    highest = record.id
            if offset is None:
                return highest

    def ensure_collection(self) -> bool:
        """Create the collection if it does not exist. Returns True when created.

        An existing collection is kept, and the id counter continues after the
        largest integer id already stored so earlier points are not overwritten.
        """
        if self.client.collection_exists(collection_name=self.collection):
            highest = self._max_point_id()
            self._next_id = 0 if highest is None else highest + 1
            LOGGER.info("Keeping collection %s (next id %d)", self.collection, self._next_id)
            return False
        self.client.create_collection(
            collection_name=self.collection,
            vectors_config=self._vectors_config(),
        )
        return True

    def upsert(
        self,
        vector: np.ndarray,
        payload: Mapping[str, Any],
        *,
        point_id: PointId | None = None,
    ) -> PointId:
        """Store one vector with its payload and return the point id used."""
        values = np.asarray(vector, dtype="float32")
        if values.shape != (self.dimension,):
            raise ValueError(
                f"Expected vector of size {self.dimension}, got shape {values.shape}"
            )
        assigned = self._next_id if point_id is None else point_id
        self.client.upsert(
            collection_name=self.collection,
            points=[
                rest.PointStruct(id=assigned, vector=values.tolist(), payload=dict(payload))
            ],
        )
        if point_id is None:
            self._next_id += 1
        LOGGER.info("Embedded: %s", payload.get("id", assigned))
        return assigned

    def search(self, vector: np.ndarray, *, top_k: int = 1) -> List[ScoredHit]:
        query = np.asarray(vector, dtype="float32").tolist()
        response = self.client.query_points(
            collection_name=self.collection,
            query=query,
            limit=top_k,
            with_payload=True,
        )
        results: List[ScoredHit] = []
        for point in response.points:
            payload: Dict[str, Any] = dict(point.payload or {})
            results.append(ScoredHit(point_id=point.id, score=float(point.score), payload=payload))
        return results

    def nearest(self, vector: np.ndarray) -> ScoredHit | None:
        """Return the single closest point, or None for an empty collection."""
        hits = self.search(vector, top_k=1)
        return hits[0] if hits else None

    def count(self) -> int:
        return self.client.count(collection_name=self.collection, exact=True).count
