"""Embedding pipeline: extracted sentences in, Qdrant points out."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Collection, Iterable, Literal

from codeprose.embedding.encoder import EmbeddingModel
from codeprose.index.storage import PointId, QdrantVectorStore
from codeprose.ingestion.loader import OnError, iter_files_from_dir
from codeprose.models import SourceFile
from codeprose.utils.files import compute_sha256
from codeprose.utils.text import document_text

LOGGER = logging.getLogger(__name__)

EmbedMode = Literal["file", "sentence"]
PointIds = Literal["counter", "content"]


@dataclass(slots=True)
class IndexStats:
    files: int = 0
    points: int = 0
    skipped: int = 0
    sentences: int = 0
    processed_files: list[str] = field(default_factory=list)

    def record(self, path: str, *, points: int, sentences: int, skipped: bool = False) -> None:
        self.files += 1
        self.sentences += sentences
        self.points += points
        if skipped:
            self.skipped += 1
        self.processed_files.append(path)


def content_point_id(record: SourceFile, index: int | None = None) -> str:
    """Deterministic point id from the file path, its content hash and a sentence index."""
    key = f"{record.path}:{compute_sha256(record.contents)}"
    if index is not None:
        key = f"{key}:{index}"
    return str(uuid.uuid5(uuid.NAMESPACE_URL, key))


class Indexer:
    """Coordinates embedding and persistence of parsed source files.

    Embedding and storage failures are not caught here; they reach the caller
    unchanged.
    """

    def __init__(
        self,
        embedder: EmbeddingModel | None,
        store: QdrantVectorStore | None,
        *,
        mode: EmbedMode = "file",
        point_ids: PointIds = "counter",
    ) -> None:
        if mode not in ("file", "sentence"):
            raise ValueError(f"Unknown embed mode: {mode}")
        if point_ids not in ("counter", "content"):
            raise ValueError(f"Unknown point id strategy: {point_ids}")
        self.embedder = embedder
        self.store = store
        self.mode = mode
        self.point_ids = point_ids

    @property
    def dry_run(self) -> bool:
        return self.embedder is None or self.store is None

    def _point_id(self, record: SourceFile, index: int | None = None) -> PointId | None:
        if self.point_ids == "content":
            return content_point_id(record, index)
        return None

    def _index_file(self, record: SourceFile) -> int:
        text = document_text(record.sentences)
        if not text:
            return 0
        vector = self.embedder.embed_query(text)
        self.store.upsert(
            vector,
            {"id": record.path, "kind": record.kind.value},
            point_id=self._point_id(record),
        )
        return 1

    def _index_sentences(self, record: SourceFile) -> int:
        numbered = [(i, s.strip()) for i, s in enumerate(record.sentences) if s.strip()]
        if not numbered:
            return 0
        vectors = self.embedder.embed([sentence for _, sentence in numbered])
        for (index, sentence), vector in zip(numbered, vectors):
            self.store.upsert(
                vector,
                {"id": record.path, "kind": record.kind.value, "sentence": sentence, "index": index},
                point_id=self._point_id(record, index),
            )
        return len(numbered)

    def index_file(self, record: SourceFile) -> int:
        """Embed and store one parsed record. Returns the number of points written."""
        if self.dry_run:
            return 0
        if self.mode == "sentence":
            return self._index_sentences(record)
        return self._index_file(record)

    def index(self, records: Iterable[SourceFile]) -> IndexStats:
        stats = IndexStats()
        for record in records:
            points = self.index_file(record)
            skipped = not points and not self.dry_run
            if skipped:
                LOGGER.warning("No sentences extracted from %s", record.path)
            stats.record(
                record.path, points=points, sentences=len(record.sentences), skipped=skipped
            )
        return stats

    def index_directory(
        self,
        root: Path,
        extensions: Collection[str],
        *,
        on_error: OnError = "raise",
    ) -> IndexStats:
        """Load, extract and index every allowed file under ``root``."""
        LOGGER.info("Indexing %s (extensions: %s)", root, ", ".join(sorted(extensions)))
        return self.index(iter_files_from_dir(root, extensions, on_error=on_error))
