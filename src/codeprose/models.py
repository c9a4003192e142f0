"""Core codeprose data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from codeprose.ingestion.extractors import FileKind, classify, extract_sentences


@dataclass(slots=True)
class SourceFile:
    """A loaded repository file and the sentences extracted from it.

    ``path`` is relative to the indexed root and doubles as the payload key in
    the vector store. ``sentences`` stays empty until :meth:`parse` runs.
    """

    path: str
    contents: str
    sentences: List[str] = field(default_factory=list)

    @property
    def kind(self) -> FileKind:
        return classify(self.path)

    def parse(self) -> None:
        """Populate ``sentences`` from ``contents`` using the extractor for ``kind``."""
        self.sentences = extract_sentences(self.path, self.contents)


@dataclass(slots=True)
class ScoredHit:
    """A point returned by the vector store for a query vector."""

    point_id: int | str
    score: float
    payload: Dict[str, Any]

    @property
    def path(self) -> str | None:
        return self.payload.get("id")
