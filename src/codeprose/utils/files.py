"""Utility helpers for working with files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Collection, Iterator

from codeprose.ingestion.extractors import file_extension


def has_extension(path: Path, extensions: Collection[str]) -> bool:
    """Return True when the path's extension is in the allow-list."""
    ext = file_extension(path)
    return ext is not None and ext in extensions


def iter_source_paths(root: Path, extensions: Collection[str]) -> Iterator[Path]:
    """Yield files under ``root`` with an allowed extension, descending into directories."""
    for child in sorted(root.iterdir()):
        if child.is_dir():
            yield from iter_source_paths(child, extensions)
        elif child.is_file() and has_extension(child, extensions):
            yield child


def compute_sha256(text: str) -> str:
    """Compute the SHA256 hex digest of UTF-8 encoded text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
