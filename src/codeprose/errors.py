"""Exceptions raised at the loading and embedding boundaries."""

from __future__ import annotations

from pathlib import Path


class CodeproseError(Exception):
    """Base class for all codeprose failures."""


class LoadError(CodeproseError):
    """A file could not be read as UTF-8 text."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load {path}: {reason}")


class PathNotRepresentableError(CodeproseError):
    """A path cannot be turned into a portable, prefix-relative text key."""

    def __init__(self, path: Path | str) -> None:
        self.path = path
        super().__init__(f"Path is not representable as a text key: {path!r}")


class EmbeddingError(CodeproseError):
    """The embedding service failed or returned no vector."""
