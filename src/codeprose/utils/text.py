"""Text helpers for preparing embedding input."""

from __future__ import annotations

from typing import Iterable

# Roughly 8k tokens at ~4 chars per token, the OpenAI embedding input limit.
MAX_EMBED_CHARS = 30000


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Strip lines, drop empty ones and join the rest with newlines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def truncate(text: str, *, max_chars: int = MAX_EMBED_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars]


def document_text(sentences: Iterable[str], *, max_chars: int = MAX_EMBED_CHARS) -> str:
    """Build the single text embedded for a whole file."""
    return truncate(normalize_whitespace(sentences), max_chars=max_chars)
