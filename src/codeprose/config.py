"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Tuple

from codeprose.embedding.encoder import DEFAULT_DIMENSION, DEFAULT_MODEL

DEFAULT_EXTENSIONS: Tuple[str, ...] = ("rs", "md", "toml")
DEFAULT_QDRANT_URL = "http://localhost:6333"

_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env_flag(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


@dataclass(slots=True)
class AppConfig:
    project_dir: Path | None = None
    collection: str | None = None
    qdrant_url: str = DEFAULT_QDRANT_URL
    qdrant_api_key: str | None = None
    provider: str = "openai"
    model_name: str = DEFAULT_MODEL
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    embed_mode: str = "file"
    embedding: bool = True
    vector_size: int = DEFAULT_DIMENSION

    def __post_init__(self) -> None:
        if self.project_dir is None:
            self.project_dir = Path.cwd()
        if not self.collection:
            self.collection = self.resolve_project_dir().name or "codeprose"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a config from PROJECT_DIR, COLLECTION, EMBEDDING and QDRANT_* variables."""
        env = os.environ if environ is None else environ
        project_dir = env.get("PROJECT_DIR")
        return cls(
            project_dir=Path(project_dir) if project_dir else None,
            collection=env.get("COLLECTION") or None,
            qdrant_url=env.get("QDRANT_URL", DEFAULT_QDRANT_URL),
            qdrant_api_key=env.get("QDRANT_API_KEY") or None,
            embedding=_env_flag(env.get("EMBEDDING"), True),
        )

    def resolve_project_dir(self, base_dir: Path | None = None) -> Path:
        if self.project_dir is None:
            self.project_dir = Path.cwd()
        path = Path(self.project_dir).expanduser()
        if path.is_absolute():
            return path
        return ((base_dir or Path.cwd()) / path).resolve()
