"""FastAPI application exposing extraction, indexing and search."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from codeprose.config import AppConfig
from codeprose.embedding.encoder import EmbeddingConfig, EmbeddingModel, default_model
from codeprose.errors import CodeproseError
from codeprose.index.indexer import Indexer
from codeprose.index.search import Searcher, SearchResult
from codeprose.index.storage import QdrantVectorStore
from codeprose.ingestion.extractors import classify, extract_sentences

LOGGER = logging.getLogger(__name__)

MAX_TOP_K = 20
PROVIDERS = ("openai", "local")

app = FastAPI(title="codeprose", version="0.1.0")


class SearchPayload(BaseModel):
    query: str
    collection: str | None = None
    top_k: int = 1
    provider: str = "openai"
    model: str | None = None


class ExtractPayload(BaseModel):
    path: str
    contents: str


class IndexPayload(BaseModel):
    project_dir: str | None = None
    collection: str | None = None
    mode: str = "file"
    reset: bool = True
    provider: str = "openai"
    model: str | None = None


def _config(
    collection: str | None = None,
    project_dir: Path | None = None,
    *,
    provider: str = "openai",
    model: str | None = None,
) -> AppConfig:
    if provider not in PROVIDERS:
        raise HTTPException(status_code=400, detail=f"Unknown provider: {provider}")
    env_config = AppConfig.from_env()
    # An explicit project directory names its own collection; COLLECTION only
    # applies to the environment's project.
    return AppConfig(
        project_dir=project_dir if project_dir is not None else env_config.project_dir,
        collection=collection or (env_config.collection if project_dir is None else None),
        provider=provider,
        model_name=model or default_model(provider),
        qdrant_url=env_config.qdrant_url,
        qdrant_api_key=env_config.qdrant_api_key,
    )


def _embedder(config: AppConfig) -> EmbeddingModel:
    return EmbeddingModel(EmbeddingConfig(provider=config.provider, model_name=config.model_name))


def _open_store(config: AppConfig, embedder: EmbeddingModel) -> QdrantVectorStore:
    return QdrantVectorStore.connect(
        config.qdrant_url,
        config.collection,
        api_key=config.qdrant_api_key,
        dimension=embedder.dimension,
    )


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/extract")
async def extract(payload: ExtractPayload) -> dict[str, Any]:
    return {
        "path": payload.path,
        "kind": classify(payload.path).value,
        "sentences": extract_sentences(payload.path, payload.contents),
    }


@app.post("/search")
async def search(payload: SearchPayload) -> dict[str, List[SearchResult]]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    top_k = max(1, min(payload.top_k, MAX_TOP_K))
    config = _config(payload.collection, provider=payload.provider, model=payload.model)
    embedder = _embedder(config)
    store = _open_store(config, embedder)
    try:
        results = Searcher(embedder, store).search(query, top_k=top_k)
    finally:
        store.close()
    return {"results": results}


def _run_index_job(root: Path, config: AppConfig, reset: bool) -> dict[str, Any]:
    embedder = _embedder(config)
    store = _open_store(config, embedder)
    try:
        if reset:
            store.reset_collection()
        else:
            store.ensure_collection()
        indexer = Indexer(embedder, store, mode=config.embed_mode)
        stats = indexer.index_directory(root, config.extensions, on_error="skip")
    finally:
        store.close()

    return {
        "files": stats.files,
        "sentences": stats.sentences,
        "points": stats.points,
        "skipped": stats.skipped,
        "processed_files": stats.processed_files,
    }


@app.post("/index")
async def index(payload: IndexPayload) -> dict[str, Any]:
    if payload.mode not in ("file", "sentence"):
        raise HTTPException(status_code=400, detail=f"Unknown mode: {payload.mode}")

    project_dir = Path(payload.project_dir).expanduser() if payload.project_dir else None
    config = _config(
        payload.collection, project_dir, provider=payload.provider, model=payload.model
    )
    config.embed_mode = payload.mode
    root = config.resolve_project_dir()
    if not root.is_dir():
        raise HTTPException(status_code=404, detail=f"Directory not found: {root}")

    try:
        stats = await asyncio.to_thread(_run_index_job, root, config, payload.reset)
    except CodeproseError as exc:
        LOGGER.exception("Indexing failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return {"status": "ok", "collection": config.collection, "stats": stats}
