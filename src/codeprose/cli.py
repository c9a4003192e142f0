"""Command line interface for codeprose."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from codeprose.config import AppConfig
from codeprose.embedding.encoder import EmbeddingConfig, EmbeddingModel, default_model
from codeprose.errors import CodeproseError
from codeprose.index.indexer import Indexer
from codeprose.index.search import Searcher
from codeprose.index.storage import QdrantVectorStore
from codeprose.ingestion.loader import load_file, load_files_from_dir
from codeprose.web.app import app as web_app


console = Console()
app = typer.Typer(help="codeprose - semantic search over repository comments and docs")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_embedder(config: AppConfig) -> EmbeddingModel:
    return EmbeddingModel(EmbeddingConfig(provider=config.provider, model_name=config.model_name))


@app.command()
def extract(
    inputs: List[Path] = typer.Argument(..., help="Files or directories to extract from."),
    ext: Optional[List[str]] = typer.Option(
        None, "--ext", help="Allowed extensions for directories (default: rs, md, toml)"
    ),
    show: bool = typer.Option(False, "--show", help="Print every extracted sentence"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Extract sentences without embedding anything."""
    _setup_logging(verbose)
    extensions = tuple(ext) if ext else AppConfig().extensions

    records = []
    try:
        for item in inputs:
            if item.is_dir():
                records.extend(load_files_from_dir(item, extensions))
            elif item.is_file():
                records.append(load_file(item, item.parent))
            else:
                raise typer.BadParameter(f"Path not found: {item}")
    except CodeproseError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    if not records:
        console.print("[yellow]No matching files found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("File")
    table.add_column("Kind")
    table.add_column("Sentences")
    for record in records:
        table.add_row(record.path, record.kind.value, str(len(record.sentences)))
    console.print(table)

    if show:
        for record in records:
            console.rule(record.path)
            for sentence in record.sentences:
                console.print(sentence, markup=False, highlight=False)


@app.command()
def index(
    project_dir: Optional[Path] = typer.Argument(
        None, help="Repository to index (default: $PROJECT_DIR or the current directory)"
    ),
    collection: Optional[str] = typer.Option(None, help="Qdrant collection (default: directory name)"),
    qdrant_url: Optional[str] = typer.Option(None, "--qdrant-url", help="Qdrant server URL"),
    provider: str = typer.Option("openai", help="Embedding provider: openai or local"),
    model: Optional[str] = typer.Option(None, help="Embedding model name"),
    mode: str = typer.Option("file", help="Embed one point per file or per sentence"),
    ext: Optional[List[str]] = typer.Option(None, "--ext", help="Allowed extensions"),
    no_embedding: bool = typer.Option(False, "--no-embedding", help="Only extract, skip embedding"),
    no_reset: bool = typer.Option(False, "--no-reset", help="Keep the existing collection"),
    skip_errors: bool = typer.Option(False, "--skip-errors", help="Skip unreadable files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Reset the collection, then extract, embed and store a repository."""
    _setup_logging(verbose)
    if mode not in ("file", "sentence"):
        raise typer.BadParameter(f"Unknown mode: {mode}", param_hint="--mode")
    env_config = AppConfig.from_env()
    config = AppConfig(
        project_dir=project_dir if project_dir is not None else env_config.project_dir,
        collection=collection or (env_config.collection if project_dir is None else None),
        qdrant_url=qdrant_url or env_config.qdrant_url,
        qdrant_api_key=env_config.qdrant_api_key,
        provider=provider,
        model_name=model or default_model(provider),
        extensions=tuple(ext) if ext else AppConfig().extensions,
        embed_mode=mode,
        embedding=env_config.embedding and not no_embedding,
    )
    root = config.resolve_project_dir()
    if not root.is_dir():
        raise typer.BadParameter(f"Project directory not found: {root}")

    embedder = store = None
    if config.embedding:
        embedder = _build_embedder(config)
        store = QdrantVectorStore.connect(
            config.qdrant_url,
            config.collection,
            api_key=config.qdrant_api_key,
            dimension=embedder.dimension,
        )
        if no_reset:
            store.ensure_collection()
        else:
            store.reset_collection()

    indexer = Indexer(embedder, store, mode=config.embed_mode)
    console.print(f"Indexing [bold]{root}[/bold] into collection [bold]{config.collection}[/bold]...")
    try:
        stats = indexer.index_directory(
            root, config.extensions, on_error="skip" if skip_errors else "raise"
        )
        total = store.count() if store is not None else None
    except CodeproseError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    finally:
        if store is not None:
            store.close()

    console.print(
        f"Files: {stats.files}, sentences: {stats.sentences}, "
        f"points: {stats.points}, skipped: {stats.skipped}"
    )
    if total is not None:
        console.print(f"Collection total: {total} points")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    collection: Optional[str] = typer.Option(None, help="Qdrant collection"),
    qdrant_url: Optional[str] = typer.Option(None, "--qdrant-url", help="Qdrant server URL"),
    provider: str = typer.Option("openai", help="Embedding provider: openai or local"),
    model: Optional[str] = typer.Option(None, help="Embedding model name"),
    top_k: int = typer.Option(1, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Find the files whose comments best match the query."""
    _setup_logging(verbose)
    env_config = AppConfig.from_env()
    config = AppConfig(
        project_dir=env_config.project_dir,
        collection=collection or env_config.collection,
        qdrant_url=qdrant_url or env_config.qdrant_url,
        qdrant_api_key=env_config.qdrant_api_key,
        provider=provider,
        model_name=model or default_model(provider),
    )

    embedder = _build_embedder(config)
    store = QdrantVectorStore.connect(
        config.qdrant_url,
        config.collection,
        api_key=config.qdrant_api_key,
        dimension=embedder.dimension,
    )
    try:
        results = Searcher(embedder, store).search(query, top_k=top_k)
    finally:
        store.close()

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("File")
    table.add_column("Sentence")
    for result in results:
        table.add_row(f"{result.score:.4f}", result.path, (result.sentence or "")[:180])
    console.print(table)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    console.print(f"Starting codeprose API on http://{host}:{port}")
    uvicorn.run(web_app, host=host, port=port, reload=False, log_level="info")
