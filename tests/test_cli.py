"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from codeprose.cli import _setup_logging, app
from codeprose.embedding.encoder import DEFAULT_LOCAL_MODEL
from codeprose.index.indexer import IndexStats
from codeprose.index.search import SearchResult


runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PROJECT_DIR", "COLLECTION", "EMBEDDING", "QDRANT_URL", "QDRANT_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "crate"
    (root / "src").mkdir(parents=True)
    (root / "src" / "lib.rs").write_text("/// Adds numbers.\nfn add() {}\n")
    (root / "Cargo.toml").write_text("[package]\nname = \"crate\"\n")
    return root


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        with patch("codeprose.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        with patch("codeprose.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestExtractCommand:
    """Tests for the extract command."""

    def test_extract_directory(self, repo: Path) -> None:
        result = runner.invoke(app, ["extract", str(repo), "--show"])

        assert result.exit_code == 0
        assert "Cargo.toml" in result.stdout
        assert "Adds numbers." in result.stdout
        assert "Table: package" in result.stdout

    def test_extract_single_file(self, repo: Path) -> None:
        result = runner.invoke(app, ["extract", str(repo / "src" / "lib.rs"), "--show"])

        assert result.exit_code == 0
        assert "lib.rs" in result.stdout
        assert "Adds numbers." in result.stdout

    def test_extract_no_matches(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["extract", str(tmp_path)])

        assert result.exit_code == 0
        assert "No matching files found" in result.stdout

    def test_extract_invalid_utf8(self, repo: Path) -> None:
        (repo / "bad.md").write_bytes(b"\xff\xfe")

        result = runner.invoke(app, ["extract", str(repo)])

        assert result.exit_code == 1
        assert "UTF-8" in result.stdout


class TestIndexCommand:
    """Tests for the index command."""

    def test_index_without_embedding(self, repo: Path) -> None:
        with patch("codeprose.cli.EmbeddingModel") as mock_embedder, patch(
            "codeprose.cli.QdrantVectorStore"
        ) as mock_store:
            result = runner.invoke(app, ["index", str(repo), "--no-embedding"])

        assert result.exit_code == 0
        assert "Files: 2" in result.stdout
        mock_embedder.assert_not_called()
        mock_store.connect.assert_not_called()

    def test_embedding_env_flag(self, repo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMBEDDING", "false")
        with patch("codeprose.cli.EmbeddingModel") as mock_embedder:
            result = runner.invoke(app, ["index", str(repo)])

        assert result.exit_code == 0
        mock_embedder.assert_not_called()

    @patch("codeprose.cli.EmbeddingModel")
    @patch("codeprose.cli.QdrantVectorStore")
    @patch("codeprose.cli.Indexer")
    def test_index_resets_and_indexes(
        self,
        mock_indexer_class: MagicMock,
        mock_store_class: MagicMock,
        mock_embedder_class: MagicMock,
        repo: Path,
    ) -> None:
        mock_embedder_class.return_value.dimension = 1536
        store = mock_store_class.connect.return_value
        mock_indexer_class.return_value.index_directory.return_value = IndexStats(
            files=2, points=2, sentences=3
        )

        result = runner.invoke(app, ["index", str(repo), "--collection", "docs", "--mode", "sentence"])

        assert result.exit_code == 0
        assert mock_store_class.connect.call_args.args[1] == "docs"
        assert mock_store_class.connect.call_args.kwargs["dimension"] == 1536
        store.reset_collection.assert_called_once()
        store.close.assert_called_once()
        assert mock_indexer_class.call_args.kwargs == {"mode": "sentence"}
        assert "points: 2" in result.stdout

    @patch("codeprose.cli.EmbeddingModel")
    @patch("codeprose.cli.QdrantVectorStore")
    def test_index_no_reset(
        self, mock_store_class: MagicMock, mock_embedder_class: MagicMock, repo: Path
    ) -> None:
        mock_embedder_class.return_value.dimension = 1536
        mock_embedder_class.return_value.embed_query.return_value = [0.0] * 1536
        store = mock_store_class.connect.return_value

        result = runner.invoke(app, ["index", str(repo), "--no-reset"])

        assert result.exit_code == 0
        store.ensure_collection.assert_called_once()
        store.reset_collection.assert_not_called()
        assert store.upsert.call_count == 2

    @patch("codeprose.cli.EmbeddingModel")
    @patch("codeprose.cli.QdrantVectorStore")
    def test_index_unknown_mode_leaves_collection(
        self, mock_store_class: MagicMock, mock_embedder_class: MagicMock, repo: Path
    ) -> None:
        result = runner.invoke(app, ["index", str(repo), "--mode", "bogus"])

        assert result.exit_code != 0
        mock_embedder_class.assert_not_called()
        mock_store_class.connect.assert_not_called()
        mock_store_class.connect.return_value.reset_collection.assert_not_called()

    @patch("codeprose.cli.EmbeddingModel")
    @patch("codeprose.cli.QdrantVectorStore")
    @patch("codeprose.cli.Indexer")
    def test_index_local_provider_default_model(
        self,
        mock_indexer_class: MagicMock,
        mock_store_class: MagicMock,
        mock_embedder_class: MagicMock,
        repo: Path,
    ) -> None:
        mock_embedder_class.return_value.dimension = 768
        mock_indexer_class.return_value.index_directory.return_value = IndexStats()

        result = runner.invoke(app, ["index", str(repo), "--provider", "local"])

        assert result.exit_code == 0
        config = mock_embedder_class.call_args.args[0]
        assert config.provider == "local"
        assert config.model_name == DEFAULT_LOCAL_MODEL
        assert mock_store_class.connect.call_args.kwargs["dimension"] == 768

    @patch("codeprose.cli.EmbeddingModel")
    @patch("codeprose.cli.QdrantVectorStore")
    @patch("codeprose.cli.Indexer")
    def test_index_reports_collection_total(
        self,
        mock_indexer_class: MagicMock,
        mock_store_class: MagicMock,
        mock_embedder_class: MagicMock,
        repo: Path,
    ) -> None:
        mock_embedder_class.return_value.dimension = 1536
        mock_store_class.connect.return_value.count.return_value = 7
        mock_indexer_class.return_value.index_directory.return_value = IndexStats(points=2)

        result = runner.invoke(app, ["index", str(repo), "--no-reset"])

        assert result.exit_code == 0
        assert "Collection total: 7 points" in result.stdout

    def test_index_missing_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["index", str(tmp_path / "missing"), "--no-embedding"])

        assert result.exit_code != 0

    def test_index_skip_errors(self, repo: Path) -> None:
        (repo / "bad.rs").write_bytes(b"\xff")

        failed = runner.invoke(app, ["index", str(repo), "--no-embedding"])
        skipped = runner.invoke(app, ["index", str(repo), "--no-embedding", "--skip-errors"])

        assert failed.exit_code == 1
        assert skipped.exit_code == 0
        assert "Files: 2" in skipped.stdout


class TestSearchCommand:
    """Tests for the search command."""

    @patch("codeprose.cli.EmbeddingModel")
    @patch("codeprose.cli.QdrantVectorStore")
    @patch("codeprose.cli.Searcher")
    def test_search_results(
        self,
        mock_searcher_class: MagicMock,
        mock_store_class: MagicMock,
        mock_embedder_class: MagicMock,
    ) -> None:
        mock_searcher_class.return_value.search.return_value = [
            SearchResult(path="src/lib.rs", score=0.9123, point_id=0, sentence=None, payload={})
        ]

        result = runner.invoke(app, ["search", "add numbers", "--collection", "crate"])

        assert result.exit_code == 0
        assert "src/lib.rs" in result.stdout
        assert "0.9123" in result.stdout
        mock_searcher_class.return_value.search.assert_called_once_with("add numbers", top_k=1)
        mock_store_class.connect.return_value.close.assert_called_once()

    @patch("codeprose.cli.EmbeddingModel")
    @patch("codeprose.cli.QdrantVectorStore")
    @patch("codeprose.cli.Searcher")
    def test_search_no_results(
        self,
        mock_searcher_class: MagicMock,
        mock_store_class: MagicMock,
        mock_embedder_class: MagicMock,
    ) -> None:
        mock_searcher_class.return_value.search.return_value = []

        result = runner.invoke(app, ["search", "anything"])

        assert result.exit_code == 0
        assert "No matches found" in result.stdout


class TestWebCommand:
    """Tests for the web command."""

    def test_web_runs_uvicorn(self) -> None:
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["web", "--port", "9000"])

        assert result.exit_code == 0
        assert mock_run.call_args.kwargs["port"] == 9000
