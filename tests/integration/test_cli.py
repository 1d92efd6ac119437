"""Integration tests for the loggraph CLI."""

import os
import stat
from pathlib import Path

import pytest
from click.testing import CliRunner

from loggraph import cli as cli_module
from loggraph.cli import cli
from loggraph.services.document_store import ChromaDocumentStore


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch, mock_embedding_model):
    """Isolate HOME, the default config path and the embedding model."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: fake_home)
    monkeypatch.setattr(
        cli_module, "DEFAULT_CONFIG_PATH", fake_home / ".config" / "loggraph" / "config.yaml"
    )
    monkeypatch.setattr(
        ChromaDocumentStore, "encoder", property(lambda self: mock_embedding_model)
    )
    return fake_home


@pytest.fixture
def config_file(tmp_path, fixture_graph):
    """Config file pointing at the fixture graph with a private store."""
    path = tmp_path / "config.yaml"
    path.write_text(f"""
logseq:
  graph_path: {fixture_graph}

store:
  db_path: {tmp_path / "chroma"}
""")
    os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)
    return path


class TestIndexCommand:
    """Tests for 'loggraph index'."""

    def test_index_fixture_graph(self, fixture_graph):
        """Test indexing a graph given on the command line."""
        result = CliRunner().invoke(cli, ["index", str(fixture_graph)])

        assert result.exit_code == 0, result.output
        assert "Indexing graph..." in result.output
        assert "Indexing files: 8/8 (100%)" in result.output
        assert "Indexed 8 files and 14 blocks (0 skipped)" in result.output
        assert "Graph: 22 nodes, 16 edges" in result.output

    def test_index_from_config(self, config_file, tmp_path):
        """Test that the graph path and store location come from the config file."""
        result = CliRunner().invoke(cli, ["index", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Indexed 8 files" in result.output
        assert any((tmp_path / "chroma").iterdir())

    def test_index_no_blocks(self, fixture_graph):
        """Test indexing pages only."""
        result = CliRunner().invoke(cli, ["index", str(fixture_graph), "--no-blocks"])

        assert result.exit_code == 0, result.output
        assert "Indexed 8 files and 0 blocks" in result.output
        assert "Graph: 8 nodes, 7 edges" in result.output

    def test_index_reports_skipped_files(self, fixture_graph):
        """Test that unusable files are listed and the pass continues."""
        empty = fixture_graph / "pages" / "empty.md"
        empty.write_text("")

        result = CliRunner().invoke(cli, ["index", str(fixture_graph)])

        assert result.exit_code == 0, result.output
        assert f"Error: {empty}: Document has no content" in result.output
        assert "Indexed 8 files and 14 blocks (1 skipped)" in result.output

    def test_unresolved_link_fails_strict(self, fixture_graph):
        """Test that a reference to a missing page aborts the run."""
        (fixture_graph / "pages" / "dangling.md").write_text("- see #missing\n")

        result = CliRunner().invoke(cli, ["index", str(fixture_graph)])

        assert result.exit_code != 0
        assert "Indexing failed" in result.output
        assert "Unresolved tag 'missing'" in result.output

    def test_unresolved_link_lenient(self, fixture_graph):
        """Test that --lenient completes despite missing pages."""
        (fixture_graph / "pages" / "dangling.md").write_text("- see #missing\n")

        result = CliRunner().invoke(cli, ["index", str(fixture_graph), "--lenient"])

        assert result.exit_code == 0, result.output
        assert "Indexed 9 files and 15 blocks" in result.output

    def test_reindex(self, fixture_graph):
        """Test that --reindex clears the store first."""
        runner = CliRunner()
        runner.invoke(cli, ["index", str(fixture_graph)])

        result = runner.invoke(cli, ["index", str(fixture_graph), "--reindex"])

        assert result.exit_code == 0, result.output
        assert "Reindexing graph..." in result.output

    def test_missing_config_without_graph(self):
        """Test that running without a graph or config explains what to do."""
        result = CliRunner().invoke(cli, ["index"])

        assert result.exit_code != 0
        assert "Configuration file not found" in result.output
        assert "graph_path" in result.output

    def test_invalid_permissions(self, config_file):
        """Test that a world-readable config is refused."""
        os.chmod(config_file, stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP | stat.S_IROTH)

        result = CliRunner().invoke(cli, ["index", "--config", str(config_file)])

        assert result.exit_code != 0
        assert "overly permissive permissions" in result.output
        assert "chmod 600" in result.output


class TestSearchCommand:
    """Tests for 'loggraph search'."""

    @pytest.fixture
    def indexed(self, config_file):
        result = CliRunner().invoke(cli, ["index", "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        return config_file

    def test_search_blocks(self, indexed):
        """Test that block matches show their page title and content."""
        result = CliRunner().invoke(cli, ["search", "Ipsum", "--config", str(indexed)])

        assert result.exit_code == 0, result.output
        assert "1. tests/parsing/blocks/hierarchy" in result.output
        assert "- Ipsum" in result.output

    def test_search_files(self, indexed):
        """Test that --files matches page titles."""
        result = CliRunner().invoke(cli, ["search", "basic", "--files", "--config", str(indexed)])

        assert result.exit_code == 0, result.output
        assert "tests/parsing/files/basic" in result.output
        assert "tests___parsing___files___basic.md" in result.output

    def test_search_limit(self, indexed):
        """Test that --limit caps the number of results."""
        result = CliRunner().invoke(
            cli, ["search", "Placeholder", "--limit", "2", "--config", str(indexed)]
        )

        assert result.exit_code == 0, result.output
        assert "2. " in result.output
        assert "3. " not in result.output

    def test_search_no_results(self, indexed):
        """Test output when nothing matches."""
        result = CliRunner().invoke(cli, ["search", "zzz-nothing", "--config", str(indexed)])

        assert result.exit_code == 0, result.output
        assert "No results found." in result.output


class TestVersion:
    """Tests for global options."""

    def test_version(self):
        """Test --version output."""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "loggraph" in result.output
        assert "0.1.0" in result.output
