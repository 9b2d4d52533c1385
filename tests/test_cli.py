from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml  # type: ignore[import-untyped]

from pinecone_context.__main__ import _collect_files, _parse_flags, main
from pinecone_context.config import ContextConfig
from pinecone_context.deployment import GitInfo
from pinecone_context.embedding.config import OpenAIEmbeddingConfig
from pinecone_context.service import ContextService
from pinecone_context.vector.config import PineconeIndexConfig


def _config() -> ContextConfig:
    return ContextConfig(
        embedding=OpenAIEmbeddingConfig(model="m", dimensions=2, api_key="sk"),
        index=PineconeIndexConfig(index_name="test-index", api_key="pc"),
    )


@pytest.fixture
def service(memory_index: Any) -> ContextService:
    provider = MagicMock()
    provider.embed = AsyncMock(side_effect=lambda texts: [[1.0, 0.0] for _ in texts])
    provider.embed_query = AsyncMock(return_value=[1.0, 0.0])
    provider.aclose = AsyncMock()
    return ContextService(_config(), memory_index, provider)


@pytest.fixture
def cli(service: ContextService):
    with (
        patch("pinecone_context.__main__.configure_logging"),
        patch("pinecone_context.__main__.load_raw_config", return_value={}),
        patch("pinecone_context.__main__.parse_context_config", return_value=_config()),
        patch("pinecone_context.__main__.ContextService.from_config", return_value=service),
    ):
        yield service


class TestParseFlags:
    def test_pairs_and_switches(self) -> None:
        flags = _parse_flags(["--query", "deploy steps", "--verbose", "--top", "3"])

        assert flags == {"query": "deploy steps", "verbose": True, "top": "3"}

    def test_trailing_switch(self) -> None:
        assert _parse_flags(["--auto"]) == {"auto": True}

    def test_ignores_positional_values(self) -> None:
        assert _parse_flags(["stray", "--project", "p"]) == {"project": "p"}


class TestCollectFiles:
    def test_skips_build_and_vendor_dirs(self, tmp_path: Path) -> None:
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "app.py").write_text("x")
        (tmp_path / "src" / "data.bin").write_text("x")
        (tmp_path / "node_modules" / "lib").mkdir(parents=True)
        (tmp_path / "node_modules" / "lib" / "index.js").write_text("x")
        (tmp_path / "README.md").write_text("x")

        files = _collect_files(tmp_path, [".py", ".js", ".md"])

        assert files == [tmp_path / "README.md", tmp_path / "src" / "app.py"]


class TestMain:
    def test_usage_without_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        assert "Usage:" in capsys.readouterr().out

    def test_missing_arguments_exit_before_config(self) -> None:
        with (
            patch("pinecone_context.__main__.load_raw_config") as mock_load,
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["search"])

        assert exc_info.value.code == 1
        mock_load.assert_not_called()

    def test_configuration_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with (
            patch("pinecone_context.__main__.configure_logging"),
            patch("pinecone_context.__main__.load_raw_config", return_value={}),
            patch(
                "pinecone_context.__main__.parse_context_config",
                side_effect=ValueError("Missing env var: PINECONE_API_KEY"),
            ),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["stats"])

        assert exc_info.value.code == 1
        assert "PINECONE_API_KEY" in capsys.readouterr().err

    def test_invalid_yaml_is_configuration_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with (
            patch("pinecone_context.__main__.load_raw_config", side_effect=yaml.YAMLError("bad indent")),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["stats"])

        assert exc_info.value.code == 1
        assert "Configuration error: bad indent" in capsys.readouterr().err

    def test_index_text_then_search(self, cli: ContextService, capsys: pytest.CaptureFixture[str]) -> None:
        main(["index", "--text", "Release with make deploy.", "--project", "ops"])
        main(["search", "--query", "how to release", "--project", "ops", "--verbose"])

        out = capsys.readouterr().out
        assert "Indexed text content (1 chunk(s))" in out
        assert "Found 1 results:" in out
        assert "Type: text" in out
        assert "[Context]\nRelease with make deploy." in out

    def test_index_dir(
        self, cli: ContextService, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        (tmp_path / "main.py").write_text("print('hi')")
        (tmp_path / "notes.txt").write_text("ignored")

        main(["index", "--dir", str(tmp_path), "--ext", "py"])

        out = capsys.readouterr().out
        assert "Found 1 files to index" in out
        records = list(cli.index.records.values())
        assert records[0].metadata["language"] == "python"

    def test_delete(self, cli: ContextService, capsys: pytest.CaptureFixture[str]) -> None:
        main(["delete", "--project", "ops", "--type", "code"])

        assert cli.index.deleted_filters == [{"project": "ops", "type": {"$in": ["code"]}}]
        assert "Deleted context matching filter" in capsys.readouterr().out

    def test_stats(self, cli: ContextService, capsys: pytest.CaptureFixture[str]) -> None:
        main(["stats"])

        out = capsys.readouterr().out
        assert 'Index "test-index" has 0 vectors' in out
        assert "Generated embedding with 2 dimensions" in out

    def test_manual_deploy_sync(self, cli: ContextService, capsys: pytest.CaptureFixture[str]) -> None:
        main(
            [
                "deploy-sync",
                "--repo", "dashboard",
                "--commit", "abc1234def",
                "--message", "fix: login redirect",
                "--files", "src/login.ts",
                "--project", "web",
            ]
        )

        out = capsys.readouterr().out
        assert "Commit: abc1234" in out
        assert "Created 2 vector(s)" in out
        types = sorted(r.metadata["type"] for r in cli.index.records.values())
        assert types == ["decision", "deployment"]

    def test_auto_deploy_sync_reads_git(self, cli: ContextService, capsys: pytest.CaptureFixture[str]) -> None:
        git_info = GitInfo(
            commit="abc1234",
            full_commit="abc1234def",
            message="fix: login redirect",
            author="dev",
            branch="main",
            timestamp="2024-01-01T00:00:00+00:00",
            repo_name="dashboard",
            changed_files=["src/login.ts"],
        )

        with patch("pinecone_context.__main__.get_git_info", return_value=git_info) as get_git:
            main(["deploy-sync", "--auto", "--path", "/repo", "--project", "web"])

        get_git.assert_called_once_with("/repo")
        out = capsys.readouterr().out
        assert "Repository: dashboard" in out
        assert "Branch: main" in out
        assert "Created 2 vector(s)" in out

    def test_runtime_error_exits(self, cli: ContextService, capsys: pytest.CaptureFixture[str]) -> None:
        cli.provider.embed_query.side_effect = ConnectionError("embedding service down")

        with pytest.raises(SystemExit) as exc_info:
            main(["search", "--query", "q"])

        assert exc_info.value.code == 1
        assert "Error: embedding service down" in capsys.readouterr().err
