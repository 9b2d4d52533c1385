from pathlib import Path

import pytest

from pinecone_context.config import load_context_config, load_raw_config
from pinecone_context.embedding.config import OpenAIEmbeddingConfig
from pinecone_context.vector.config import DEFAULT_INDEX_NAME, PineconeIndexConfig


@pytest.fixture
def credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("PINECONE_API_KEY", "pc-test")
    monkeypatch.delenv("PINECONE_INDEX_NAME", raising=False)
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)


class TestLoadContextConfig:
    def test_defaults_without_file(self, tmp_path: Path, credentials: None) -> None:
        config = load_context_config(tmp_path / "missing.yaml")

        assert isinstance(config.embedding, OpenAIEmbeddingConfig)
        assert config.embedding.api_key == "sk-test"
        assert config.embedding.model == "text-embedding-3-small"
        assert config.embedding.dimensions == 1536
        assert isinstance(config.index, PineconeIndexConfig)
        assert config.index.index_name == DEFAULT_INDEX_NAME
        assert config.index.api_key == "pc-test"
        assert config.chunking.max_chunk_size == 1000
        assert config.chunking.overlap == 100
        assert config.cache.ttl_seconds == 300
        assert config.cache.max_entries == 100
        assert config.search.top_k == 5
        assert config.search.max_top_k == 20

    def test_index_name_from_env(
        self, tmp_path: Path, credentials: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PINECONE_INDEX_NAME", "my-index")

        config = load_context_config(tmp_path / "missing.yaml")

        assert config.index.index_name == "my-index"

    def test_file_overrides_defaults(self, tmp_path: Path, credentials: None) -> None:
        path = tmp_path / "context.yaml"
        path.write_text(
            "chunking:\n"
            "  max_chunk_size: 500\n"
            "index:\n"
            "  pinecone:\n"
            "    region: eu-west-1\n"
            "    index_name: from-file\n"
        )

        config = load_context_config(path)

        assert config.chunking.max_chunk_size == 500
        assert config.chunking.overlap == 100
        assert config.index.region == "eu-west-1"
        assert config.index.index_name == "from-file"
        assert config.index.api_key == "pc-test"

    def test_placeholders_resolved(
        self, tmp_path: Path, credentials: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CTX_LOG_LEVEL", "DEBUG")
        path = tmp_path / "context.yaml"
        path.write_text("logging:\n  log_level: $(CTX_LOG_LEVEL)\n")

        assert load_raw_config(path)["logging"]["log_level"] == "DEBUG"
        assert load_context_config(path).logging.log_level == "DEBUG"

    def test_missing_openai_key(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setenv("PINECONE_API_KEY", "pc-test")

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            load_context_config(tmp_path / "missing.yaml")

    def test_missing_pinecone_key(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.delenv("PINECONE_API_KEY", raising=False)

        with pytest.raises(ValueError, match="PINECONE_API_KEY"):
            load_context_config(tmp_path / "missing.yaml")

    def test_unknown_provider(self, tmp_path: Path, credentials: None) -> None:
        path = tmp_path / "context.yaml"
        path.write_text("embedding:\n  provider: nope\n")

        with pytest.raises(ValueError):
            load_context_config(path)
