"""Tests for RAG configuration management."""

import json
from pathlib import Path

import pytest

from projectrag.config import (
    ConfigManager,
    RagConfig,
    config_path,
    index_path,
    load_config,
    save_config,
)


class TestRagConfig:
    def test_defaults(self):
        c = RagConfig()
        assert c.enabled is True
        assert c.top_k == 5
        assert c.similarity_threshold == 0.7
        assert c.embedding_model == "all-MiniLM-L6-v2"

    def test_to_dict(self):
        d = RagConfig(top_k=9).to_dict()
        assert d["top_k"] == 9
        assert set(d) == {"enabled", "top_k", "similarity_threshold", "embedding_model"}


class TestLoadSave:
    def test_missing_file(self, tmp_path: Path):
        assert load_config(tmp_path / "missing.json") == RagConfig()

    def test_invalid_json(self, tmp_path: Path):
        p = tmp_path / "bad.json"
        p.write_text("not json")
        assert load_config(p) == RagConfig()

    def test_not_an_object(self, tmp_path: Path):
        p = tmp_path / "list.json"
        p.write_text("[1, 2]")
        assert load_config(p) == RagConfig()

    def test_invalid_values(self, tmp_path: Path):
        p = tmp_path / "cfg.json"
        p.write_text(json.dumps({"top_k": 0}))
        assert load_config(p) == RagConfig()

    def test_unknown_keys_ignored(self, tmp_path: Path):
        p = tmp_path / "cfg.json"
        p.write_text(json.dumps({"top_k": 3, "theme": "dark"}))
        assert load_config(p) == RagConfig(top_k=3)

    def test_roundtrip(self, tmp_path: Path):
        p = tmp_path / "nested" / "cfg.json"
        config = RagConfig(enabled=False, top_k=8, similarity_threshold=0.25)
        save_config(config, p)
        assert load_config(p) == config
        assert p.read_text().endswith("\n")

    def test_paths(self, tmp_path: Path):
        assert config_path(tmp_path) == tmp_path / "rag-config.json"
        assert index_path(tmp_path) == tmp_path / "rag-index.db"


class TestConfigManager:
    def test_update_persists(self, tmp_path: Path):
        path = tmp_path / "rag-config.json"
        manager = ConfigManager(path)
        manager.load()

        updated = manager.update(top_k=10, similarity_threshold=0.5)

        assert updated.top_k == 10
        assert json.loads(path.read_text())["similarity_threshold"] == 0.5
        assert ConfigManager(path).load() == updated

    def test_unknown_key(self, tmp_path: Path):
        manager = ConfigManager(tmp_path / "c.json")
        with pytest.raises(ValueError, match="Unknown config keys"):
            manager.update(colour="blue")

    @pytest.mark.parametrize(
        "changes",
        [
            {"top_k": 0},
            {"top_k": 2.5},
            {"similarity_threshold": 1.5},
            {"similarity_threshold": "high"},
            {"enabled": "yes"},
            {"embedding_model": ""},
        ],
    )
    def test_invalid_update_changes_nothing(self, tmp_path: Path, changes):
        path = tmp_path / "c.json"
        manager = ConfigManager(path)
        with pytest.raises(ValueError):
            manager.update(**changes)
        assert manager.config == RagConfig()
        assert not path.exists()

    def test_get_returns_copy(self, tmp_path: Path):
        manager = ConfigManager(tmp_path / "c.json")
        copy = manager.get()
        copy.top_k = 99
        assert manager.config.top_k == 5
