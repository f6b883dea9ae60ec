"""RAG configuration management.

Loads and saves the process-wide settings from rag-config.json in the
per-user data directory.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "rag-config.json"
INDEX_FILENAME = "rag-index.db"

DEFAULT_EMBEDDING_MODEL = "all-MiniLM-L6-v2"


def default_home() -> Path:
    """Per-user directory holding the config and the index snapshot."""
    return Path.home() / ".projectrag"


@dataclass
class RagConfig:
    """Retrieval settings."""

    enabled: bool = True
    top_k: int = 5
    similarity_threshold: float = 0.7
    embedding_model: str = DEFAULT_EMBEDDING_MODEL

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_config(path: Path) -> RagConfig:
    """Load config from a JSON file, returning defaults if missing or invalid.

    Unknown keys are ignored.
    """
    if not path.exists():
        return RagConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load RAG config from %s: %s", path, e)
        return RagConfig()
    if not isinstance(data, dict):
        logger.warning("Ignoring RAG config %s: expected a JSON object", path)
        return RagConfig()

    known = {f.name for f in fields(RagConfig)}
    try:
        config = RagConfig(**{k: v for k, v in data.items() if k in known})
        validate_config(config)
    except ValueError as e:
        logger.warning("Ignoring invalid RAG config %s: %s", path, e)
        return RagConfig()
    return config


def save_config(config: RagConfig, path: Path) -> None:
    """Save config to a JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(config.to_dict(), indent=2) + "\n",
        encoding="utf-8",
    )


def validate_config(config: RagConfig) -> None:
    """Raise ValueError if any setting is out of range."""
    if not isinstance(config.enabled, bool):
        raise ValueError("enabled must be a boolean")
    if isinstance(config.top_k, bool) or not isinstance(config.top_k, int) or config.top_k < 1:
        raise ValueError("top_k must be a positive integer")
    threshold = config.similarity_threshold
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise ValueError("similarity_threshold must be a number")
    if not -1.0 <= threshold <= 1.0:
        raise ValueError("similarity_threshold must be between -1 and 1")
    if not isinstance(config.embedding_model, str) or not config.embedding_model:
        raise ValueError("embedding_model must be a non-empty string")


class ConfigManager:
    """Holds the process-wide config and writes it back on every change."""

    def __init__(self, path: Path):
        self.path = path
        self._config = RagConfig()

    @property
    def config(self) -> RagConfig:
        return self._config

    def load(self) -> RagConfig:
        self._config = load_config(self.path)
        logger.debug("RAG config loaded: %s", self._config)
        return self._config

    def get(self) -> RagConfig:
        """Return a copy of the current config."""
        return replace(self._config)

    def update(self, **changes: Any) -> RagConfig:
        """Apply a partial update, validate it and persist it.

        Args:
            **changes: RagConfig fields to change

        Returns:
            The updated config

        Raises:
            ValueError: Unknown key or invalid value; nothing is changed
        """
        known = {f.name for f in fields(RagConfig)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        candidate = replace(self._config, **changes)
        validate_config(candidate)
        self._config = candidate
        save_config(candidate, self.path)
        logger.info("RAG config updated: %s", ", ".join(f"{k}={v}" for k, v in changes.items()))
        return self.get()


def config_path(home: Optional[Path] = None) -> Path:
    return (home or default_home()) / CONFIG_FILENAME


def index_path(home: Optional[Path] = None) -> Path:
    return (home or default_home()) / INDEX_FILENAME
