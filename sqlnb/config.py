"""Configuration management for sqlnb."""

import json
from pathlib import Path

from pydantic import BaseModel


class StorageConfig(BaseModel):
    backend: str = "file"
    directory: str = ""
    prefix: str = "sqlnb_"


class AutoSaveConfig(BaseModel):
    delay_seconds: float = 2.0
    save_timeout_seconds: float | None = 10.0


class DocumentConfig(BaseModel):
    language: str = "en"
    environment: str = "development"
    author: str | None = None


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    allow_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]


class SqlnbConfig(BaseModel):
    storage: StorageConfig = StorageConfig()
    autosave: AutoSaveConfig = AutoSaveConfig()
    document: DocumentConfig = DocumentConfig()
    server: ServerConfig = ServerConfig()


def _config_dir() -> Path:
    return Path.home() / ".sqlnb"


def _config_path() -> Path:
    return _config_dir() / "config.json"


def files_dir(config: SqlnbConfig | None = None) -> Path:
    """Return the directory that holds .sqlnb files."""
    if config is not None and config.storage.directory:
        return Path(config.storage.directory).expanduser()
    return _config_dir() / "files"


def ensure_dirs(config: SqlnbConfig | None = None) -> None:
    """Create required sqlnb directories."""
    _config_dir().mkdir(exist_ok=True)
    files_dir(config).mkdir(parents=True, exist_ok=True)


def load_config() -> SqlnbConfig:
    """Load config from ~/.sqlnb/config.json, returning defaults if missing."""
    path = _config_path()
    if not path.exists():
        return SqlnbConfig()
    text = path.read_text()
    return SqlnbConfig.model_validate_json(text)


def save_config(config: SqlnbConfig) -> None:
    """Save config to ~/.sqlnb/config.json."""
    _config_dir().mkdir(exist_ok=True)
    path = _config_path()
    path.write_text(json.dumps(config.model_dump(), indent=2) + "\n")
