"""
Configuration for contentgraph.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


class StoreConfig(BaseModel):
    """Document store configuration."""

    backend: str = "memory"  # memory, sqlite
    db_path: str = "data/contentgraph.db"

    @field_validator("backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        if value not in ("memory", "sqlite"):
            raise ValueError(f"Unsupported document store backend: {value}")
        return value


class BlobStoreConfig(BaseModel):
    """Blob store configuration."""

    backend: str = "local"  # local, memory
    root_dir: str = "data/uploads"
    folder: str = "items"
    base_url: str = ""

    @field_validator("backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        if value not in ("local", "memory"):
            raise ValueError(f"Unsupported blob store backend: {value}")
        return value


class FanOutConfig(BaseModel):
    """Fan-out execution configuration."""

    max_concurrency: int | None = Field(default=None, ge=1)
    timeout: float | None = Field(default=None, gt=0)
    # Serialize read-modify-write of one Feature/Image within this process
    serialize_item_updates: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = False
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    blob_store: BlobStoreConfig = Field(default_factory=BlobStoreConfig)
    fanout: FanOutConfig = Field(default_factory=FanOutConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            CONTENTGRAPH_STORE_BACKEND: Document store backend (memory, sqlite)
            CONTENTGRAPH_STORE_DB_PATH: SQLite database path
            CONTENTGRAPH_BLOB_BACKEND: Blob store backend (local, memory)
            CONTENTGRAPH_BLOB_ROOT_DIR: Local blob root directory
            CONTENTGRAPH_BLOB_FOLDER: Blob sub-directory
            CONTENTGRAPH_BLOB_BASE_URL: Public URL prefix for blobs
            CONTENTGRAPH_FANOUT_MAX_CONCURRENCY: Per-group concurrency bound
            CONTENTGRAPH_FANOUT_TIMEOUT: Per-group deadline in seconds
            CONTENTGRAPH_FANOUT_SERIALIZE_ITEM_UPDATES: Per-document locking
            CONTENTGRAPH_LOG_LEVEL: Log level
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None, cast: type | None = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None or value == "":
                return default
            cast = cast or (type(default) if default is not None else None)
            # Convert boolean strings
            if cast is bool:
                return str(value).lower() in ("true", "1", "yes")
            if cast in (int, float):
                return cast(value)
            return value

        return cls(
            store=StoreConfig(
                backend=get_env("CONTENTGRAPH_STORE_BACKEND", "memory"),
                db_path=get_env("CONTENTGRAPH_STORE_DB_PATH", "data/contentgraph.db"),
            ),
            blob_store=BlobStoreConfig(
                backend=get_env("CONTENTGRAPH_BLOB_BACKEND", "local"),
                root_dir=get_env("CONTENTGRAPH_BLOB_ROOT_DIR", "data/uploads"),
                folder=get_env("CONTENTGRAPH_BLOB_FOLDER", "items"),
                base_url=get_env("CONTENTGRAPH_BLOB_BASE_URL", ""),
            ),
            fanout=FanOutConfig(
                max_concurrency=get_env("CONTENTGRAPH_FANOUT_MAX_CONCURRENCY", cast=int),
                timeout=get_env("CONTENTGRAPH_FANOUT_TIMEOUT", cast=float),
                serialize_item_updates=get_env("CONTENTGRAPH_FANOUT_SERIALIZE_ITEM_UPDATES", True),
            ),
            logging=LoggingConfig(
                level=get_env("CONTENTGRAPH_LOG_LEVEL", "INFO"),
                log_to_file=get_env("CONTENTGRAPH_LOG_TO_FILE", False),
                log_dir=get_env("CONTENTGRAPH_LOG_DIR", "logs"),
                file_rotation=get_env("CONTENTGRAPH_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("CONTENTGRAPH_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("CONTENTGRAPH_LOG_COMPRESSION", "zip"),
                serialize=get_env("CONTENTGRAPH_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file)

        # Merge: sections changed by env vars override YAML
        final_dict = {**config_dict}
        default = cls()
        for section in ("store", "blob_store", "fanout", "logging"):
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                final_dict[section] = env_section.model_dump()

        return cls(**final_dict) if final_dict else env_config
