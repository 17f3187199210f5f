"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: Live page fetching settings
- ExtractConfig: Content extraction settings
- ImportConfig: Import run defaults
- StorageConfig: Database location
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml


@dataclass
class FetchConfig:
    """Configuration for refreshing content from the live page.

    Attributes:
        timeout_seconds: HTTP request timeout, applied to every fetch
        retries: Retry attempts after a failed fetch (capped at 2)
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
        run_budget_seconds: Optional wall-clock budget for all fetches of one run;
                            once spent, remaining entries keep their export content
        max_response_bytes: Largest page body accepted; bigger pages are not used
    """

    timeout_seconds: float = 15.0
    retries: int = 0
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    run_budget_seconds: float | None = None
    max_response_bytes: int = 10 * 1024 * 1024


@dataclass
class ExtractConfig:
    """Configuration for readable content extraction.

    Attributes:
        primary: Primary extraction method ("readability", "trafilatura", or "bs4")
        fallback: List of fallback methods to try if primary fails
    """

    primary: str = "readability"
    fallback: list[str] = field(default_factory=lambda: ["trafilatura", "bs4"])


@dataclass
class ImportConfig:
    """Defaults for import runs.

    Attributes:
        default_format: Importer used when none is given on the command line
        dedup_cache_size: Number of recently seen URLs kept in memory per run
    """

    default_format: str = "v1"
    dedup_cache_size: int = 1024


@dataclass
class StorageConfig:
    """Configuration for the article database.

    Attributes:
        database: Path to the SQLite database file
    """

    database: str = "readlater.db"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
        directory: Directory receiving the log file
    """

    level: str = "WARNING"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "import.jsonl"
    directory: str = "logs"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    importer: ImportConfig = field(default_factory=ImportConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update({k: v for k, v in value.items() if k in data[key]})
        else:
            data[key] = value
    return _fromdict(data)


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "fetch": {
            "timeout_seconds": cfg.fetch.timeout_seconds,
            "retries": cfg.fetch.retries,
            "trust_env": cfg.fetch.trust_env,
            "user_agent": cfg.fetch.user_agent,
            "run_budget_seconds": cfg.fetch.run_budget_seconds,
            "max_response_bytes": cfg.fetch.max_response_bytes,
        },
        "extract": {
            "primary": cfg.extract.primary,
            "fallback": list(cfg.extract.fallback),
        },
        "importer": {
            "default_format": cfg.importer.default_format,
            "dedup_cache_size": cfg.importer.dedup_cache_size,
        },
        "storage": {
            "database": cfg.storage.database,
        },
        "logging": {
            "level": cfg.logging.level,
            "console": cfg.logging.console,
            "file": cfg.logging.file,
            "format": cfg.logging.format,
            "filename": cfg.logging.filename,
            "directory": cfg.logging.directory,
        },
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        fetch=FetchConfig(**data["fetch"]),
        extract=ExtractConfig(**data["extract"]),
        importer=ImportConfig(**data["importer"]),
        storage=StorageConfig(**data["storage"]),
        logging=LoggingConfig(**data["logging"]),
    )
