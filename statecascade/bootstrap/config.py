"""
bootstrap/config.py - Application configuration

Provides configuration loading from files, environment variables, and defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path
import os
import json
import logging

logger = logging.getLogger("bootstrap.config")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class CascadeConfig:
    """Defaults applied when a request leaves a setting out."""

    namespace_prefix: str = ""
    status_label: str = "Inactive"
    status_reason_label: str = "Inactive"
    update_parent: bool = False
    restore_previous: bool = False
    cascade_recalculation: bool = False
    never_restore_reason_labels: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "CascadeConfig":
        never_restored = os.getenv("STATECASCADE_NEVER_RESTORE", "")
        return cls(
            namespace_prefix=os.getenv("STATECASCADE_PREFIX", ""),
            status_label=os.getenv("STATECASCADE_STATUS_LABEL", "Inactive"),
            status_reason_label=os.getenv("STATECASCADE_STATUS_REASON_LABEL", "Inactive"),
            update_parent=_env_flag("STATECASCADE_UPDATE_PARENT"),
            restore_previous=_env_flag("STATECASCADE_RESTORE_PREVIOUS"),
            cascade_recalculation=_env_flag("STATECASCADE_CASCADE_RECALCULATION"),
            never_restore_reason_labels=[
                label.strip() for label in never_restored.split(",") if label.strip()
            ],
        )


@dataclass
class APIConfig:
    """API server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1
    enable_docs: bool = True
    docs_url: str = "/docs"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "APIConfig":
        cors = os.getenv("STATECASCADE_API_CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("STATECASCADE_API_HOST", "0.0.0.0"),
            port=int(os.getenv("STATECASCADE_API_PORT", "8000")),
            workers=int(os.getenv("STATECASCADE_API_WORKERS", "1")),
            enable_docs=_env_flag("STATECASCADE_API_ENABLE_DOCS", "true"),
            docs_url=os.getenv("STATECASCADE_API_DOCS_URL", "/docs"),
            cors_origins=cors.split(",") if cors else ["*"],
        )


@dataclass
class StoreConfig:
    """Data store configuration."""

    fixture_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "StoreConfig":
        return cls(
            fixture_path=os.getenv("STATECASCADE_STORE_FIXTURE"),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=os.getenv("STATECASCADE_LOG_LEVEL", "INFO"),
            format=os.getenv("STATECASCADE_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("STATECASCADE_LOG_FILE"),
            json_logs=_env_flag("STATECASCADE_JSON_LOGS"),
        )


@dataclass
class StateCascadeConfig:
    """Root configuration."""

    environment: str = "development"
    debug: bool = False
    version: str = "1.0.0"

    cascade: CascadeConfig = field(default_factory=CascadeConfig)
    api: APIConfig = field(default_factory=APIConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "StateCascadeConfig":
        """Create configuration from environment variables."""
        return cls(
            environment=os.getenv("STATECASCADE_ENVIRONMENT", "development"),
            debug=_env_flag("STATECASCADE_DEBUG"),
            cascade=CascadeConfig.from_env(),
            api=APIConfig.from_env(),
            store=StoreConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "StateCascadeConfig":
        """Load configuration from JSON file."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls.from_env()

        with open(path) as f:
            data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "StateCascadeConfig":
        """Create config from dictionary; file values override the environment."""
        config = cls.from_env()

        if "environment" in data:
            config.environment = data["environment"]
        if "debug" in data:
            config.debug = data["debug"]

        for section in ("cascade", "api", "store", "logging"):
            target = getattr(config, section)
            for key, value in data.get(section, {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.warning(f"Unknown config key ignored: {section}.{key}")

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "version": self.version,
            "cascade": {
                "namespace_prefix": self.cascade.namespace_prefix,
                "status_label": self.cascade.status_label,
                "status_reason_label": self.cascade.status_reason_label,
                "update_parent": self.cascade.update_parent,
                "restore_previous": self.cascade.restore_previous,
                "cascade_recalculation": self.cascade.cascade_recalculation,
                "never_restore_reason_labels": list(self.cascade.never_restore_reason_labels),
            },
            "api": {
                "host": self.api.host,
                "port": self.api.port,
                "workers": self.api.workers,
            },
            "store": {
                "fixture_path": self.store.fixture_path,
            },
            "logging": {
                "level": self.logging.level,
                "json_logs": self.logging.json_logs,
            },
        }


# Global config instance
_config: Optional[StateCascadeConfig] = None


def load_config(filepath: str = None) -> StateCascadeConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to JSON config file

    Returns:
        StateCascadeConfig instance
    """
    global _config

    if filepath:
        _config = StateCascadeConfig.from_file(filepath)
    else:
        default_paths = [
            "./statecascade.json",
            "./config/statecascade.json",
            os.path.expanduser("~/.statecascade/config.json"),
        ]

        for path in default_paths:
            if Path(path).exists():
                logger.info(f"Loading config from: {path}")
                _config = StateCascadeConfig.from_file(path)
                return _config

        _config = StateCascadeConfig.from_env()

    logger.info(f"Configuration loaded: environment={_config.environment}")
    return _config


def get_config() -> StateCascadeConfig:
    """Get current configuration, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the loaded configuration."""
    global _config
    _config = None
