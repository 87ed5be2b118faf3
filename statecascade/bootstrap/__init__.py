"""
bootstrap/ - Configuration and entry points
"""

from .config import (
    CascadeConfig,
    APIConfig,
    StoreConfig,
    LoggingConfig,
    StateCascadeConfig,
    load_config,
    get_config,
    reset_config,
)

from .entrypoints import (
    JSONFormatter,
    setup_logging,
    format_table,
    cli_main,
    api_main,
    main,
)

__all__ = [
    # Config
    "CascadeConfig",
    "APIConfig",
    "StoreConfig",
    "LoggingConfig",
    "StateCascadeConfig",
    "load_config",
    "get_config",
    "reset_config",
    # Entry points
    "JSONFormatter",
    "setup_logging",
    "format_table",
    "cli_main",
    "api_main",
    "main",
]
