"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Error taxonomy
- Output and logging (Loguru)
- Console management (Rich)

Clean architecture principle: The core layer has no dependencies on
domain or application layers.
"""

# Configuration
from .config import (
    Config,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    create_default_config,
    ensure_directories,
)

# Errors
from .errors import (
    MfpError,
    ValidationError,
    NotFoundError,
    TransportError,
    LaunchError,
    PersistenceError,
)

# Console
from .console import get_console

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    "ensure_directories",
    # Errors
    "MfpError",
    "ValidationError",
    "NotFoundError",
    "TransportError",
    "LaunchError",
    "PersistenceError",
    # Console
    "get_console",
]
