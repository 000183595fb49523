"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Database handle and schema (SQLite)
- Logging and console output (Loguru, Rich)
"""

# Configuration
from .config import (
    Config,
    load_config,
    save_config,
    add_folder,
    remove_folder,
    get_config_dir,
    get_config_path,
    get_data_dir,
    create_default_config,
    ensure_directories,
)

# Database
from .database import (
    Database,
    get_database_path,
    open_database,
    init_database,
    migrate_database,
)

# Output
from .console import get_console
from .output import log, setup_logging

__all__ = [
    # Config
    "Config",
    "load_config",
    "save_config",
    "add_folder",
    "remove_folder",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    "ensure_directories",
    # Database
    "Database",
    "get_database_path",
    "open_database",
    "init_database",
    "migrate_database",
    # Output
    "get_console",
    "log",
    "setup_logging",
]
