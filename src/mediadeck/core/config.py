"""
Configuration management for mediadeck
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger

# Recognised audio extensions (lowercase, without the dot)
DEFAULT_AUDIO_EXTENSIONS = [
    "mp3",
    "flac",
    "ogg",
    "opus",
    "wav",
    "aac",
    "m4a",
    "wma",
    "aiff",
    "aif",
    "ape",
    "wv",
    "mpc",
    "mp4",
    "webm",
]


@dataclass
class LibraryConfig:
    """Configuration for the local music library."""

    folders: List[str] = field(default_factory=list)
    rescan_on_startup: bool = False
    audio_extensions: List[str] = field(
        default_factory=lambda: list(DEFAULT_AUDIO_EXTENSIONS)
    )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # default: <data dir>/mediadeck.log
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_output: bool = False


@dataclass
class Config:
    """Main configuration object."""

    library: LibraryConfig = field(default_factory=LibraryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "mediadeck"
    return Path.home() / ".config" / "mediadeck"


def get_config_path() -> Path:
    """Get the main configuration file path.

    MEDIADECK_CONFIG wins over the XDG location.
    """
    override = os.environ.get("MEDIADECK_CONFIG")
    if override:
        return Path(override).expanduser()
    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path (database, logs)."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "mediadeck"
    return Path.home() / ".local" / "share" / "mediadeck"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# mediadeck configuration

[library]
# Folders scanned for audio files
folders = []

# Rescan the library every time the application starts
rescan_on_startup = false

# Audio file extensions picked up by the scanner (case-insensitive)
audio_extensions = ["mp3", "flac", "ogg", "opus", "wav", "aac", "m4a", "wma", "aiff", "aif", "ape", "wv", "mpc", "mp4", "webm"]

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/mediadeck/mediadeck.log)
# log_file = "/path/to/mediadeck.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of rotated log files to keep
backup_count = 5

# Also output logs to stderr
console_output = false
""".strip()


def _parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, section by section."""
    config = Config()

    if "library" in toml_data:
        library_data = toml_data["library"]
        config.library = LibraryConfig(
            folders=[
                str(Path(p).expanduser())
                for p in library_data.get("folders", config.library.folders)
            ],
            rescan_on_startup=library_data.get(
                "rescan_on_startup", config.library.rescan_on_startup
            ),
            audio_extensions=[
                ext.lower().lstrip(".")
                for ext in library_data.get(
                    "audio_extensions", config.library.audio_extensions
                )
            ],
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get("backup_count", config.logging.backup_count),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - MEDIADECK_LIBRARY_FOLDERS (os.pathsep separated)
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        logger.info(f"Created default configuration at: {config_path}")
        config = Config()
    else:
        try:
            with open(config_path, "rb") as f:
                toml_data = tomllib.load(f)
            config = _parse_config(toml_data)
        except (tomllib.TOMLDecodeError, OSError, TypeError, ValueError) as e:
            logger.warning(f"Error loading configuration from {config_path}: {e}")
            logger.warning("Using default configuration.")
            config = Config()

    folders_override = os.environ.get("MEDIADECK_LIBRARY_FOLDERS")
    if folders_override:
        config.library.folders = [
            str(Path(p).expanduser()) for p in folders_override.split(os.pathsep) if p
        ]

    return config


def _toml_str(value: str) -> str:
    """Render a TOML basic string."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _toml_list(values: List[str]) -> str:
    """Render a list of strings as a TOML array."""
    return "[" + ", ".join(_toml_str(v) for v in values) + "]"


def save_config(config: Config, config_path: Optional[Path] = None) -> bool:
    """Save configuration to file."""
    config_path = config_path or get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        toml_content = f"""# mediadeck configuration

[library]
folders = {_toml_list(config.library.folders)}
rescan_on_startup = {str(config.library.rescan_on_startup).lower()}
audio_extensions = {_toml_list(config.library.audio_extensions)}

[logging]
level = "{config.logging.level}"
max_file_size_mb = {config.logging.max_file_size_mb}
backup_count = {config.logging.backup_count}
console_output = {str(config.logging.console_output).lower()}"""

        if config.logging.log_file:
            toml_content += f"\nlog_file = {_toml_str(config.logging.log_file)}"

        toml_content += "\n"

        with open(config_path, "w", encoding="utf-8") as f:
            f.write(toml_content)

        return True

    except OSError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        return False


def add_folder(config: Config, folder: str) -> bool:
    """Add a library folder unless it is already configured.

    Returns:
        True if the folder was added
    """
    if folder in config.library.folders:
        return False
    config.library.folders.append(folder)
    return True


def remove_folder(config: Config, folder: str) -> bool:
    """Remove a library folder.

    Returns:
        True if at least one entry was removed
    """
    before = len(config.library.folders)
    config.library.folders = [f for f in config.library.folders if f != folder]
    return len(config.library.folders) != before


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
