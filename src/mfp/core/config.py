"""
Configuration management for MFP
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class PlayerConfig:
    """Configuration for the mpv player process."""

    mpv_path: str = "mpv"
    socket_path: Optional[str] = None  # Default: <data_dir>/mpv-socket
    volume: int = 70  # Initial volume for a fresh state
    ipc_timeout: float = 2.0  # Seconds per IPC request
    poll_interval: float = 1.0  # Monitor tick interval in seconds
    socket_wait_timeout: float = 10.0  # Seconds to wait for mpv's socket


@dataclass
class StorageConfig:
    """Configuration for persisted state."""

    data_dir: Optional[str] = None  # Default: ~/.local/share/mfp
    lock_timeout: float = 5.0  # Seconds to wait for the state lock


@dataclass
class YouTubeConfig:
    """Configuration for playlist fetching."""

    playlist_end: int = 100  # Maximum entries fetched per playlist


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Default: <data_dir>/mfp.log


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    youtube: YouTubeConfig = field(default_factory=YouTubeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def data_dir(self) -> Path:
        """Resolved data directory for this configuration."""
        if self.storage.data_dir:
            return Path(self.storage.data_dir).expanduser()
        return get_data_dir()

    @property
    def socket_path(self) -> Path:
        """Resolved mpv control endpoint path."""
        if self.player.socket_path:
            return Path(self.player.socket_path).expanduser()
        return self.data_dir / "mpv-socket"

    @property
    def playlist_file(self) -> Path:
        """Ephemeral M3U file handed to mpv on launch."""
        return self.data_dir / "current_playlist.m3u"

    @property
    def log_file(self) -> Path:
        """Resolved log file path."""
        if self.logging.log_file:
            return Path(self.logging.log_file).expanduser()
        return self.data_dir / "mfp.log"


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "mfp"
    return Path.home() / ".config" / "mfp"


def get_config_path() -> Path:
    """Get the main configuration file path."""
    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path.

    MFP_DATA_DIR wins over XDG_DATA_HOME, which wins over ~/.local/share.
    """
    override = os.environ.get("MFP_DATA_DIR")
    if override:
        return Path(override).expanduser()
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "mfp"
    return Path.home() / ".local" / "share" / "mfp"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# MFP (Music From Playlists) Configuration

[player]
# mpv executable
mpv_path = "mpv"

# Path for the mpv control socket (defaults to <data_dir>/mpv-socket)
# socket_path = "/tmp/mfp-mpv-socket"

# Volume for a fresh state (0-100)
volume = 70

# Seconds to wait for a single IPC request
ipc_timeout = 2.0

# Seconds between playback monitor polls
poll_interval = 1.0

# Seconds to wait for mpv to create its socket
socket_wait_timeout = 10.0

[storage]
# Directory holding playlists.json and state.json
# data_dir = "~/.local/share/mfp"

# Seconds to wait for another invocation to release the state lock
lock_timeout = 5.0

[youtube]
# Maximum number of entries fetched per playlist
playlist_end = 100

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: <data_dir>/mfp.log)
# log_file = "/path/to/mfp.log"
""".strip()


def _parse_config(toml_data: dict) -> Config:
    config = Config()

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_path=player_data.get("mpv_path", config.player.mpv_path),
            socket_path=player_data.get("socket_path"),
            volume=max(0, min(100, int(player_data.get("volume", config.player.volume)))),
            ipc_timeout=float(
                player_data.get("ipc_timeout", config.player.ipc_timeout)
            ),
            poll_interval=float(
                player_data.get("poll_interval", config.player.poll_interval)
            ),
            socket_wait_timeout=float(
                player_data.get(
                    "socket_wait_timeout", config.player.socket_wait_timeout
                )
            ),
        )

    if "storage" in toml_data:
        storage_data = toml_data["storage"]
        config.storage = StorageConfig(
            data_dir=storage_data.get("data_dir"),
            lock_timeout=float(
                storage_data.get("lock_timeout", config.storage.lock_timeout)
            ),
        )

    if "youtube" in toml_data:
        youtube_data = toml_data["youtube"]
        config.youtube = YouTubeConfig(
            playlist_end=int(
                youtube_data.get("playlist_end", config.youtube.playlist_end)
            ),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
        )

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - MFP_DATA_DIR
    - MFP_LOG_LEVEL
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(create_default_config())
        except OSError as e:
            print(f"Warning: could not write default configuration: {e}")
        config = Config()
    else:
        try:
            with open(config_path, "rb") as f:
                toml_data = tomllib.load(f)
            config = _parse_config(toml_data)
        except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
            print(f"Error loading configuration from {config_path}: {e}")
            print("Using default configuration.")
            config = Config()

    data_dir = os.environ.get("MFP_DATA_DIR")
    if data_dir:
        config.storage.data_dir = data_dir

    log_level = os.environ.get("MFP_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config


def ensure_directories(config: Config) -> None:
    """Ensure all necessary directories exist.

    Raises:
        OSError: If the data directory cannot be created
    """
    config.data_dir.mkdir(parents=True, exist_ok=True)
    config.log_file.parent.mkdir(parents=True, exist_ok=True)
