"""Configuration management for Canopy.

Reads configuration from ~/.config/canopy.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import tomllib
import tomli_w

DEFAULT_DB_TIMEOUT = 5.0
DEFAULT_MAX_TREE_DEPTH = 1000


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    db_timeout: float
    max_tree_depth: int
    log_level: str
    log_dir: Path

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        base_dir = Path.home() / "data" / "canopy"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="canopy.db",
            db_timeout=DEFAULT_DB_TIMEOUT,
            max_tree_depth=DEFAULT_MAX_TREE_DEPTH,
            log_level="INFO",
            log_dir=base_dir / "logs",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "canopy.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Args:
        config_path: Optional path to the TOML file. Defaults to
            ~/.config/canopy.toml.

    Returns:
        Config object with loaded or default values.
    """
    config_path = config_path or get_config_path()

    if not config_path.exists():
        config = Config.default()
        _write_config(config, config_path)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return _parse_config(data)


def _parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML, filling in defaults for missing keys."""
    base_dir = Path(data.get("base_dir", Path.home() / "data" / "canopy"))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", "canopy.db")
    db_timeout = float(db_config.get("timeout", DEFAULT_DB_TIMEOUT))

    tree_config = data.get("tree", {})
    max_tree_depth = int(tree_config.get("max_depth", DEFAULT_MAX_TREE_DEPTH))
    if max_tree_depth < 1:
        raise ValueError(f"tree.max_depth must be positive, got {max_tree_depth}")

    log_config = data.get("logging", {})
    log_level = log_config.get("level", "INFO")
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        db_timeout=db_timeout,
        max_tree_depth=max_tree_depth,
        log_level=log_level,
        log_dir=log_dir,
    )


def _write_config(config: Config, config_path: Path) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
        config_path: Destination TOML file.
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
            "timeout": config.db_timeout,
        },
        "tree": {
            "max_depth": config.max_tree_depth,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
