"""
plume Configuration - TOML-backed bot settings.

This module provides:
- The BotConfig value handed to the context store
- Loading and validation of the [bot] section
- Generation of an annotated default configuration file

Example usage:
    from plume.config import load_config

    config = load_config(Path("config/plume.toml"))
    print(config.prefix)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from plume.config.schema import BOT_SCHEMA, ConfigField, ValidationError, validate_config
from plume.config.toml_handler import (
    TOMLError,
    generate_toml_from_schema,
    read_toml,
    write_toml,
)

# Default config file path, relative to the working directory
DEFAULT_CONFIG_FILE = Path("config/plume.toml")

SECTION = "bot"


class ConfigError(Exception):
    """Base exception for config API errors."""

    pass


@dataclass(frozen=True)
class BotConfig:
    """
    Validated bot settings.

    Attributes:
        token: Transport authentication token
        playing: Status text passed through the utility filter on ready
        prefix: Leading string marking a message as a command
        admins: User ids classified as administrators
        debug: Report plugin load failures as warnings
        transport: Transport factory as "module:attribute"
        commands_dir: Directory scanned by the command loader
        lib_dir: Directory scanned by the library module loader
        feathers_dir: Directory scanned by the feather loader
    """

    token: str
    playing: str = ""
    prefix: str = "!"
    admins: tuple[str, ...] = field(default_factory=tuple)
    debug: bool = False
    transport: str = ""
    commands_dir: str = "src/commands"
    lib_dir: str = "src/lib"
    feathers_dir: str = "src/feathers"

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "BotConfig":
        """
        Build a BotConfig from a raw [bot] section.

        Raises:
            ValidationError: If the section does not match the schema
        """
        values = validate_config(dict(data), BOT_SCHEMA)
        values["admins"] = tuple(values["admins"])
        return cls(**values)

    def resolve_dir(self, name: str, base: Path | None = None) -> Path:
        """Resolve one of the *_dir settings against *base* (default: cwd)."""
        path = Path(getattr(self, name))
        if path.is_absolute():
            return path
        return (base or Path.cwd()) / path


def load_config(config_file: Path = DEFAULT_CONFIG_FILE) -> BotConfig:
    """
    Load and validate the bot configuration.

    Raises:
        ConfigError: If the file is unreadable, has no [bot] section,
            or fails validation
    """
    try:
        data = read_toml(config_file)
    except TOMLError as e:
        raise ConfigError(str(e)) from e

    section = data.get(SECTION)
    if not isinstance(section, dict):
        raise ConfigError(f"Missing [{SECTION}] section in {config_file}")

    try:
        return BotConfig.from_mapping(section)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e


def write_default_config(config_file: Path = DEFAULT_CONFIG_FILE, **values: Any) -> Path:
    """
    Write an annotated configuration file with defaults.

    Raises:
        ConfigError: If the file already exists or cannot be written
    """
    if config_file.exists():
        raise ConfigError(f"Configuration file already exists: {config_file}")

    try:
        write_toml(config_file, generate_toml_from_schema(SECTION, BOT_SCHEMA, values))
    except TOMLError as e:
        raise ConfigError(str(e)) from e

    return config_file


__all__ = [
    "BotConfig",
    "ConfigError",
    "ConfigField",
    "DEFAULT_CONFIG_FILE",
    "load_config",
    "write_default_config",
]
