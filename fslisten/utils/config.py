# fslisten/utils/config.py

"""
Configuration management for fslisten
"""
import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..errors import InvalidConfiguration

logger = logging.getLogger(__name__)

MIN_WAIT_FOR_DELAY = 0.01

DEFAULT_CONFIG_PATHS = (
    Path("fslisten.yaml"),
    Path("fslisten.yml"),
    Path("fslisten.json"),
    Path.home() / ".config" / "fslisten" / "config.yaml",
)


@dataclass
class ListenerOptions:
    """Listener options"""
    debug: bool = False
    latency: Optional[float] = None
    wait_for_delay: float = 0.1  # seconds
    force_polling: bool = False
    polling_fallback_message: Optional[str] = None

    # Patterns: a string, a compiled regex, or a list of them
    ignore: Any = None
    ignore_override: Any = None
    only: Any = None

    @classmethod
    def option_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ListenerOptions":
        """
        Build options from keyword arguments or a parsed config section

        Raises:
            InvalidConfiguration: on unknown option names
        """
        data = dict(data or {})
        unknown = sorted(set(data) - set(cls.option_names()))
        if unknown:
            raise InvalidConfiguration(f"Unknown options: {', '.join(unknown)}")
        return cls(**data)

    def validate(self):
        """
        Check option values

        Raises:
            InvalidConfiguration: on a bad value
        """
        try:
            wait_for_delay = float(self.wait_for_delay)
        except (TypeError, ValueError):
            raise InvalidConfiguration(f"wait_for_delay must be a number, got {self.wait_for_delay!r}")

        if wait_for_delay < MIN_WAIT_FOR_DELAY:
            raise InvalidConfiguration(
                f"wait_for_delay must be at least {MIN_WAIT_FOR_DELAY}s, got {self.wait_for_delay}"
            )

        if self.latency is not None:
            try:
                latency = float(self.latency)
            except (TypeError, ValueError):
                raise InvalidConfiguration(f"latency must be a number, got {self.latency!r}")
            if latency <= 0:
                raise InvalidConfiguration(f"latency must be positive, got {self.latency}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to a serializable dictionary"""
        def serialize(value):
            if hasattr(value, 'pattern'):
                return value.pattern
            if isinstance(value, (list, tuple)):
                return [serialize(v) for v in value]
            return value

        return {key: serialize(value) for key, value in asdict(self).items()}


@dataclass
class ListenerConfig:
    """Command line configuration: what to watch, how, and how to log"""
    directories: List[Path] = field(default_factory=list)
    options: ListenerOptions = field(default_factory=ListenerOptions)

    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = "text"  # text, json, or color

    def __post_init__(self):
        # Convert strings to Path objects if needed
        self.directories = [Path(d) for d in self.directories]
        if isinstance(self.options, dict):
            self.options = ListenerOptions.from_dict(self.options)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ListenerConfig":
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidConfiguration(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return {
            'directories': [str(d) for d in self.directories],
            'options': self.options.to_dict(),
            'log_level': self.log_level,
            'log_file': self.log_file,
            'log_format': self.log_format,
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False)

    def save(self, path: Union[str, Path]):
        """Save config to file, YAML or JSON by suffix"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            if path.suffix.lower() in ['.yaml', '.yml']:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False)
            else:
                json.dump(self.to_dict(), f, indent=2, default=str)

        logger.info(f"Configuration saved to {path}")


def _read_file(path: Path) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"{path}: top level must be a mapping")
    return data


def load_config(path: Union[str, Path, None] = None) -> ListenerConfig:
    """
    Load configuration from file or fall back to defaults

    An explicit path must exist and parse. Without one the default
    locations are tried in order and the first readable file wins.

    Raises:
        InvalidConfiguration: if an explicit path is missing or malformed
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise InvalidConfiguration(f"Configuration file not found: {path}")
        try:
            data = _read_file(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise InvalidConfiguration(f"Error loading configuration from {path}: {e}") from e
        logger.info(f"Loading configuration from {path}")
        return ListenerConfig.from_dict(data)

    for config_path in DEFAULT_CONFIG_PATHS:
        if not config_path.exists():
            continue
        try:
            data = _read_file(config_path)
            config = ListenerConfig.from_dict(data)
        except (OSError, ValueError, yaml.YAMLError, InvalidConfiguration) as e:
            logger.error(f"Error loading configuration from {config_path}: {e}")
            continue

        logger.info(f"Loaded configuration from {config_path}")
        return config

    logger.debug("No configuration file found, using defaults")
    return ListenerConfig()
