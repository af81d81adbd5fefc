# fshandle/utils/config.py

"""
Configuration management for fshandle
"""
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, fields, asdict, is_dataclass
import logging

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class NavigationConfig:
    """Navigation configuration"""
    # None means the filesystem anchor of the initial directory
    root: Optional[Path] = None

    def __post_init__(self):
        if isinstance(self.root, str):
            self.root = Path(self.root)


@dataclass
class ListingConfig:
    """Listing configuration"""
    show_hidden: bool = True
    ignore_patterns: list = field(default_factory=list)
    follow_symlinks: bool = False


@dataclass
class WatchConfig:
    """Change watcher configuration"""
    enabled: bool = True
    use_polling: bool = False
    poll_interval: float = 1.0  # seconds
    stop_timeout: float = 5.0  # seconds
    coalesce_window: float = 0.05  # seconds


@dataclass
class DispatchConfig:
    """Event dispatcher configuration"""
    queue_size: int = 256  # batches per subscription
    slow_observer_threshold: float = 1.0  # seconds


_SECTIONS = {
    'navigation': NavigationConfig,
    'listing': ListingConfig,
    'watch': WatchConfig,
    'dispatch': DispatchConfig,
}


@dataclass
class Config:
    """Main configuration class"""
    navigation: NavigationConfig = field(default_factory=NavigationConfig)
    listing: ListingConfig = field(default_factory=ListingConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = "text"  # text, json, or color

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        def serialize(obj):
            if isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, dict):
                return {k: serialize(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [serialize(v) for v in obj]
            return obj

        return serialize(asdict(self))

    def to_json(self, indent: int = 2) -> str:
        """Convert config to JSON string"""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def to_yaml(self) -> str:
        """Convert config to YAML string"""
        return yaml.safe_dump(self.to_dict(), default_flow_style=False)

    def save(self, path: Union[str, Path]):
        """Save config to file (YAML for .yaml/.yml, JSON otherwise)"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.suffix.lower() in ['.yaml', '.yml']:
            with open(path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False)
        else:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2, default=str)

        logger.info(f"Configuration saved to {path}")

    def update_from_dict(self, data: Dict[str, Any]):
        """
        Update config from a (possibly partial) nested dictionary

        Args:
            data: Mapping shaped like ``to_dict()`` output

        Raises:
            ConfigError: If a section is not a mapping or a value has the wrong type
        """
        for key, value in data.items():
            if key in _SECTIONS:
                if value is None:
                    continue
                if not isinstance(value, dict):
                    raise ConfigError(f"'{key}' section must be a mapping", {'section': key})
                section = getattr(self, key)
                for option, option_value in value.items():
                    _set_option(section, f"{key}.{option}", option, option_value)
            elif hasattr(self, key):
                _set_option(self, key, key, value)
            else:
                logger.warning(f"Ignoring unknown configuration key: {key}")


def _set_option(target: Any, qualified_name: str, option: str, value: Any):
    """Assign one option after checking it against the dataclass default's type"""
    known = {f.name: f for f in fields(target)}
    if option not in known:
        logger.warning(f"Ignoring unknown configuration key: {qualified_name}")
        return

    current = getattr(target, option)
    if option == 'root':
        if value is not None and not isinstance(value, (str, Path)):
            raise ConfigError(f"{qualified_name} must be a path string", {'key': qualified_name})
        setattr(target, option, Path(value) if value is not None else None)
        return

    if isinstance(current, bool):
        if not isinstance(value, bool):
            raise ConfigError(f"{qualified_name} must be a boolean", {'key': qualified_name})
    elif isinstance(current, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{qualified_name} must be numeric", {'key': qualified_name})
        if value < 0:
            raise ConfigError(f"{qualified_name} must not be negative", {'key': qualified_name})
        if isinstance(current, int) and not isinstance(current, bool):
            value = int(value)
    elif isinstance(current, list):
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigError(f"{qualified_name} must be a list of strings", {'key': qualified_name})
    elif current is not None and isinstance(current, str) and value is not None:
        value = str(value)

    setattr(target, option, value)


def load_config(path: Union[str, Path, None] = None) -> Config:
    """
    Load configuration from a YAML or JSON file, or return defaults

    Args:
        path: Configuration file; ``None`` returns the default configuration

    Returns:
        Loaded configuration

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    config = Config()
    if path is None:
        return config

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}", {'path': str(config_path)})

    logger.info(f"Loading configuration from {config_path}")
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to parse configuration {config_path}: {e}", {'path': str(config_path)}) from e

    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping", {'path': str(config_path)})

    config.update_from_dict(data)
    logger.info("Configuration loaded successfully")
    return config


def save_config(config: Config, path: Union[str, Path]):
    """Save configuration to file"""
    config.save(path)


def section_to_dict(section: Any) -> Dict[str, Any]:
    """Shallow dict view of one configuration section (used for status reports)"""
    if not is_dataclass(section):
        raise TypeError(f"Not a configuration section: {section!r}")
    return {f.name: getattr(section, f.name) for f in fields(section)}
