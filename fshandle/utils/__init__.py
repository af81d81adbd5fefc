# fshandle/utils/__init__.py

"""
fshandle utilities
"""
from .config import Config, load_config, save_config
from .logger import setup_logging, setup_logging_from_config, get_logger
from .platform_compat import is_windows, is_macos, supports_modify_events

__all__ = [
    'Config', 'load_config', 'save_config',
    'setup_logging', 'setup_logging_from_config', 'get_logger',
    'is_windows', 'is_macos', 'supports_modify_events',
]
