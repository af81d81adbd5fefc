"""
fshandle
Navigable, watchable handles onto a directory subtree
"""
from .core.handle import FsHandle
from .core.listing import list_directory
from .core.navigator import PathNavigator
from .watch.events import ListingEntry, UpdateEvent, UpdateType
from .watch.dispatcher import EventDispatcher, Subscription
from .utils.config import Config, load_config
from .exceptions import (
    FsHandleError,
    InvalidPathError,
    ListingError,
    WatchRegistrationError,
    HandleClosedError,
    ConfigError,
)

__version__ = "1.0.0"

__all__ = [
    'FsHandle',
    'list_directory',
    'PathNavigator',
    'ListingEntry',
    'UpdateEvent',
    'UpdateType',
    'EventDispatcher',
    'Subscription',
    'Config',
    'load_config',
    'FsHandleError',
    'InvalidPathError',
    'ListingError',
    'WatchRegistrationError',
    'HandleClosedError',
    'ConfigError',
]
