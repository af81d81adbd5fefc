# fshandle/watch/__init__.py

"""
Change watching for the handle's current directory
"""
from .events import ListingEntry, UpdateEvent, UpdateType
from .debounce import EventCoalescer
from .patterns import PatternFilter, PatternRule
from .handlers import UpdateEventHandler
from .watcher import DirectoryWatcher
from .dispatcher import EventDispatcher, Subscription

__all__ = [
    'ListingEntry',
    'UpdateEvent',
    'UpdateType',
    'EventCoalescer',
    'PatternFilter',
    'PatternRule',
    'UpdateEventHandler',
    'DirectoryWatcher',
    'EventDispatcher',
    'Subscription',
]
