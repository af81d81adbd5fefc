# fshandle/core/handle.py

"""
Navigable, watchable handle onto one directory subtree
"""
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import HandleClosedError, WatchRegistrationError
from ..utils.config import Config, section_to_dict
from ..watch.debounce import EventCoalescer
from ..watch.dispatcher import EventDispatcher, ObserverCallback, Subscription
from ..watch.events import ListingEntry
from ..watch.handlers import UpdateEventHandler
from ..watch.patterns import PatternFilter
from ..watch.watcher import DirectoryWatcher
from .listing import list_directory
from .navigator import PathNavigator

logger = logging.getLogger(__name__)


class FsHandle:
    """
    Stateful handle with a current-directory cursor and a live watch on it

    Navigation and listing run synchronously on the caller's thread. The
    watch on the current directory is started eagerly at construction and
    is swapped (old binding released first) every time the cursor moves.
    Events that race with a swap may be lost, but an event is never
    reported against a directory other than the one it happened in.

    Usage::

        with FsHandle("/srv/data") as fs:
            subscription = fs.subscribe(print)
            fs.descend("incoming")
            for entry in fs.list():
                ...
    """

    def __init__(self, path: Union[str, Path],
                 root: Optional[Union[str, Path]] = None,
                 config: Optional[Config] = None):
        """
        Initialize handle

        Args:
            path: Initial directory
            root: Navigation boundary (overrides ``config.navigation.root``)
            config: Configuration, defaults to ``Config()``

        Raises:
            InvalidPathError: If ``path`` is not an existing directory inside the root
        """
        self.config = config or Config()
        if root is None:
            root = self.config.navigation.root

        self._navigator = PathNavigator(path, root)
        self._pattern_filter = PatternFilter(
            ignore_patterns=self.config.listing.ignore_patterns,
            show_hidden=self.config.listing.show_hidden,
        )
        self._dispatcher = EventDispatcher(
            queue_size=self.config.dispatch.queue_size,
            slow_observer_threshold=self.config.dispatch.slow_observer_threshold,
            unsubscribe_timeout=self.config.watch.stop_timeout,
        )

        # Guards the cursor together with the watch binding
        self._lock = threading.RLock()
        self._binding: Optional[DirectoryWatcher] = None
        self._closed = False
        self.watch_error: Optional[WatchRegistrationError] = None

        with self._lock:
            self._rebind()

        logger.info(f"Opened handle at {self.current_path()} (root: {self._navigator.root})")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        state = "closed" if self._closed else "open"
        return f"<FsHandle {self.current_path()!r} {state}>"

    # -- Navigation ---------------------------------------------------------

    def current_path(self) -> str:
        """Current directory; keeps answering after close"""
        return self._navigator.current_path()

    @property
    def root(self) -> str:
        return self._navigator.root

    def descend(self, name: str) -> bool:
        """
        Move into child directory ``name``

        Returns:
            False (cursor unchanged) if ``name`` is not a directory directly
            below the current one
        """
        with self._lock:
            self._check_open()
            moved = self._navigator.descend(name)
            if moved:
                self._rebind()
            return moved

    def ascend(self) -> bool:
        """
        Move to the parent directory

        Returns:
            False (cursor unchanged) if the cursor is already at the root
        """
        with self._lock:
            self._check_open()
            moved = self._navigator.ascend()
            if moved:
                self._rebind()
            return moved

    def reset(self) -> bool:
        """Return to the initial directory"""
        with self._lock:
            self._check_open()
            before = self._navigator.current_path()
            moved = self._navigator.reset()
            if moved and self._navigator.current_path() != before:
                self._rebind()
            return moved

    # -- Listing ------------------------------------------------------------

    def list(self) -> List[ListingEntry]:
        """
        List the current directory

        Raises:
            ListingError: If the directory cannot be read
        """
        with self._lock:
            self._check_open()
            directory = self._navigator.current_path()

        return list_directory(
            directory,
            pattern_filter=self._pattern_filter,
            follow_symlinks=self.config.listing.follow_symlinks,
        )

    # -- Subscriptions ------------------------------------------------------

    def subscribe(self, observer: ObserverCallback) -> Subscription:
        """
        Register an observer for update events of the current directory

        The observer is called with a list of ``UpdateEvent`` per change, on
        a delivery thread owned by the handle.
        """
        self._check_open()
        return self._dispatcher.subscribe(observer)

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Stop delivering to ``subscription``; False if it was not registered"""
        return self._dispatcher.unsubscribe(subscription)

    # -- Watch binding ------------------------------------------------------

    @property
    def is_watching(self) -> bool:
        binding = self._binding
        return binding is not None and binding.is_watching

    @property
    def watched_path(self) -> Optional[str]:
        binding = self._binding
        return str(binding.directory) if binding is not None else None

    def _rebind(self):
        """Replace the watch binding with one on the current cursor (lock held)"""
        old = self._binding
        self._binding = None
        if old is not None:
            old.stop(timeout=self.config.watch.stop_timeout)

        if self._closed or not self.config.watch.enabled:
            return

        directory = Path(self._navigator.current_path())
        handler = UpdateEventHandler(
            directory,
            sink=self._dispatcher.dispatch,
            pattern_filter=self._pattern_filter,
            coalescer=EventCoalescer(self.config.watch.coalesce_window),
        )
        watcher = DirectoryWatcher(
            directory,
            handler,
            use_polling=self.config.watch.use_polling,
            poll_interval=self.config.watch.poll_interval,
        )

        try:
            watcher.start()
        except WatchRegistrationError as e:
            self.watch_error = e
            logger.warning(f"Change notifications unavailable for {directory}: {e.detail}")
            return

        self.watch_error = None
        self._binding = watcher

    # -- Lifecycle ----------------------------------------------------------

    def _check_open(self):
        if self._closed:
            raise HandleClosedError(
                f"Handle at {self.current_path()} is closed",
                {'path': self.current_path()},
            )

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        """Release the watch and all subscriptions; safe to call repeatedly"""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            binding = self._binding
            self._binding = None
            if binding is not None:
                binding.stop(timeout=self.config.watch.stop_timeout)

        # Outside the lock: callbacks may still be calling into the handle
        self._dispatcher.close(timeout=self.config.watch.stop_timeout)
        logger.info(f"Closed handle at {self.current_path()}")

    def get_status(self) -> Dict[str, Any]:
        """Get handle status"""
        binding = self._binding
        return {
            'path': self.current_path(),
            'root': self.root,
            'closed': self._closed,
            'is_watching': self.is_watching,
            'watch_error': str(self.watch_error) if self.watch_error else None,
            'watch_config': section_to_dict(self.config.watch),
            'binding': binding.get_status() if binding is not None else None,
            'dispatcher': self._dispatcher.get_stats(),
            'filter': self._pattern_filter.get_stats(),
        }
