# fshandle/watch/handlers.py

"""
Translation of raw watchdog events into update events
"""
import logging
import os
import stat
from pathlib import Path
from typing import Optional, Dict, Any, List, Callable
from datetime import datetime

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileCreatedEvent,
    FileModifiedEvent,
    FileDeletedEvent,
    FileMovedEvent,
    DirCreatedEvent,
    DirModifiedEvent,
    DirDeletedEvent,
    DirMovedEvent
)

from .events import UpdateEvent, UpdateType
from .patterns import PatternFilter
from .debounce import EventCoalescer

logger = logging.getLogger(__name__)

EventSink = Callable[[List[UpdateEvent]], None]


def _path_key(path: str) -> str:
    return os.path.normcase(os.path.normpath(path))


class UpdateEventHandler(FileSystemEventHandler):
    """
    Event handler bound to exactly one directory

    Runs on the observer's thread. Every raw event is turned into zero or
    more update events for immediate children of ``directory`` and handed to
    ``sink`` as one batch. Once ``detach()`` has been called the handler
    drops everything, so late events from a released binding never reach
    the sink.
    """

    def __init__(self, directory: Path,
                 sink: EventSink,
                 pattern_filter: Optional[PatternFilter] = None,
                 coalescer: Optional[EventCoalescer] = None):
        """
        Initialize event handler

        Args:
            directory: Directory the binding watches
            sink: Receives each translated batch
            pattern_filter: Hides entries that listings hide too
            coalescer: Suppresses bursts of identical updates
        """
        super().__init__()
        self.directory = directory
        self.sink = sink
        self.pattern_filter = pattern_filter or PatternFilter()
        self.coalescer = coalescer or EventCoalescer()
        self.active = True

        # FSEvents reports resolved paths, inotify reports the scheduled one
        self._directory_keys = {
            _path_key(os.path.abspath(directory)),
            _path_key(os.path.realpath(directory)),
        }

        self.stats = {
            'events_received': 0,
            'events_translated': 0,
            'events_ignored': 0,
            'last_event': None,
        }

    def detach(self):
        """Stop forwarding events (called before the binding is released)"""
        self.active = False

    def on_any_event(self, event: FileSystemEvent):
        """Handle any file system event"""
        if not self.active:
            return

        self.stats['events_received'] += 1
        self.stats['last_event'] = datetime.now()

        try:
            updates = [
                update for update in self._convert_event(event)
                if self.coalescer.accept(update)
            ]
        except Exception:
            logger.exception(f"Error translating event {event!r}")
            return

        if not updates:
            self.stats['events_ignored'] += 1
            return

        # Re-check: detach() may have raced with the translation above
        if not self.active:
            return

        self.stats['events_translated'] += len(updates)
        try:
            self.sink(updates)
        except Exception:
            # The observer thread must survive a broken sink
            logger.exception(f"Error forwarding {len(updates)} update(s) from {self.directory}")

    def _convert_event(self, event: FileSystemEvent) -> List[UpdateEvent]:
        """Convert watchdog event to zero or more update events"""
        src_path = os.fsdecode(event.src_path)

        if isinstance(event, (FileMovedEvent, DirMovedEvent)):
            dest_path = os.fsdecode(event.dest_path)
            updates = []
            if self._is_child(src_path):
                updates.extend(self._build(UpdateType.DELETE, src_path, event))
            if self._is_child(dest_path):
                updates.extend(self._build(UpdateType.CREATE, dest_path, event))
            return updates

        if isinstance(event, (FileCreatedEvent, DirCreatedEvent)):
            update_type = UpdateType.CREATE
        elif isinstance(event, (FileDeletedEvent, DirDeletedEvent)):
            update_type = UpdateType.DELETE
        elif isinstance(event, (FileModifiedEvent, DirModifiedEvent)):
            update_type = UpdateType.MODIFY
        else:
            # Opened/closed and anything newer
            return []

        if _path_key(src_path) in self._directory_keys:
            if update_type is UpdateType.DELETE:
                logger.warning(f"Watched directory was removed: {self.directory}")
            # A modification of the directory itself only mirrors child changes
            return []

        if not self._is_child(src_path):
            return []

        return self._build(update_type, src_path, event)

    def _is_child(self, path: str) -> bool:
        return _path_key(os.path.dirname(os.path.normpath(path))) in self._directory_keys

    def _build(self, update_type: UpdateType, path: str, event: FileSystemEvent) -> List[UpdateEvent]:
        entry_path = Path(path)
        if self.pattern_filter.should_ignore(entry_path):
            return []

        if update_type is UpdateType.DELETE:
            return [UpdateEvent(
                name=entry_path.name,
                update_type=update_type,
                directory=str(self.directory),
            )]

        is_directory = event.is_directory
        size = None
        mtime = None
        try:
            st = os.lstat(path)
            is_directory = stat.S_ISDIR(st.st_mode)
            mtime = st.st_mtime
            if not is_directory:
                size = st.st_size
        except OSError:
            # Gone again already; report what the raw event knew
            pass

        return [UpdateEvent(
            name=entry_path.name,
            update_type=update_type,
            directory=str(self.directory),
            is_directory=is_directory,
            size=size,
            mtime=mtime,
        )]

    def get_stats(self) -> Dict[str, Any]:
        """Get handler statistics"""
        return {**self.stats, 'coalescer': self.coalescer.get_stats()}
