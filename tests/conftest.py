import logging
import queue
import time

import pytest

from fshandle import FsHandle
from fshandle.utils.config import Config


class EventCollector:
    """Observer that records every update event it is handed."""

    def __init__(self):
        self.events = queue.Queue()
        self.batches = []

    def __call__(self, batch):
        self.batches.append(batch)
        for event in batch:
            self.events.put(event)

    def next(self, timeout=5.0):
        try:
            return self.events.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self, settle=0.5):
        """Wait for stragglers, then return whatever arrived."""
        time.sleep(settle)
        remaining = []
        while True:
            try:
                remaining.append(self.events.get_nowait())
            except queue.Empty:
                return remaining


@pytest.fixture
def collector():
    return EventCollector()


@pytest.fixture
def open_handle():
    """Factory for handles that are always closed after the test."""
    handles = []

    def _open(path, **kwargs):
        handle = FsHandle(path, **kwargs)
        handles.append(handle)
        return handle

    yield _open

    for handle in handles:
        handle.close()


@pytest.fixture
def fast_config():
    config = Config()
    config.watch.stop_timeout = 2.0
    return config


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    # pytest attaches its own capture handlers per phase; only undo ours
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging.getLogger('watchdog').setLevel(logging.NOTSET)


@pytest.fixture
def make_collector():
    return EventCollector
