import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from fshandle.exceptions import WatchRegistrationError
from fshandle.watch.handlers import UpdateEventHandler
from fshandle.watch.watcher import DirectoryWatcher


@pytest.fixture
def handler(tmp_path: Path):
    return UpdateEventHandler(tmp_path, sink=lambda batch: None)


def test_start_schedules_non_recursive_watch(tmp_path: Path, handler):
    with patch("fshandle.watch.watcher.Observer") as observer_cls:
        watcher = DirectoryWatcher(tmp_path, handler)
        watcher.start()

    observer = observer_cls.return_value
    observer.schedule.assert_called_once_with(handler, str(tmp_path), recursive=False)
    observer.start.assert_called_once_with()
    assert watcher.is_watching
    assert watcher.get_status()['is_watching'] is True


def test_polling_observer_uses_interval(tmp_path: Path, handler):
    with patch("fshandle.watch.watcher.PollingObserver") as polling_cls:
        watcher = DirectoryWatcher(tmp_path, handler, use_polling=True, poll_interval=0.5)
        watcher.start()

    polling_cls.assert_called_once_with(timeout=0.5)
    assert watcher.get_status()['poll_interval'] == 0.5


def test_registration_failure_is_wrapped(tmp_path: Path, handler):
    with patch("fshandle.watch.watcher.Observer") as observer_cls:
        observer_cls.return_value.schedule.side_effect = OSError(28, "inotify watch limit reached")
        watcher = DirectoryWatcher(tmp_path, handler)

        with pytest.raises(WatchRegistrationError) as excinfo:
            watcher.start()

    assert isinstance(excinfo.value.__cause__, OSError)
    assert excinfo.value.context['directory'] == str(tmp_path)
    assert not watcher.is_watching
    assert not handler.active


def test_stop_is_idempotent(tmp_path: Path, handler):
    with patch("fshandle.watch.watcher.Observer") as observer_cls:
        watcher = DirectoryWatcher(tmp_path, handler)
        watcher.start()

        assert watcher.stop(timeout=1.0)
        assert watcher.stop(timeout=1.0)

    observer = observer_cls.return_value
    observer.stop.assert_called_once_with()
    observer.join.assert_called_once_with()
    assert watcher.released
    assert not handler.active


def test_released_binding_cannot_restart(tmp_path: Path, handler):
    with patch("fshandle.watch.watcher.Observer"):
        watcher = DirectoryWatcher(tmp_path, handler)
        watcher.start()
        watcher.stop()

        with pytest.raises(WatchRegistrationError):
            watcher.start()


def test_stop_before_start_releases_nothing(tmp_path: Path, handler):
    with patch("fshandle.watch.watcher.Observer") as observer_cls:
        watcher = DirectoryWatcher(tmp_path, handler)

        assert watcher.stop()

    observer_cls.assert_not_called()


def test_hung_observer_is_abandoned_after_timeout(tmp_path: Path, handler):
    release = threading.Event()

    with patch("fshandle.watch.watcher.Observer") as observer_cls:
        observer_cls.return_value.join.side_effect = lambda *args, **kwargs: release.wait(5.0)
        watcher = DirectoryWatcher(tmp_path, handler)
        watcher.start()

        try:
            assert watcher.stop(timeout=0.1) is False
        finally:
            release.set()

    assert watcher.stats['forced_release'] is True
    assert watcher.released


def test_real_observer_starts_and_stops(tmp_path: Path, handler):
    watcher = DirectoryWatcher(tmp_path, handler)
    watcher.start()
    observer = watcher.observer

    assert observer.is_alive()
    assert watcher.stop(timeout=5.0)
    assert not observer.is_alive()
