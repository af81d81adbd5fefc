# fshandle/watch/watcher.py

"""
Single-directory watch binding
"""
import logging
import threading
from pathlib import Path
from typing import Dict, Any
from datetime import datetime

from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .handlers import UpdateEventHandler
from ..exceptions import WatchRegistrationError

logger = logging.getLogger(__name__)


class DirectoryWatcher:
    """
    Owns one native watch registration on one directory

    The binding is non-recursive and single-use: once stopped it stays
    released and a new instance is needed for the next directory.
    """

    def __init__(self, directory: Path,
                 handler: UpdateEventHandler,
                 use_polling: bool = False,
                 poll_interval: float = 1.0):
        """
        Initialize directory watcher

        Args:
            directory: Directory to watch
            handler: Event handler bound to the same directory
            use_polling: Use polling instead of OS events
            poll_interval: Polling interval in seconds
        """
        self.directory = directory
        self.handler = handler
        self.use_polling = use_polling
        self.poll_interval = poll_interval

        self.observer = None
        self.is_watching = False
        self.released = False
        self._lock = threading.Lock()

        self.stats = {
            'start_time': None,
            'stop_time': None,
            'forced_release': False,
        }

    def start(self):
        """
        Register the watch and start the observer thread

        Raises:
            WatchRegistrationError: If the platform refuses the registration
        """
        with self._lock:
            if self.released:
                raise WatchRegistrationError(
                    f"Watch binding for {self.directory} was already released",
                    {'directory': str(self.directory)}
                )
            if self.is_watching:
                logger.warning(f"Already watching directory: {self.directory}")
                return

            if self.use_polling:
                observer = PollingObserver(timeout=self.poll_interval)
                logger.debug(f"Using polling observer (interval: {self.poll_interval}s)")
            else:
                observer = Observer()
                logger.debug("Using OS event observer")
            observer.name = f"fshandle-watch:{self.directory.name or self.directory}"

            try:
                observer.schedule(self.handler, str(self.directory), recursive=False)
                observer.start()
            except Exception as e:
                self.handler.detach()
                raise WatchRegistrationError(
                    f"Failed to watch {self.directory}: {e}",
                    {'directory': str(self.directory), 'observer': type(observer).__name__}
                ) from e

            self.observer = observer
            self.is_watching = True
            self.stats['start_time'] = datetime.now()
            logger.debug(f"Started watching directory: {self.directory}")

    def stop(self, timeout: float = 5.0) -> bool:
        """
        Release the watch registration

        Safe to call repeatedly; only the first call releases anything.

        Args:
            timeout: Seconds to wait for the observer thread to finish

        Returns:
            False if the observer had to be abandoned after the timeout
        """
        with self._lock:
            if self.released:
                return True
            self.released = True
            self.handler.detach()

            observer = self.observer
            self.observer = None
            self.is_watching = False
            self.stats['stop_time'] = datetime.now()

        if observer is None:
            return True

        # Observer.stop() joins the emitter threads without a bound, so the
        # whole shutdown runs on a helper thread that we can give up on.
        stopper = threading.Thread(
            target=self._shutdown_observer,
            args=(observer,),
            name=f"fshandle-unwatch:{self.directory.name or self.directory}",
            daemon=True,
        )
        stopper.start()
        stopper.join(timeout)

        if stopper.is_alive():
            self.stats['forced_release'] = True
            logger.warning(
                f"Observer for {self.directory} did not stop within {timeout}s; abandoning it"
            )
            return False

        logger.debug(f"Stopped watching directory: {self.directory}")
        return True

    def _shutdown_observer(self, observer):
        try:
            observer.stop()
            observer.join()
        except Exception:
            logger.exception(f"Error stopping observer for {self.directory}")

    def get_status(self) -> Dict[str, Any]:
        """Get watcher status"""
        return {
            'directory': str(self.directory),
            'is_watching': self.is_watching,
            'released': self.released,
            'use_polling': self.use_polling,
            'poll_interval': self.poll_interval if self.use_polling else None,
            'stats': {**self.stats, **self.handler.get_stats()},
        }
