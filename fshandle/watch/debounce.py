# fshandle/watch/debounce.py

"""
Coalescing of repeated update events
"""
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

from .events import UpdateEvent, UpdateType

logger = logging.getLogger(__name__)


class EventCoalescer:
    """
    Collapses identical consecutive updates that arrive in a short burst

    A single write can surface as several raw modify notifications. An
    update is suppressed when it has the same name and kind as the previous
    one and arrives within ``window`` seconds of it. Anything else passes
    and becomes the new reference.
    """

    def __init__(self, window: float = 0.05):
        """
        Initialize coalescer

        Args:
            window: Time in seconds during which a repeat is suppressed
        """
        self.window = window
        self._last: Optional[Tuple[str, UpdateType]] = None
        self._last_seen = 0.0
        self._lock = threading.Lock()

        self.stats = {
            'total_events': 0,
            'coalesced_events': 0,
        }

    def _event_key(self, event: UpdateEvent) -> Tuple[str, UpdateType]:
        return (event.name, event.update_type)

    def accept(self, event: UpdateEvent) -> bool:
        """
        Decide whether an update should be forwarded

        Args:
            event: Translated update event

        Returns:
            False if the event repeats the previous one inside the window
        """
        now = time.monotonic()
        key = self._event_key(event)

        with self._lock:
            self.stats['total_events'] += 1
            repeated = (
                self.window > 0
                and key == self._last
                and now - self._last_seen <= self.window
            )
            self._last = key
            self._last_seen = now

            if repeated:
                self.stats['coalesced_events'] += 1
                logger.debug(f"Coalesced repeated event {event}")
                return False
            return True

    def reset(self):
        """Forget the reference event"""
        with self._lock:
            self._last = None
            self._last_seen = 0.0

    def get_stats(self) -> Dict[str, Any]:
        """Get coalescer statistics"""
        with self._lock:
            return {**self.stats, 'window': self.window}
