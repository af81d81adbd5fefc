# fshandle/watch/dispatcher.py

"""
Fan-out of update batches to subscribed observers
"""
import itertools
import logging
import queue
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from .events import UpdateEvent
from ..exceptions import HandleClosedError

logger = logging.getLogger(__name__)

ObserverCallback = Callable[[List[UpdateEvent]], None]

_STOP = object()
_ids = itertools.count(1)


class Subscription:
    """
    One registered observer with its own FIFO and delivery thread

    Batches are delivered in the order they were dispatched. When the FIFO
    holds ``queue_size`` batches the oldest one is dropped to make room, so
    a stalled observer costs bounded memory and never blocks the watcher.
    """

    def __init__(self, callback: ObserverCallback,
                 queue_size: int = 256,
                 slow_observer_threshold: float = 1.0):
        self.id = next(_ids)
        self.callback = callback
        self.queue_size = max(1, int(queue_size))
        self.slow_observer_threshold = slow_observer_threshold
        self.active = True

        self.delivered = 0
        self.dropped = 0
        self.failures = 0

        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=self.queue_size)
        self._offer_lock = threading.Lock()
        # Covers the active check and the callback; cancel() waits on it
        self._delivery_lock = threading.RLock()
        self._thread = threading.Thread(
            target=self._run,
            name=f"fshandle-deliver-{self.id}",
            daemon=True,
        )
        self._thread.start()

    def __repr__(self):
        return f"<Subscription id={self.id} active={self.active} callback={self.callback!r}>"

    def offer(self, batch: Any):
        """Queue a batch, evicting the oldest pending one if the FIFO is full"""
        with self._offer_lock:
            while True:
                try:
                    self._queue.put_nowait(batch)
                    return
                except queue.Full:
                    pass
                try:
                    evicted = self._queue.get_nowait()
                except queue.Empty:
                    continue
                if evicted is _STOP:
                    # Never lose the shutdown marker; drop the new batch instead
                    self._queue.put_nowait(evicted)
                    return
                if batch is _STOP:
                    # Cancelled; pending batches would be skipped anyway
                    continue
                self.dropped += len(evicted)
                logger.warning(
                    f"Observer {self.id} is falling behind; dropped {len(evicted)} "
                    f"update(s) (total dropped: {self.dropped})"
                )

    def _run(self):
        while True:
            batch = self._queue.get()
            if batch is _STOP:
                return
            self._invoke(batch)

    def _invoke(self, batch: List[UpdateEvent]):
        with self._delivery_lock:
            if not self.active:
                return
            started = time.monotonic()
            try:
                self.callback(list(batch))
                self.delivered += len(batch)
            except Exception:
                self.failures += 1
                logger.exception(f"Observer {self.id} raised while handling {len(batch)} update(s)")
            elapsed = time.monotonic() - started

        if self.slow_observer_threshold and elapsed > self.slow_observer_threshold:
            logger.warning(f"Observer {self.id} took {elapsed:.2f}s to handle {len(batch)} update(s)")

    def cancel(self, wait: bool = True, timeout: Optional[float] = None) -> bool:
        """
        Stop delivering; an invocation already in progress completes

        Args:
            wait: Block until an in-progress invocation has returned
            timeout: Upper bound for that wait (None waits indefinitely)

        Returns:
            False if the in-progress invocation was still running when the
            wait gave up; no invocation starts after ``cancel`` returns
        """
        self.active = False
        self.offer(_STOP)
        if not wait or threading.current_thread() is self._thread:
            return True

        acquired = self._delivery_lock.acquire(timeout=-1 if timeout is None else timeout)
        if acquired:
            self._delivery_lock.release()
        return acquired

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the delivery thread; returns False if it is still running"""
        if threading.current_thread() is self._thread:
            # Cancelled from inside its own callback
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def get_stats(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'active': self.active,
            'pending': self._queue.qsize(),
            'delivered': self.delivered,
            'dropped': self.dropped,
            'failures': self.failures,
        }


class EventDispatcher:
    """
    Delivers every dispatched batch to every active subscription

    ``dispatch`` only enqueues, so it is safe to call from the observer
    thread; callbacks run on per-subscription delivery threads and may call
    back into the dispatcher (including unsubscribing themselves).
    """

    def __init__(self, queue_size: int = 256, slow_observer_threshold: float = 1.0,
                 unsubscribe_timeout: float = 5.0):
        """
        Initialize dispatcher

        Args:
            queue_size: Maximum pending batches per subscription
            slow_observer_threshold: Seconds after which a callback is reported as slow
            unsubscribe_timeout: Seconds ``unsubscribe`` waits for an in-flight callback
        """
        self.queue_size = queue_size
        self.slow_observer_threshold = slow_observer_threshold
        self.unsubscribe_timeout = unsubscribe_timeout
        self._subscriptions: Dict[int, Subscription] = {}
        self._lock = threading.Lock()
        self._closed = False

        self.stats = {
            'batches_dispatched': 0,
            'events_dispatched': 0,
        }

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(self, callback: ObserverCallback) -> Subscription:
        """
        Register an observer

        Args:
            callback: Called with a list of update events per raw change

        Returns:
            Subscription handle to pass to ``unsubscribe``
        """
        if not callable(callback):
            raise TypeError(f"Observer must be callable, got {callback!r}")

        with self._lock:
            if self._closed:
                raise HandleClosedError("Dispatcher is closed")
            subscription = Subscription(
                callback,
                queue_size=self.queue_size,
                slow_observer_threshold=self.slow_observer_threshold,
            )
            self._subscriptions[subscription.id] = subscription

        logger.debug(f"Registered observer {subscription.id}: {callback!r}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Remove an observer; later batches are not delivered to it

        Waits (up to ``unsubscribe_timeout``) for a callback that is already
        running, unless called from inside that callback.

        Returns:
            False if the subscription was not registered (already removed)
        """
        with self._lock:
            registered = self._subscriptions.pop(subscription.id, None)

        if registered is None:
            return False

        if not registered.cancel(timeout=self.unsubscribe_timeout):
            logger.warning(
                f"Observer {registered.id} still running after {self.unsubscribe_timeout}s; "
                f"its current callback will finish after unsubscribe"
            )
        logger.debug(f"Removed observer {registered.id}")
        return True

    def dispatch(self, batch: List[UpdateEvent]):
        """Queue one batch for every current subscription"""
        if not batch:
            return

        with self._lock:
            if self._closed:
                return
            targets = list(self._subscriptions.values())
            self.stats['batches_dispatched'] += 1
            self.stats['events_dispatched'] += len(batch)

        frozen = tuple(batch)
        for subscription in targets:
            subscription.offer(frozen)

    def close(self, timeout: float = 5.0):
        """
        Cancel every subscription and wait for the delivery threads

        Args:
            timeout: Overall time budget for joining delivery threads
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()

        for subscription in subscriptions:
            subscription.cancel(wait=False)

        deadline = time.monotonic() + timeout
        for subscription in subscriptions:
            remaining = max(0.0, deadline - time.monotonic())
            if not subscription.join(remaining):
                logger.warning(f"Observer {subscription.id} still busy after close; abandoning its thread")

    def get_stats(self) -> Dict[str, Any]:
        """Get dispatcher statistics"""
        with self._lock:
            subscriptions = [s.get_stats() for s in self._subscriptions.values()]
            return {
                **self.stats,
                'closed': self._closed,
                'subscribers': subscriptions,
                'queue_size': self.queue_size,
            }
