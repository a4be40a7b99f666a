"""Thread-safe work queue with per-key exponential backoff."""

import logging
import threading
from collections import deque
from typing import Callable, Dict, Hashable, Optional, Set

from .config import BACKOFF_BASE_SECONDS, BACKOFF_MAX_SECONDS

logger = logging.getLogger(__name__)


class ShutDown(Exception):
    """Raised by get() once the queue is shut down and drained."""


class WorkQueue:
    """
    FIFO of keys to reconcile.

    A key is queued at most once. A key handed out by get() is not handed
    out again until done() is called for it; adds in the meantime are
    remembered and the key is queued again by done().
    """

    def __init__(
        self,
        base_delay: float = BACKOFF_BASE_SECONDS,
        max_delay: float = BACKOFF_MAX_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer
    ):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._timer_factory = timer_factory
        self._queue: deque = deque()
        self._dirty: Set[Hashable] = set()
        self._processing: Set[Hashable] = set()
        self._failures: Dict[Hashable, int] = {}
        self._timers: Set[threading.Timer] = set()
        self._cond = threading.Condition(threading.RLock())
        self._shutting_down = False

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)

    def add(self, key: Hashable) -> None:
        with self._cond:
            if self._shutting_down or key in self._dirty:
                return
            self._dirty.add(key)
            if key in self._processing:
                return
            self._queue.append(key)
            self._cond.notify()

    def get(self, timeout: Optional[float] = None) -> Hashable:
        """
        Block until a key is available.

        Raises:
            ShutDown: If the queue was shut down
        """
        with self._cond:
            while not self._queue and not self._shutting_down:
                if not self._cond.wait(timeout):
                    raise TimeoutError("no work available")
            if not self._queue:
                raise ShutDown()
            key = self._queue.popleft()
            self._processing.add(key)
            self._dirty.discard(key)
            return key

    def done(self, key: Hashable) -> None:
        with self._cond:
            self._processing.discard(key)
            if key in self._dirty:
                self._queue.append(key)
                self._cond.notify()

    def add_after(self, key: Hashable, delay: float) -> None:
        if delay <= 0:
            self.add(key)
            return

        with self._cond:
            if self._shutting_down:
                return

            def fire():
                with self._cond:
                    self._timers.discard(timer)
                self.add(key)

            timer = self._timer_factory(delay, fire)
            timer.daemon = True
            self._timers.add(timer)
        timer.start()

    def backoff(self, key: Hashable) -> float:
        """Delay before the next retry of a key, doubling per failure."""
        with self._cond:
            failures = self._failures.get(key, 0)
            return min(self.base_delay * (2 ** failures), self.max_delay)

    def add_rate_limited(self, key: Hashable) -> float:
        """Queue a failed key again after its backoff delay."""
        with self._cond:
            delay = self.backoff(key)
            self._failures[key] = self._failures.get(key, 0) + 1
        logger.debug(f"Requeueing {key} in {delay:.1f}s")
        self.add_after(key, delay)
        return delay

    def num_requeues(self, key: Hashable) -> int:
        with self._cond:
            return self._failures.get(key, 0)

    def forget(self, key: Hashable) -> None:
        """Reset the backoff of a key."""
        with self._cond:
            self._failures.pop(key, None)

    def shut_down(self) -> None:
        with self._cond:
            self._shutting_down = True
            timers = list(self._timers)
            self._timers.clear()
            self._cond.notify_all()
        for timer in timers:
            timer.cancel()

    @property
    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down
