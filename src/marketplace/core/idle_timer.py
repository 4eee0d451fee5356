"""
=============================================================================
IDLE SHUTDOWN TIMER
=============================================================================

Stops the server once it has had no clients for a while.

    clients: 1 ──► 0          0 ──────── (delay) ─────────► fire → stop()
                   │          │
                   arm()      still 0: nobody cancelled

    clients: 1 ──► 0 ──► 1
                   │     │
                   arm() cancel()    (never fires)

=============================================================================
CANCEL RACES
=============================================================================

threading.Timer.cancel() only helps if the timer thread has not started
running its callback yet. A late cancel can lose that race:

    loop thread                     timer thread
    ───────────                     ────────────
                                    delay elapsed, about to call back
    accept() → cancel()
                                    on_expire()   ← would stop a busy server

Each arm() therefore bumps a generation number. The callback only acts
when its own generation is still the current one, checked under the lock
that cancel() and arm() also take.

=============================================================================
"""

import logging
import threading
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class IdleShutdownTimer:
    """
    Re-armable one-shot timer.

    Only the event-loop thread calls arm() and cancel(); the callback runs
    on a daemon timer thread and must itself be thread-safe.

    Args:
        delay: Seconds between arm() and firing.
        on_expire: Called once when the timer fires uncancelled.
    """

    def __init__(self, delay: float, on_expire: Callable[[], None]):
        self.delay = delay
        self._on_expire = on_expire
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0

    @property
    def is_armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    def arm(self) -> None:
        """Start (or restart) the countdown from the full delay."""
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()
        logger.debug(f"Idle shutdown armed ({self.delay:g}s)")

    def cancel(self) -> None:
        """Disarm the countdown. Safe to call when not armed."""
        with self._lock:
            if self._timer is not None:
                logger.debug("Idle shutdown cancelled")
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        # Invalidate any callback already in flight
        self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        logger.info(f"No clients for {self.delay:g}s, shutting down")
        self._on_expire()
