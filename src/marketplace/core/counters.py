"""
Thread-safe counter.

The connected-client count is read by the idle timer thread while the event
loop thread changes it, so every access goes through one lock.
"""

import threading


class AtomicCounter:
    """
    An integer whose updates are atomic across threads.

    Each mutator returns the new value, so "decrement and check for zero"
    is a single step:

        if counter.decrement() == 0:
            timer.arm()
    """

    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def decrement(self) -> int:
        with self._lock:
            self._value -= 1
            return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"AtomicCounter({self.value})"
