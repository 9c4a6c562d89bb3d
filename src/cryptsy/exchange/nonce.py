"""
Nonce generation for authenticated requests.

The exchange rejects any private request whose nonce does not exceed the last
one it accepted for the same key, so every value handed out here must be
strictly greater than all earlier values for that credential.
"""

import threading
import time
from typing import Callable, Dict, Optional


def _clock_micros() -> int:
    return time.time_ns() // 1000


class NonceGenerator:
    """
    Strictly increasing nonce source for one credential.

    Values track the wall clock in microseconds so that they keep increasing
    across process restarts. When two calls land on the same clock reading, or
    the clock steps backwards, the generator issues ``last + 1`` instead.

    Access is serialized with a ``threading.Lock``; the critical section never
    blocks on I/O, so it is safe to call from coroutines as well as threads.

    Example:
        ```python
        nonces = NonceGenerator.for_key(public_key)
        params = [('method', 'getinfo'), ('nonce', str(nonces.next()))]
        ```
    """

    _registry: Dict[str, 'NonceGenerator'] = {}
    _registry_lock = threading.Lock()

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        """
        Initialize the generator.

        Args:
            clock: Source of integer clock readings. Defaults to wall-clock
                microseconds.
        """
        self._clock = clock or _clock_micros
        self._last = 0
        self._lock = threading.Lock()

    @classmethod
    def for_key(cls, public_key: str) -> 'NonceGenerator':
        """
        Get the process-wide generator for a public key.

        Clients built for the same key share one sequence, so their requests
        never reuse or reorder nonces.
        """
        with cls._registry_lock:
            generator = cls._registry.get(public_key)
            if generator is None:
                generator = cls()
                cls._registry[public_key] = generator
            return generator

    def next(self) -> int:
        """Return a nonce greater than every value previously returned."""
        with self._lock:
            candidate = self._clock()
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate

    @property
    def last(self) -> int:
        """Most recently issued nonce, or 0 if none has been issued."""
        return self._last
