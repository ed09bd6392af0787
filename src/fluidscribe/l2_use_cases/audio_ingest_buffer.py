"""Thread-safe sample accumulator between the capture callback and the transcription thread."""

from __future__ import annotations

import threading

import numpy as np

_INITIAL_CAPACITY = 16000 * 4  # 4 s of canonical audio


class AudioIngestBuffer:
    """Growing float32 sample sequence shared by one producer and one consumer.

    The capture callback calls ``append()`` at high frequency; the
    transcription thread takes snapshots with ``get_prefix()`` / ``get_all()``.
    A single lock guards every operation and critical sections only copy
    memory, so the producer never waits on inference.

    Snapshots are independent copies -- later appends or ``clear()`` never
    affect an array a consumer already holds.
    """

    def __init__(self, initial_capacity: int = _INITIAL_CAPACITY) -> None:
        self._lock = threading.Lock()
        self._initial_capacity = max(initial_capacity, 1)
        self._data = np.empty(self._initial_capacity, dtype=np.float32)
        self._length = 0

    def append(self, samples: np.ndarray) -> None:
        """Append *samples* in order. Capacity grows geometrically (amortized O(n))."""
        incoming = np.asarray(samples, dtype=np.float32).reshape(-1)
        n = len(incoming)
        if n == 0:
            return
        with self._lock:
            required = self._length + n
            if required > len(self._data):
                capacity = len(self._data)
                while capacity < required:
                    capacity *= 2
                grown = np.empty(capacity, dtype=np.float32)
                grown[: self._length] = self._data[: self._length]
                self._data = grown
            self._data[self._length : required] = incoming
            self._length = required

    def count(self) -> int:
        with self._lock:
            return self._length

    def __len__(self) -> int:
        return self.count()

    def get_prefix(self, n: int) -> np.ndarray:
        """Copy of the first ``min(n, count())`` samples. Never raises."""
        with self._lock:
            safe = min(max(n, 0), self._length)
            return self._data[:safe].copy()

    def get_all(self) -> np.ndarray:
        with self._lock:
            return self._data[: self._length].copy()

    def clear(self, keep_capacity: bool = False) -> None:
        """Reset to empty. With *keep_capacity* the allocation is reused next session."""
        with self._lock:
            self._length = 0
            if not keep_capacity:
                self._data = np.empty(self._initial_capacity, dtype=np.float32)

    @property
    def capacity(self) -> int:
        with self._lock:
            return len(self._data)
