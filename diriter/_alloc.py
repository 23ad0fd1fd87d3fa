import threading
from contextlib import contextmanager

from ._exceptions import DIOutOfMemoryError


class Allocator:
    """Byte ledger for every allocation an iterator makes.

    ``limit=None`` means unbounded.  ``fail_nth(n)`` arms a one-shot fault:
    the n-th reservation from now (0 = the next one) is refused as if
    memory were exhausted.
    """

    def __init__(self, limit: int | None = None) -> None:
        if limit is not None and limit < 0:
            raise ValueError(f"Invalid limit: {limit!r}. Expected None or >= 0.")
        self._limit: int | None = limit
        self._used: int = 0
        self._allocations: int = 0
        self._fail_countdown: int | None = None
        self._lock: threading.Lock = threading.Lock()

    def _available(self) -> int:
        if self._limit is None:
            return 0
        return self._limit - self._used

    @contextmanager
    def reserve(self, size: int):
        if size <= 0:
            yield
            return
        with self._lock:
            if self._fail_countdown is not None:
                if self._fail_countdown == 0:
                    self._fail_countdown = None
                    raise DIOutOfMemoryError(requested=size, available=self._available())
                self._fail_countdown -= 1
            if self._limit is not None and size > self._limit - self._used:
                raise DIOutOfMemoryError(requested=size, available=self._available())
            self._used += size
            self._allocations += 1
        try:
            yield
        except BaseException:
            with self._lock:
                self._used -= size
                self._allocations -= 1
            raise

    def release(self, size: int) -> None:
        if size <= 0:
            return
        with self._lock:
            self._used = max(0, self._used - size)

    def fail_nth(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"Invalid failure index: {n!r}. Expected >= 0.")
        with self._lock:
            self._fail_countdown = n

    def disarm(self) -> None:
        with self._lock:
            self._fail_countdown = None

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._fail_countdown is not None

    def snapshot(self) -> tuple[int | None, int, int]:
        """Return (limit, used, allocations) atomically under a single lock."""
        with self._lock:
            return self._limit, self._used, self._allocations

    @property
    def used(self) -> int:
        with self._lock:
            return self._used

    @property
    def free(self) -> int | None:
        with self._lock:
            if self._limit is None:
                return None
            return self._limit - self._used

    @property
    def maximum(self) -> int | None:
        return self._limit

    @property
    def allocations(self) -> int:
        with self._lock:
            return self._allocations
