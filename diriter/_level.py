from __future__ import annotations

import logging
from collections.abc import Iterator

from ._alloc import Allocator
from ._catalogue import (
    MAX_ENTRIES,
    NAME_OFFSET,
    NAME_SIZE,
    POSITION_END,
    POSITION_START,
    CatalogueReader,
    entry_name,
    entry_name_length,
    unpack_header,
    word_align,
)
from ._exceptions import DIBufferOverflowError

logger = logging.getLogger(__name__)

GROWTH_FACTOR = 2
DEFAULT_BUFFER_SIZE = (NAME_OFFSET + word_align(NAME_SIZE)) * MAX_ENTRIES
# Bytes charged for a level's bookkeeping, on top of its catalogue buffer.
LEVEL_HEADER_SIZE = 32


class Level:
    """State of one directory on the iterator's stack.

    ``current`` is the byte offset of the current entry in ``buffer``, or
    None when ``remaining`` is zero.  ``path_length`` is the length of
    this directory's path name.
    """

    __slots__ = ("path_length", "cursor", "remaining", "current", "current_leaf_len", "buffer")

    def __init__(self, path_length: int, buffer_size: int) -> None:
        self.path_length: int = path_length
        self.cursor: int = POSITION_START
        self.remaining: int = 0
        self.current: int | None = None
        self.current_leaf_len: int = 0
        self.buffer: bytearray = bytearray(buffer_size)

    @classmethod
    def allocate(cls, path_length: int, buffer_size: int, allocator: Allocator) -> Level:
        with allocator.reserve(LEVEL_HEADER_SIZE + buffer_size):
            return cls(path_length, buffer_size)

    def release(self, allocator: Allocator) -> None:
        allocator.release(LEVEL_HEADER_SIZE + len(self.buffer))
        self.buffer = bytearray()
        self.remaining = 0
        self.current = None

    # -- current entry --

    def _current_offset(self) -> int:
        if self.current is None:
            raise LookupError("Directory level has no current entry.")
        return self.current

    def header(self) -> tuple[int, int, int, int, int]:
        return unpack_header(self.buffer, self._current_offset())

    @property
    def object_type(self) -> int:
        return self.header()[4]

    def leaf_name(self) -> str:
        return entry_name(self.buffer, self._current_offset(), self.current_leaf_len)

    def leaf_bytes(self) -> bytes:
        start = self._current_offset() + NAME_OFFSET
        return bytes(self.buffer[start:start + self.current_leaf_len])

    def advance(self) -> None:
        """Step to the next entry in the buffer."""
        offset = self._current_offset()
        self.remaining -= 1
        if self.remaining > 0:
            self.current = offset + NAME_OFFSET + word_align(self.current_leaf_len + 1)
            self.current_leaf_len = entry_name_length(self.buffer, self.current)
        else:
            self.current = None

    # -- buffer management --

    def grow(self, allocator: Allocator) -> None:
        old_size = len(self.buffer)
        new_size = old_size * GROWTH_FACTOR
        logger.debug("Expanding catalogue buffer from %d to %d bytes", old_size, new_size)
        with allocator.reserve(new_size - old_size):
            self.buffer.extend(bytes(new_size - old_size))

    def _shrink(self, size: int, allocator: Allocator) -> None:
        excess = len(self.buffer) - size
        if excess > 0:
            del self.buffer[size:]
            allocator.release(excess)

    def _check_entries(self, offset: int, count: int) -> None:
        for _ in range(count):
            offset += NAME_OFFSET + word_align(entry_name_length(self.buffer, offset) + 1)

    def refill(
        self,
        reader: CatalogueReader,
        path: str,
        pattern: str | None,
        max_entries: int,
        allocator: Allocator,
    ) -> int:
        """Read more catalogue entries for this directory.

        The current entry, if any, is moved to the start of the buffer and
        fresh entries are appended after it.  Reads repeat until at least
        one entry arrives, the directory is exhausted, or an error occurs.
        The buffer grows whenever the reader overflows it.  On error the
        level's position, cursor and buffer size are unchanged.  Returns
        the number of entries read.
        """
        if self.cursor == POSITION_END:
            raise ValueError("Directory level has already been read to the end.")
        if self.remaining > 1:
            raise ValueError("Only a level on its last entry can be refilled.")
        keep = 0
        if self.remaining > 0:
            start = self._current_offset()
            keep = NAME_OFFSET + self.current_leaf_len + 1
            self.buffer[0:keep] = self.buffer[start:start + keep]
            self.current = 0
            keep = word_align(keep)

        old_size = len(self.buffer)
        cursor = self.cursor
        try:
            while True:
                try:
                    n, cursor = reader.read(path, self.buffer, keep, cursor, max_entries, pattern)
                    while n == 0 and cursor != POSITION_END:
                        n, cursor = reader.read(
                            path, self.buffer, keep, cursor, max_entries, pattern
                        )
                except DIBufferOverflowError:
                    self.grow(allocator)
                    continue
                break
            self._check_entries(keep, n)
        except BaseException:
            self._shrink(old_size, allocator)
            raise

        self.cursor = cursor
        if n > 0 and self.remaining == 0:
            self.current = 0
            self.current_leaf_len = entry_name_length(self.buffer, 0)
        self.remaining += n
        logger.debug(
            "Read %d entries from '%s' (cursor %d, %d remaining)", n, path, cursor, self.remaining
        )
        return n


class LevelStack:
    """Levels of an iterator, shallowest first; the deepest is the top."""

    __slots__ = ("_levels", "_alloc")

    def __init__(self, allocator: Allocator) -> None:
        self._levels: list[Level] = []
        self._alloc: Allocator = allocator

    def push(self, level: Level) -> None:
        self._levels.append(level)

    def pop(self) -> Level:
        return self._levels.pop()

    def peek(self) -> Level | None:
        return self._levels[-1] if self._levels else None

    def discard_deeper_than(self, index: int) -> None:
        """Free every level deeper than *index*; -1 frees them all."""
        while len(self._levels) > index + 1:
            self._levels.pop().release(self._alloc)

    def clear(self) -> None:
        self.discard_deeper_than(-1)

    def __getitem__(self, index: int) -> Level:
        return self._levels[index]

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self) -> Iterator[Level]:
        return iter(self._levels)
