from __future__ import annotations

from ._alloc import Allocator

MIN_CAPACITY = 64


class PathBuffer:
    """Growable path string with one level of undo.

    Capacity is charged to an :class:`Allocator`; a mutation that cannot
    get the memory it needs raises and leaves the buffer unchanged.
    ``undo`` restores the string as it was before the last ``append`` or
    ``truncate``.
    """

    __slots__ = ("_text", "_undo", "_capacity", "_alloc")

    def __init__(self, allocator: Allocator) -> None:
        self._text: str = ""
        self._undo: str = ""
        self._capacity: int = 0
        self._alloc: Allocator = allocator

    def _ensure(self, needed: int) -> None:
        if needed <= self._capacity:
            return
        new_capacity = max(needed, self._capacity * 2, MIN_CAPACITY)
        with self._alloc.reserve(new_capacity - self._capacity):
            self._capacity = new_capacity

    def append(self, text: str) -> None:
        self._ensure(len(self._text) + len(text) + 1)
        self._undo = self._text
        self._text += text

    def append_separated(self, separator: str, text: str) -> None:
        if self._text:
            self.append(separator + text)
        else:
            self.append(text)

    def truncate(self, length: int) -> None:
        if not 0 <= length <= len(self._text):
            raise ValueError(f"Cannot truncate path of length {len(self._text)} to {length}")
        self._undo = self._text
        self._text = self._text[:length]

    def restore(self, text: str) -> None:
        """Replace the whole string with *text*, which must fit the current capacity."""
        if len(text) + 1 > self._capacity:
            raise ValueError(f"Cannot restore a path of length {len(text)} into capacity {self._capacity}")
        self._undo = self._text
        self._text = text

    def undo(self) -> None:
        self._text, self._undo = self._undo, self._text

    def destroy(self) -> None:
        self._alloc.release(self._capacity)
        self._capacity = 0
        self._text = ""
        self._undo = ""

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._text)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"PathBuffer({self._text!r})"
