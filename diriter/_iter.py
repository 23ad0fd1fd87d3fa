"""Depth-first directory tree iterator.

Usage::

    it = DirIterator(reader, "ROOT", RECURSE_INTO_DIRECTORIES)
    try:
        while not it.is_empty():
            print(it.sub_path_name)
            it.advance()
    finally:
        it.close()

Nothing is yielded for an empty directory.  A failed ``advance`` leaves the
current object unchanged, so the call may simply be repeated (for example
once more memory is available).

A pattern applies to leaf names at every depth.  Without recursion the
catalogue reader does the filtering.  With recursion the iterator reads
every entry so that directories whose names fail the pattern can still be
entered; such directories are not themselves yielded.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any, NamedTuple

from ._alloc import Allocator
from ._catalogue import (
    MAX_ENTRIES,
    NAME_OFFSET,
    POSITION_END,
    CatalogueReader,
    FileType,
    ObjectType,
    decode_load_exec,
    decode_name,
    encode_name,
)
from ._level import DEFAULT_BUFFER_SIZE, Level, LevelStack
from ._pattern import is_match_all, wildcard_match
from ._pathbuf import PathBuffer
from ._typing import DIObjectInfo

logger = logging.getLogger(__name__)

RECURSE_INTO_DIRECTORIES = 1 << 0
RECURSE_INTO_IMAGES = 1 << 1
_KNOWN_FLAGS = RECURSE_INTO_DIRECTORIES | RECURSE_INTO_IMAGES

APPLICATION_PREFIX = "!"


class _Position(NamedTuple):
    """What the queries report: the containing directory and the current record."""

    dir_path: str
    leaf: bytes
    header: tuple[int, int, int, int, int]


class DirIterator:
    def __init__(
        self,
        reader: CatalogueReader,
        path_name: str,
        flags: int = 0,
        pattern: str | None = None,
        *,
        allocator: Allocator | None = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        max_entries: int = MAX_ENTRIES,
    ) -> None:
        if flags & ~_KNOWN_FLAGS:
            raise ValueError(f"Invalid flags value: {flags:#x}.")
        if buffer_size < NAME_OFFSET + 4:
            raise ValueError(
                f"Invalid buffer_size value: {buffer_size!r}. Expected >= {NAME_OFFSET + 4}."
            )
        if max_entries < 1:
            raise ValueError(f"Invalid max_entries value: {max_entries!r}. Expected >= 1.")
        logger.debug(
            "Making iterator for path '%s' with flags %#x and pattern %r", path_name, flags, pattern
        )
        self._reader = reader
        self._flags = flags
        self._buffer_size = buffer_size
        self._max_entries = max_entries
        self._alloc = allocator if allocator is not None else Allocator()
        self._closed = False
        # Last object yielded, while advance is stopped on an unmatched entry.
        self._held: _Position | None = None

        # Match any object name unless told otherwise.
        self._pattern: str | None = None
        self._pattern_size = 0
        if pattern is not None and not is_match_all(pattern):
            with self._alloc.reserve(len(pattern) + 1):
                self._pattern = pattern
                self._pattern_size = len(pattern) + 1
        # With recursion, directories must be seen even when they fail the pattern.
        self._filter_entries = bool(flags) and self._pattern is not None
        self._read_pattern = None if self._filter_entries else self._pattern

        self._path = PathBuffer(self._alloc)
        self._levels = LevelStack(self._alloc)
        try:
            self._path.append(path_name)
            self._root_length = len(self._path)
            self._enter_dir()
            self._skip_unmatched(None)
        except BaseException:
            self._levels.clear()
            self._path.destroy()
            self._alloc.release(self._pattern_size)
            self._closed = True
            raise

    # -- internal helpers --

    def _refill(self, level: Level) -> int:
        return level.refill(
            self._reader, str(self._path), self._read_pattern, self._max_entries, self._alloc
        )

    def _enter_dir(self) -> bool:
        logger.debug("Entering '%s'", str(self._path))
        level = Level.allocate(len(self._path), self._buffer_size, self._alloc)
        try:
            self._refill(level)
        except BaseException:
            level.release(self._alloc)
            raise
        if level.remaining == 0:
            # Don't bother entering empty directories.
            level.release(self._alloc)
            logger.debug("Ignoring empty directory '%s'", str(self._path))
            return False
        self._levels.push(level)
        return True

    def _can_enter_dir(self, level: Level) -> bool:
        object_type = level.object_type
        if object_type == ObjectType.IMAGE:
            return bool(self._flags & RECURSE_INTO_IMAGES)
        if object_type == ObjectType.DIRECTORY:
            return bool(self._flags & RECURSE_INTO_DIRECTORIES)
        return False

    def _leave_dir(self) -> None:
        """Go up until reaching a directory with an entry left to visit."""
        levels = self._levels
        logger.debug("Leaving '%s'", str(self._path))
        index = len(levels) - 2
        while index >= 0 and levels[index].remaining == 0:
            ancestor = levels[index]
            if ancestor.cursor == POSITION_END:
                index -= 1
                continue
            # Refill the ancestor under its own path name, then reinstate
            # the path of the directory being left.
            self._path.truncate(ancestor.path_length)
            try:
                self._refill(ancestor)
            finally:
                self._path.undo()

        levels.discard_deeper_than(index)
        if index >= 0:
            self._path.truncate(levels[index].path_length)
        else:
            self._path.truncate(self._root_length)
        logger.debug("Deepest directory is now level %d", index)

    def _step(self) -> None:
        """Move one entry on from the current one, entering it if allowed."""
        level = self._levels.peek()
        if level is None:
            return

        entered = False
        if self._can_enter_dir(level):
            self._path.append_separated(self._reader.separator, level.leaf_name())
            try:
                entered = self._enter_dir()
            except BaseException:
                self._path.undo()
                raise
            if entered:
                # Don't return to the same entry on this level.
                level.advance()
            else:
                self._path.undo()

        if entered:
            return

        if level.remaining < 2:
            if level.cursor != POSITION_END:
                self._refill(level)
            if level.remaining < 2:
                self._leave_dir()
                return
        level.advance()

    def _is_unmatched(self) -> bool:
        if not self._filter_entries:
            return False
        level = self._levels.peek()
        return level is not None and not wildcard_match(level.leaf_name(), self._pattern)

    def _skip_unmatched(self, start: _Position | None) -> None:
        """Step past entries that fail the pattern, entering them where allowed.

        If a step fails, *start* is held as the current object so that the
        queries still report it.
        """
        while self._is_unmatched():
            if self._held is None:
                self._held = start
            self._step()
        self._held = None

    def _live_position(self) -> _Position | None:
        level = self._levels.peek()
        if level is None:
            return None
        return _Position(str(self._path)[:level.path_length], level.leaf_bytes(), level.header())

    def _position(self) -> _Position | None:
        if self._held is not None:
            return self._held
        return self._live_position()

    def _name_bytes(self, skip: int | None) -> bytes:
        """The current name, skipping *skip* characters of the directory path.

        ``skip=None`` skips the whole directory path, leaving the leaf.
        """
        position = self._position()
        if position is None:
            return b""
        if skip is not None and skip < len(position.dir_path):
            dir_part = position.dir_path[skip:] + self._reader.separator
            return encode_name(dir_part) + position.leaf
        return position.leaf

    def _current_name(self, skip: int | None) -> str:
        return decode_name(self._name_bytes(skip))

    def _get_name(self, buffer: Any, size: int | None, skip: int | None) -> int:
        if size is None:
            size = 0 if buffer is None else len(buffer)
        elif size > 0 and (buffer is None or size > len(buffer)):
            raise ValueError(f"Buffer too small for size {size}")

        raw = self._name_bytes(skip)
        if size > 0:
            n = min(len(raw), size - 1)
            buffer[:n] = raw[:n]
            buffer[n] = 0
        return len(raw)

    def _assert_open(self) -> None:
        if self._closed:
            raise ValueError("Operation on closed iterator.")

    # -- public API --

    def reset(self) -> None:
        """Return to the first object, keeping the current state on failure."""
        self._assert_open()
        logger.debug("Resetting iterator for '%s'", self.root_path_name)
        old_levels, old_held, old_path = self._levels, self._held, str(self._path)
        self._levels = LevelStack(self._alloc)
        self._held = None
        self._path.truncate(self._root_length)
        try:
            self._enter_dir()
            self._skip_unmatched(None)
        except BaseException:
            self._levels.clear()
            self._levels, self._held = old_levels, old_held
            self._path.restore(old_path)
            raise
        old_levels.clear()

    def is_empty(self) -> bool:
        return self._held is None and self._levels.peek() is None

    def advance(self) -> None:
        """Move to the next matching object, or make the iterator empty.

        Does nothing if the iterator is already empty.
        """
        self._assert_open()
        if self.is_empty():
            return
        start = self._held
        if start is None and self._filter_entries:
            start = self._live_position()
        self._step()
        self._skip_unmatched(start)

    def get_object_info(self, info: DIObjectInfo | dict | None = None) -> ObjectType:
        """Return the current object's type, filling in *info* if given.

        Untyped files are reported as ``FileType.NONE``.  Directories and
        image files are reported as ``FileType.DIRECTORY``, or as
        ``FileType.APPLICATION`` if their leaf name starts with "!".
        ``ObjectType.NOT_FOUND`` is returned, and *info* left untouched, if
        the iterator is empty.
        """
        position = self._position()
        if position is None:
            return ObjectType.NOT_FOUND
        load, exec_addr, length, attributes, object_type = position.header
        if info is not None:
            file_type, date_stamp = decode_load_exec(load, exec_addr)
            if object_type in (ObjectType.DIRECTORY, ObjectType.IMAGE):
                if decode_name(position.leaf).startswith(APPLICATION_PREFIX):
                    file_type = FileType.APPLICATION
                else:
                    file_type = FileType.DIRECTORY
                length = 0
            info.update(
                date_stamp=date_stamp,
                length=length,
                attributes=attributes,
                file_type=file_type,
            )
        return ObjectType(object_type)

    def get_object_path_name(self, buffer: Any = None, size: int | None = None) -> int:
        """Copy the current object's full path name into *buffer*.

        At most ``size - 1`` bytes (default ``len(buffer)``) are written,
        followed by a NUL.  Nothing is written if *size* is zero.  Returns
        the length the whole name would need, without the NUL (0 if the
        iterator is empty).
        """
        return self._get_name(buffer, size, 0)

    def get_object_sub_path_name(self, buffer: Any = None, size: int | None = None) -> int:
        """Like :meth:`get_object_path_name`, without the root path and its separator."""
        return self._get_name(buffer, size, self._root_length + 1)

    def get_object_leaf_name(self, buffer: Any = None, size: int | None = None) -> int:
        """Like :meth:`get_object_path_name`, for the final path element only."""
        return self._get_name(buffer, size, None)

    @property
    def path_name(self) -> str:
        return self._current_name(0)

    @property
    def sub_path_name(self) -> str:
        return self._current_name(self._root_length + 1)

    @property
    def leaf_name(self) -> str:
        return self._current_name(None)

    @property
    def root_path_name(self) -> str:
        if self._closed:
            return ""
        return str(self._path)[:self._root_length]

    @property
    def depth(self) -> int:
        return len(self._levels)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        logger.debug("Destroying iterator for '%s'", self.root_path_name)
        self._levels.clear()
        self._path.destroy()
        self._alloc.release(self._pattern_size)
        self._pattern = None
        self._held = None
        self._pattern_size = 0
        self._closed = True

    def __enter__(self) -> DirIterator:
        return self

    def __exit__(self, *args) -> None:  # type: ignore[no-untyped-def]
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("empty" if self.is_empty() else repr(self.path_name))
        return f"<DirIterator {state}>"


def destroy(iterator: DirIterator | None) -> None:
    """Close *iterator*; does nothing for None."""
    if iterator is not None:
        iterator.close()


class DirEntry(NamedTuple):
    path: str
    sub_path: str
    leaf: str
    object_type: ObjectType
    info: DIObjectInfo


def iter_dir(
    reader: CatalogueReader,
    path_name: str,
    flags: int = 0,
    pattern: str | None = None,
    **kwargs: Any,
) -> Iterator[DirEntry]:
    """Yield a :class:`DirEntry` for every object a :class:`DirIterator` visits."""
    with DirIterator(reader, path_name, flags, pattern, **kwargs) as it:
        while not it.is_empty():
            info = DIObjectInfo(date_stamp=bytes(5), length=0, attributes=0, file_type=0)
            object_type = it.get_object_info(info)
            yield DirEntry(it.path_name, it.sub_path_name, it.leaf_name, object_type, info)
            it.advance()
