"""Catalogue entry records and the reader contract.

A catalogue reader deposits entries into a caller-supplied ``bytearray``,
packed back to back in this little-endian layout::

    load u32 | exec u32 | length u32 | attributes u32 | object_type u32 |
    name (NUL-terminated) | padding to a 4-byte boundary

The iterator parses records in place; nothing is copied out of the buffer
except the name of the object being queried.
"""

from __future__ import annotations

import errno
import struct
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import NamedTuple

from ._exceptions import DIBufferOverflowError, DIHostError
from ._pattern import wildcard_match

RECORD_HEADER = struct.Struct("<5I")
NAME_OFFSET: int = RECORD_HEADER.size
NAME_ENCODING = "utf-8"
NAME_ERRORS = "surrogateescape"

# Cursor values: 0 is the start of a directory, POSITION_END its end.
POSITION_START = 0
POSITION_END = -1

# Not a limit, but object names longer than 10 characters are unusual.
NAME_SIZE = 11
MAX_ENTRIES = 16

LOAD_HAS_STAMP = 0xFFF00000
LOAD_STAMP_MSB = 0x000000FF
FILE_TYPE_SHIFT = 8
FILE_TYPE_MASK = 0xFFF

STAMP_EPOCH = datetime(1900, 1, 1, tzinfo=timezone.utc)


class ObjectType(IntEnum):
    NOT_FOUND = 0
    FILE = 1
    DIRECTORY = 2
    IMAGE = 3


class FileType(IntEnum):
    CSV = 0xDFE
    SQUASH = 0xFCA
    OBEY = 0xFEB
    SPRITE = 0xFF9
    DATA = 0xFFD
    TEXT = 0xFFF
    DIRECTORY = 0x1000
    APPLICATION = 0x2000
    NONE = 0x3000


def word_align(n: int) -> int:
    return (n + 3) & ~3


def record_size(name_length: int) -> int:
    return word_align(NAME_OFFSET + name_length + 1)


def encode_name(name: str) -> bytes:
    return name.encode(NAME_ENCODING, NAME_ERRORS)


def decode_name(raw: bytes | bytearray | memoryview) -> str:
    return bytes(raw).decode(NAME_ENCODING, NAME_ERRORS)


# ---------------------------------------------------------------------------
#  Load/exec addresses and date stamps
# ---------------------------------------------------------------------------


def decode_load_exec(load: int, exec_addr: int) -> tuple[int, bytes]:
    """Return ``(file_type, date_stamp)`` for a pair of load/exec words.

    Only a load address whose top 12 bits are all set carries a file type
    and a 5-byte stamp (low byte of *load*, then *exec* little-endian).
    Anything else is untyped with a zero stamp.
    """
    if (load & LOAD_HAS_STAMP) != LOAD_HAS_STAMP:
        return FileType.NONE, bytes(5)
    file_type = (load >> FILE_TYPE_SHIFT) & FILE_TYPE_MASK
    stamp = bytes((load & LOAD_STAMP_MSB,)) + (exec_addr & 0xFFFFFFFF).to_bytes(4, "little")
    return file_type, stamp


def _centiseconds(when: datetime) -> int:
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = when - STAMP_EPOCH
    seconds = delta.days * 86400 + delta.seconds
    return seconds * 100 + delta.microseconds // 10000


def encode_load_exec(file_type: int, when: datetime | None = None) -> tuple[int, int]:
    if not 0 <= file_type <= FILE_TYPE_MASK:
        raise ValueError(f"Invalid file type: {file_type!r}. Expected 0..0xFFF.")
    if when is None:
        when = datetime.now(timezone.utc)
    cs = _centiseconds(when) & 0xFF_FFFF_FFFF
    load = LOAD_HAS_STAMP | (file_type << FILE_TYPE_SHIFT) | (cs >> 32)
    return load, cs & 0xFFFFFFFF


def date_stamp_to_datetime(stamp: bytes) -> datetime:
    if len(stamp) != 5:
        raise ValueError(f"Date stamp must be 5 bytes, got {len(stamp)}.")
    cs = (stamp[0] << 32) | int.from_bytes(stamp[1:], "little")
    return STAMP_EPOCH + timedelta(milliseconds=cs * 10)


# ---------------------------------------------------------------------------
#  Records
# ---------------------------------------------------------------------------


class CatalogueEntry(NamedTuple):
    name: str
    object_type: int
    load_addr: int = 0
    exec_addr: int = 0
    length: int = 0
    attributes: int = 0

    @property
    def size(self) -> int:
        return record_size(len(encode_name(self.name)))

    def pack_into(self, buffer: bytearray, offset: int) -> int:
        """Write this record at *offset* and return the offset of the next one."""
        raw = encode_name(self.name)
        end = offset + record_size(len(raw))
        if end > len(buffer):
            raise DIBufferOverflowError(end - offset, len(buffer) - offset)
        RECORD_HEADER.pack_into(
            buffer,
            offset,
            self.load_addr & 0xFFFFFFFF,
            self.exec_addr & 0xFFFFFFFF,
            self.length & 0xFFFFFFFF,
            self.attributes & 0xFFFFFFFF,
            self.object_type,
        )
        start = offset + NAME_OFFSET
        buffer[start:start + len(raw)] = raw
        buffer[start + len(raw):end] = bytes(end - start - len(raw))
        return end


def unpack_header(buffer: bytearray, offset: int) -> tuple[int, int, int, int, int]:
    """Return ``(load, exec, length, attributes, object_type)`` of a record."""
    return RECORD_HEADER.unpack_from(buffer, offset)


def entry_name_length(buffer: bytearray, offset: int) -> int:
    start = offset + NAME_OFFSET
    if start > len(buffer):
        raise DIHostError(errno.EIO, f"Malformed catalogue entry at offset {offset}")
    end = buffer.find(b"\0", start)
    if end < 0 or offset + record_size(end - start) > len(buffer):
        raise DIHostError(errno.EIO, f"Malformed catalogue entry at offset {offset}")
    return end - start


def entry_name(buffer: bytearray, offset: int, length: int) -> str:
    start = offset + NAME_OFFSET
    return decode_name(buffer[start:start + length])


# ---------------------------------------------------------------------------
#  Reader contract
# ---------------------------------------------------------------------------


class CatalogueReader(ABC):
    """Bulk-read primitive of a host filing system.

    ``read`` fills ``buffer[offset:]`` with the records of up to
    *max_entries* objects of directory *path*, starting at *cursor*, and
    returns ``(entries_written, next_cursor)``.  Objects whose names do not
    match *pattern* are skipped but still count towards *max_entries*, so a
    call may write nothing yet return a cursor other than ``POSITION_END``.
    If not even one matching entry fits, :class:`DIBufferOverflowError` is
    raised and the caller should retry with a bigger buffer and the same
    cursor.  Any other failure is raised as an :class:`OSError`.
    """

    separator: str = "/"

    @abstractmethod
    def read(
        self,
        path: str,
        buffer: bytearray,
        offset: int,
        cursor: int,
        max_entries: int = MAX_ENTRIES,
        pattern: str | None = None,
    ) -> tuple[int, int]: ...

    @staticmethod
    def fill(
        entries: Sequence[CatalogueEntry],
        buffer: bytearray,
        offset: int,
        cursor: int,
        max_entries: int,
        pattern: str | None,
    ) -> tuple[int, int]:
        """Pack a directory listing snapshot according to the ``read`` contract."""
        if cursor < 0:
            raise ValueError(f"Cannot read from cursor {cursor}.")
        total = len(entries)
        stop = min(total, cursor + max_entries)
        index = cursor
        n = 0
        while index < stop:
            entry = entries[index]
            if wildcard_match(entry.name, pattern):
                size = entry.size
                if offset + size > len(buffer):
                    if n == 0:
                        raise DIBufferOverflowError(size, len(buffer) - offset)
                    break
                offset = entry.pack_into(buffer, offset)
                n += 1
            index += 1
        return n, (POSITION_END if index >= total else index)
