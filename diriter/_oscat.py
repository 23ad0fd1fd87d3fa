from __future__ import annotations

import os
import re
import stat
from datetime import datetime, timezone

from ._catalogue import (
    MAX_ENTRIES,
    CatalogueEntry,
    CatalogueReader,
    FileType,
    ObjectType,
    encode_load_exec,
)
from ._host import (
    ATTR_OWNER_READ,
    ATTR_OWNER_WRITE,
    ATTR_PUBLIC_READ,
    ATTR_PUBLIC_WRITE,
)

# Foreign filing systems carry the type in a ",xxx" name suffix.
_TYPE_SUFFIX = re.compile(r",([0-9a-fA-F]{3})$")


def _attributes(mode: int) -> int:
    attributes = 0
    if mode & stat.S_IRUSR:
        attributes |= ATTR_OWNER_READ
    if mode & stat.S_IWUSR:
        attributes |= ATTR_OWNER_WRITE
    if mode & stat.S_IROTH:
        attributes |= ATTR_PUBLIC_READ
    if mode & stat.S_IWOTH:
        attributes |= ATTR_PUBLIC_WRITE
    return attributes


def _file_type(name: str) -> int:
    m = _TYPE_SUFFIX.search(name)
    return int(m.group(1), 16) if m else FileType.DATA


class ScandirCatalogueReader(CatalogueReader):
    """Catalogue reader backed by :func:`os.scandir`.

    The cursor is an index into the listing, which is re-read on every
    call and reported in the order the operating system returns it.
    Symbolic links are reported as files and never entered.
    """

    separator = os.sep

    def read(
        self,
        path: str,
        buffer: bytearray,
        offset: int,
        cursor: int,
        max_entries: int = MAX_ENTRIES,
        pattern: str | None = None,
    ) -> tuple[int, int]:
        return self.fill(self.catalogue(path), buffer, offset, cursor, max_entries, pattern)

    def catalogue(self, path: str) -> list[CatalogueEntry]:
        entries: list[CatalogueEntry] = []
        with os.scandir(path) as it:
            for dirent in it:
                try:
                    st = dirent.stat(follow_symlinks=False)
                except FileNotFoundError:
                    # Removed since the directory was listed.
                    continue
                is_dir = dirent.is_dir(follow_symlinks=False)
                when = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
                load, exec_addr = encode_load_exec(
                    FileType.DATA if is_dir else _file_type(dirent.name), when
                )
                entries.append(
                    CatalogueEntry(
                        name=dirent.name,
                        object_type=ObjectType.DIRECTORY if is_dir else ObjectType.FILE,
                        load_addr=load,
                        exec_addr=exec_addr,
                        length=0 if is_dir else min(st.st_size, 0xFFFFFFFF),
                        attributes=_attributes(st.st_mode),
                    )
                )
        return entries
