from ._alloc import Allocator
from ._catalogue import (
    MAX_ENTRIES,
    NAME_OFFSET,
    POSITION_END,
    CatalogueEntry,
    CatalogueReader,
    FileType,
    ObjectType,
    date_stamp_to_datetime,
    decode_load_exec,
    encode_load_exec,
)
from ._exceptions import DIBufferOverflowError, DIHostError, DIOutOfMemoryError
from ._host import HostFileSystem, MemoryCatalogueReader
from ._iter import (
    RECURSE_INTO_DIRECTORIES,
    RECURSE_INTO_IMAGES,
    DirEntry,
    DirIterator,
    destroy,
    iter_dir,
)
from ._level import DEFAULT_BUFFER_SIZE
from ._oscat import ScandirCatalogueReader
from ._path import path_tail
from ._pattern import wildcard_match
from ._typing import DIObjectInfo, HostCatInfo

__all__ = [
    "DirIterator",
    "DirEntry",
    "iter_dir",
    "destroy",
    "RECURSE_INTO_DIRECTORIES",
    "RECURSE_INTO_IMAGES",
    "DEFAULT_BUFFER_SIZE",
    "MAX_ENTRIES",
    "NAME_OFFSET",
    "POSITION_END",
    "Allocator",
    "CatalogueEntry",
    "CatalogueReader",
    "MemoryCatalogueReader",
    "ScandirCatalogueReader",
    "HostFileSystem",
    "ObjectType",
    "FileType",
    "DIObjectInfo",
    "HostCatInfo",
    "DIOutOfMemoryError",
    "DIHostError",
    "DIBufferOverflowError",
    "decode_load_exec",
    "encode_load_exec",
    "date_stamp_to_datetime",
    "wildcard_match",
    "path_tail",
]
__version__ = "0.1.0"
