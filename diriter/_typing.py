from typing import TypedDict


class DIObjectInfo(TypedDict):
    date_stamp: bytes
    length: int
    attributes: int
    file_type: int


class HostCatInfo(TypedDict):
    object_type: int
    load_addr: int
    exec_addr: int
    length: int
    attributes: int
