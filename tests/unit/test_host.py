import errno

import pytest
from diriter import (
    POSITION_END,
    DIHostError,
    FileType,
    HostFileSystem,
    MemoryCatalogueReader,
    ObjectType,
    date_stamp_to_datetime,
)
from diriter._catalogue import entry_name, entry_name_length
from diriter._host import DEFAULT_DIR_ATTRIBUTES, DEFAULT_FILE_ATTRIBUTES, IMAGE_FILE_TYPE

from tests.helpers.trees import STAMP


def test_mkdir_and_listdir(host):
    host.mkdir("/a")
    host.mkdir("/a/b")
    assert host.listdir("/a") == ["b"]


def test_mkdir_creates_parents(host):
    host.mkdir("/x/y/z")
    assert host.is_dir("/x/y")


def test_mkdir_exist_ok(host):
    host.mkdir("/a")
    host.mkdir("/a", exist_ok=True)
    with pytest.raises(FileExistsError):
        host.mkdir("/a")


def test_mkdir_over_file(host):
    host.create_file("/f")
    with pytest.raises(FileExistsError):
        host.mkdir("/f", exist_ok=True)


def test_listdir_keeps_creation_order(host):
    for name in ["zeta", "alpha", "mid"]:
        host.create_file(f"/{name}")
    assert host.listdir("/") == ["zeta", "alpha", "mid"]


def test_create_file_missing_parent(host):
    with pytest.raises(FileNotFoundError):
        host.create_file("/nope/f")


def test_create_file_twice(host):
    host.create_file("/f")
    with pytest.raises(FileExistsError):
        host.create_file("/f")


def test_create_file_rejects_nul_in_name(host):
    with pytest.raises(ValueError, match="NUL"):
        host.create_file("/bad\0name")


def test_create_file_negative_length(host):
    with pytest.raises(ValueError):
        host.create_file("/f", length=-1)


def test_file_type_and_stamp(host):
    host.create_file("/f", length=5, file_type=FileType.TEXT, stamp=STAMP)
    assert host.get_file_type("/f") == FileType.TEXT
    assert date_stamp_to_datetime(host.get_date_stamp("/f")) == STAMP
    assert host.get_file_size("/f") == 5


def test_untyped_file(host):
    host.create_file("/f", file_type=None)
    assert host.get_file_type("/f") == FileType.NONE
    assert host.get_date_stamp("/f") == bytes(5)


def test_set_file_type_keeps_stamp(host):
    host.create_file("/f", file_type=FileType.TEXT, stamp=STAMP)
    host.set_file_type("/f", FileType.OBEY)
    assert host.get_file_type("/f") == FileType.OBEY
    assert date_stamp_to_datetime(host.get_date_stamp("/f")) == STAMP


def test_set_file_type_stamps_untyped_file(host):
    host.create_file("/f", file_type=None)
    host.set_file_type("/f", FileType.CSV)
    assert host.get_file_type("/f") == FileType.CSV
    assert host.get_date_stamp("/f") != bytes(5)


def test_set_file_type_rejects_pseudo_type(host):
    host.create_file("/f")
    with pytest.raises(ValueError):
        host.set_file_type("/f", FileType.APPLICATION)


def test_get_file_size_of_directory(host):
    host.mkdir("/d")
    with pytest.raises(IsADirectoryError):
        host.get_file_size("/d")


def test_read_cat_info(host):
    host.create_file("/f", length=9, file_type=FileType.DATA, stamp=STAMP)
    info = host.read_cat_info("/f")
    assert info["object_type"] == ObjectType.FILE
    assert info["length"] == 9
    assert info["attributes"] == DEFAULT_FILE_ATTRIBUTES
    assert host.read_cat_info("/d")["object_type"] == ObjectType.NOT_FOUND


def test_read_cat_info_directory(host):
    host.mkdir("/d")
    info = host.read_cat_info("/d")
    assert info["object_type"] == ObjectType.DIRECTORY
    assert info["attributes"] == DEFAULT_DIR_ATTRIBUTES
    assert info["length"] == 0


def test_create_image(host):
    host.create_image("/img")
    assert host.read_cat_info("/img")["object_type"] == ObjectType.IMAGE
    assert host.get_file_type("/img") == IMAGE_FILE_TYPE
    host.create_file("/img/inner")
    assert host.listdir("/img") == ["inner"]


def test_make_path(host):
    host.make_path("a/b/c/leaf")
    assert host.is_dir("/a/b/c")
    assert not host.exists("/a/b/c/leaf")


def test_make_path_with_offset_and_existing(host):
    host.mkdir("/a")
    host.make_path("a/b/leaf", offset=2)
    assert host.is_dir("/a/b")


def test_make_path_bad_offset(host):
    with pytest.raises(ValueError):
        host.make_path("a/b", offset=9)


def test_remove_and_rmtree(host):
    host.mkdir("/d/e")
    host.create_file("/d/e/f")
    host.create_file("/g")
    host.remove("/g")
    assert not host.exists("/g")
    with pytest.raises(IsADirectoryError):
        host.remove("/d")
    host.rmtree("/d")
    assert not host.exists("/d")
    assert host.listdir("/") == []


def test_rmtree_root_refused(host):
    with pytest.raises(ValueError):
        host.rmtree("/")


def test_parent_of_root_resolves_from_root(host):
    host.create_file("/x")
    assert host.exists("../x")
    assert host.is_file("../x")
    assert not host.is_dir("../x")


def test_missing_path_does_not_exist(host):
    assert not host.exists("../x")
    assert not host.is_dir("../x")
    assert not host.is_file("../x")


def test_node_limit(host):
    limited = HostFileSystem(max_nodes=2)
    limited.create_file("/one")
    with pytest.raises(DIHostError) as exc_info:
        limited.create_file("/two")
    assert exc_info.value.errnum == errno.ENOSPC


def test_invalid_max_nodes():
    with pytest.raises(ValueError):
        HostFileSystem(max_nodes=0)


def test_canonicalise(host):
    assert host.canonicalise("ROOT/./foo//fum") == "/ROOT/foo/fum"


def test_catalogue_snapshot(sample_host):
    names = [e.name for e in sample_host.catalogue("ROOT")]
    assert names == ["!foo", "fee", "fi", "foo", "longname"]


def test_catalogue_of_file(sample_host):
    with pytest.raises(NotADirectoryError):
        sample_host.catalogue("ROOT/fee")


def test_reader_reads_sample(sample_host):
    reader = MemoryCatalogueReader(sample_host)
    assert reader.host is sample_host
    buf = bytearray(512)
    n, cursor = reader.read("ROOT", buf, 0, 0)
    assert (n, cursor) == (5, POSITION_END)
    assert entry_name(buf, 0, entry_name_length(buf, 0)) == "!foo"


def test_reader_missing_directory(reader):
    with pytest.raises(FileNotFoundError):
        reader.read("nowhere", bytearray(64), 0, 0)
