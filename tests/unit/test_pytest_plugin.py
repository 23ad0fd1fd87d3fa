from diriter import HostFileSystem, MemoryCatalogueReader, iter_dir
from diriter._pytest_plugin import dirhost, dirhost_reader  # noqa: F401


def test_dirhost_is_empty(dirhost):
    assert isinstance(dirhost, HostFileSystem)
    assert dirhost.listdir("/") == []


def test_dirhost_reader_reads_dirhost(dirhost, dirhost_reader):
    assert isinstance(dirhost_reader, MemoryCatalogueReader)
    assert dirhost_reader.host is dirhost
    dirhost.mkdir("/ROOT")
    dirhost.create_file("/ROOT/notes", length=12)
    assert [e.leaf for e in iter_dir(dirhost_reader, "ROOT")] == ["notes"]
