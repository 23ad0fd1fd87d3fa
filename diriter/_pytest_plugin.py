"""pytest fixture plugin.

Usage::

    # conftest.py
    pytest_plugins = ["diriter._pytest_plugin"]

This makes the ``dirhost`` and ``dirhost_reader`` fixtures available::

    def test_something(dirhost, dirhost_reader):
        dirhost.mkdir("/ROOT")
        dirhost.create_file("/ROOT/notes", length=12)
        assert [e.leaf for e in iter_dir(dirhost_reader, "ROOT")] == ["notes"]
"""

import pytest

from ._host import HostFileSystem, MemoryCatalogueReader


@pytest.fixture
def dirhost() -> HostFileSystem:
    """An empty :class:`HostFileSystem`, independent per test (function scope)."""
    return HostFileSystem()


@pytest.fixture
def dirhost_reader(dirhost: HostFileSystem) -> MemoryCatalogueReader:
    """A :class:`MemoryCatalogueReader` over the ``dirhost`` fixture."""
    return MemoryCatalogueReader(dirhost)
