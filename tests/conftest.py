import pytest
from diriter import HostFileSystem, MemoryCatalogueReader

from tests.helpers.trees import build_sample_tree


@pytest.fixture
def host() -> HostFileSystem:
    """An empty host filing system."""
    return HostFileSystem()


@pytest.fixture
def reader(host) -> MemoryCatalogueReader:
    return MemoryCatalogueReader(host)


@pytest.fixture
def sample_host(host) -> HostFileSystem:
    """The host populated with the ROOT sample tree."""
    build_sample_tree(host)
    return host
