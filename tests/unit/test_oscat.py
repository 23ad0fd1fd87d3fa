import os

import pytest
from diriter import POSITION_END, FileType, ObjectType, ScandirCatalogueReader
from diriter._catalogue import decode_load_exec


def _by_name(entries):
    return {e.name: e for e in entries}


def test_separator_is_os_sep():
    assert ScandirCatalogueReader.separator == os.sep


def test_catalogue_reports_files_and_directories(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "notes").write_bytes(b"hello")
    entries = _by_name(ScandirCatalogueReader().catalogue(str(tmp_path)))
    assert entries["sub"].object_type == ObjectType.DIRECTORY
    assert entries["sub"].length == 0
    assert entries["notes"].object_type == ObjectType.FILE
    assert entries["notes"].length == 5
    assert decode_load_exec(entries["notes"].load_addr, entries["notes"].exec_addr)[0] == FileType.DATA


def test_type_suffix(tmp_path):
    (tmp_path / "Run,feb").write_text("*Echo hi")
    (tmp_path / "bad,xyz").write_text("")
    entries = _by_name(ScandirCatalogueReader().catalogue(str(tmp_path)))
    assert decode_load_exec(entries["Run,feb"].load_addr, 0)[0] == FileType.OBEY
    assert decode_load_exec(entries["bad,xyz"].load_addr, 0)[0] == FileType.DATA


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_attributes_from_mode(tmp_path):
    path = tmp_path / "f"
    path.write_text("")
    os.chmod(path, 0o644)
    (entry,) = ScandirCatalogueReader().catalogue(str(tmp_path))
    assert entry.attributes == 0x13


def test_read_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        ScandirCatalogueReader().read(str(tmp_path / "nope"), bytearray(64), 0, 0)


def test_read_empty_directory(tmp_path):
    assert ScandirCatalogueReader().read(str(tmp_path), bytearray(64), 0, 0) == (0, POSITION_END)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_symlinked_directory_is_a_file(tmp_path):
    (tmp_path / "real").mkdir()
    try:
        os.symlink(tmp_path / "real", tmp_path / "link")
    except OSError:
        pytest.skip("cannot create symlinks")
    entries = _by_name(ScandirCatalogueReader().catalogue(str(tmp_path)))
    assert entries["link"].object_type == ObjectType.FILE
