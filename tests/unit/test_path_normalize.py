from diriter._path import normalize_path, path_tail


def test_simple_absolute():
    assert normalize_path("/a/b/c") == "/a/b/c"


def test_trailing_slash_removed():
    assert normalize_path("/a/b/") == "/a/b"


def test_double_slash_collapsed():
    assert normalize_path("/a//b") == "/a/b"


def test_dot_removed():
    assert normalize_path("/a/./b") == "/a/b"


def test_dotdot_resolved():
    assert normalize_path("/a/b/../c") == "/a/c"


def test_relative_path_becomes_absolute():
    assert normalize_path("a/b/c") == "/a/b/c"


def test_empty_string_returns_root():
    assert normalize_path("") == "/"


def test_root_returns_root():
    assert normalize_path("/") == "/"


def test_parent_of_root_is_root():
    assert normalize_path("../x") == "/x"


def test_deep_parent_stays_at_root():
    assert normalize_path("/a/../../x") == "/x"


def test_backslash_converted():
    assert normalize_path("\\a\\b") == "/a/b"


def test_windows_style_parent():
    assert normalize_path("..\\x") == "/x"


def test_path_tail_last_element():
    assert path_tail("ROOT/foo/fum", 1) == "fum"


def test_path_tail_two_elements():
    assert path_tail("ROOT/foo/fum", 2) == "foo/fum"


def test_path_tail_whole_path_when_short():
    assert path_tail("ROOT/foo", 5) == "ROOT/foo"


def test_path_tail_zero_is_empty():
    assert path_tail("ROOT/foo", 0) == ""


def test_path_tail_custom_separator():
    assert path_tail("ADFS::4.$.ROOT.foo", 2, ".") == "ROOT.foo"
