from datetime import datetime, timezone

from diriter import FileType

STAMP = datetime(2024, 5, 17, 12, 30, 0, tzinfo=timezone.utc)

# Sub-paths of the sample tree, in depth-first catalogue order.
SAMPLE_FLAT = ["!foo", "fee", "fi", "foo", "longname"]
SAMPLE_RECURSIVE = [
    "!foo",
    "!foo/bar",
    "!foo/noob",
    "fee",
    "fi",
    "foo",
    "foo/fum",
    "longname",
]


def build_sample_tree(host, root="ROOT"):
    host.mkdir(root)
    host.mkdir(f"{root}/!foo")
    host.create_file(f"{root}/!foo/bar", length=0, file_type=FileType.SQUASH, stamp=STAMP)
    host.create_file(f"{root}/!foo/noob", length=13, file_type=FileType.DATA, stamp=STAMP)
    host.create_file(f"{root}/fee", length=27, file_type=FileType.TEXT, stamp=STAMP)
    host.create_file(f"{root}/fi", length=31, file_type=FileType.OBEY, stamp=STAMP)
    host.mkdir(f"{root}/foo")
    host.mkdir(f"{root}/foo/fum")
    host.create_file(f"{root}/longname", length=2048, file_type=FileType.SPRITE, stamp=STAMP)
    return host


def build_tree(host, layout, root="ROOT"):
    """Create *layout* under *root*: a dict mapping names to sub-dicts or file lengths."""
    host.mkdir(root, exist_ok=True)
    for name, value in layout.items():
        path = f"{root}/{name}"
        if isinstance(value, dict):
            host.mkdir(path)
            build_tree(host, value, path)
        else:
            host.create_file(path, length=value)
    return host


def reference_walk(layout, recurse=True, prefix=""):
    """Sub-paths a depth-first walk of *layout* should produce."""
    result = []
    for name, value in layout.items():
        sub_path = f"{prefix}{name}"
        result.append(sub_path)
        if recurse and isinstance(value, dict):
            result.extend(reference_walk(value, recurse, sub_path + "/"))
    return result
