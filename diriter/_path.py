import posixpath


def normalize_path(path: str) -> str:
    """Canonicalise a host path name.

    Backslashes become slashes, a relative path is taken from the root and
    ``..`` at the root stays at the root.
    """
    converted = path.replace("\\", "/")
    if not converted.startswith("/"):
        converted = "/" + converted
    return posixpath.normpath(converted)


def path_tail(path: str, n: int, separator: str = "/") -> str:
    """Return the last *n* elements of *path*.

    Searches backwards for *n* separators; the whole of *path* is returned
    if it has fewer than *n* + 1 elements.
    """
    if n <= 0:
        return ""
    pos = len(path)
    for _ in range(n):
        pos = path.rfind(separator, 0, pos)
        if pos < 0:
            return path
    return path[pos + 1:]
