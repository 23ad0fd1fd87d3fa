"""Wildcard matching for catalogue names.

Two metacharacters are recognised: ``#`` matches exactly one character and
``*`` matches any run of characters up to the first occurrence of the
pattern character that follows it.  That character is always taken
literally, even if it is ``#`` or ``*``, and there is no backtracking: ``*o``
does not match ``foo`` and ``*#`` only matches names containing ``#``.
"""

MATCH_ONE = "#"
MATCH_ANY = "*"


def is_match_all(pattern: str | None) -> bool:
    return pattern is None or pattern == MATCH_ANY


def wildcard_match(name: str, pattern: str | None) -> bool:
    if pattern is None or pattern == MATCH_ANY:
        return True
    n, m = len(name), len(pattern)
    i = 0
    for j, c in enumerate(pattern):
        if c == MATCH_ONE:
            if i >= n:
                return False
            i += 1
        elif c == MATCH_ANY:
            stop = pattern[j + 1] if j + 1 < m else None
            while i < n and name[i] != stop:
                i += 1
        elif i < n and name[i] == c:
            i += 1
        else:
            return False
    return i == n
