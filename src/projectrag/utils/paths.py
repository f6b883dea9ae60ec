"""Path normalization helpers."""

import re

_SEPARATORS = re.compile(r"[/\\]")


def normalize_separators(path: str) -> str:
    return _SEPARATORS.sub("/", path)


def split_parts(path: str) -> list[str]:
    """Split a path on either separator, dropping empty components."""
    return [part for part in _SEPARATORS.split(path) if part]


def to_relative(path: str, root: str) -> str:
    """Normalize a path to be relative to root, using forward slashes."""
    path = normalize_separators(path)
    root = normalize_separators(root).rstrip("/")
    if root and path.startswith(root + "/"):
        path = path[len(root) + 1 :]
    elif path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")
