"""Path normalization and reconciliation between bundle, route and on-disk paths.

Bundle metadata, route-relative names and caller-chosen file keys rarely
agree on a single path form. ``PathIndex`` resolves a query against
registered paths with a fixed precedence:

1. exact match of the raw path text,
2. suffix match of the normalized paths (either direction, ``/``-bounded),
3. basename match,
4. match after stripping every leading ``.`` and ``/``.

The first stage that yields any candidate wins; within a stage candidates
keep registration order.
"""

from __future__ import annotations

from typing import Dict, Generic, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")


def normalize_path(path: str) -> str:
    """Return ``path`` with forward slashes and no leading ``./`` segments."""
    normalized = path.strip().replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def basename(path: str) -> str:
    normalized = normalize_path(path)
    return normalized.rsplit("/", 1)[-1] if normalized else normalized


def strip_extension(name: str) -> str:
    head, slash, tail = name.rpartition("/")
    stem, dot, _ = tail.rpartition(".")
    if not dot or not stem:
        return name
    return f"{head}{slash}{stem}"


def strip_leading_dots(path: str) -> str:
    return normalize_path(path).lstrip("./")


def paths_match(left: str, right: str) -> bool:
    """Return True when two paths are equal or one is a ``/``-bounded suffix of the other."""
    a = normalize_path(left)
    b = normalize_path(right)
    if not a or not b:
        return False
    return a == b or a.endswith(f"/{b}") or b.endswith(f"/{a}")


class PathIndex(Generic[T]):
    """Multi-key lookup from file paths to values."""

    def __init__(self) -> None:
        self._entries: List[Tuple[str, str, T]] = []
        self._exact: Dict[str, List[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, path: str, value: T, aliases: Iterable[str] = ()) -> None:
        for candidate in (path, *aliases):
            if not candidate:
                continue
            self._entries.append((candidate, normalize_path(candidate), value))
            self._exact.setdefault(candidate, []).append(value)

    def lookup_all(self, path: str, *, strict: bool = False) -> List[T]:
        """Return every value from the first precedence stage that matches.

        ``strict`` stops after the exact and suffix stages, so a path only
        resolves to entries naming the same file.
        """
        if not path:
            return []
        exact = self._exact.get(path)
        if exact:
            return _unique(exact)

        normalized = normalize_path(path)
        suffix = [value for _, key, value in self._entries if paths_match(key, normalized)]
        if suffix or strict:
            return _unique(suffix)

        name = basename(normalized)
        by_name = [value for _, key, value in self._entries if basename(key) == name]
        if by_name:
            return _unique(by_name)

        stripped = strip_leading_dots(normalized)
        return _unique(
            [value for _, key, value in self._entries if strip_leading_dots(key) == stripped]
        )

    def lookup(self, path: str, *, strict: bool = False) -> Optional[T]:
        matches = self.lookup_all(path, strict=strict)
        return matches[0] if matches else None


def _unique(values: List[T]) -> List[T]:
    seen: List[T] = []
    for value in values:
        if not any(value is existing or value == existing for existing in seen):
            seen.append(value)
    return seen


__all__ = [
    "PathIndex",
    "basename",
    "normalize_path",
    "paths_match",
    "strip_extension",
    "strip_leading_dots",
]
