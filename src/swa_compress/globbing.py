"""Glob matching for include/exclude patterns.

The planner only needs a ``matches(path, patterns) -> bool`` capability;
:func:`matches_any` is the default one and can be swapped for any callable
with the same signature.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Callable, Iterable, Sequence

PATTERN_DELIMITER = ";"

PathMatcher = Callable[[str, Sequence[str]], bool]


def split_patterns(value: str | Iterable[str] | None) -> list[str]:
    """Split a ``;``-delimited pattern string, dropping blanks."""
    if value is None:
        return []
    raw = value.split(PATTERN_DELIMITER) if isinstance(value, str) else list(value)
    patterns: list[str] = []
    for item in raw:
        stripped = item.strip()
        if stripped and stripped not in patterns:
            patterns.append(stripped)
    return patterns


def _segments(value: str) -> list[str]:
    return [seg for seg in value.replace("\\", "/").split("/") if seg]


def _match_segments(parts: Sequence[str], pats: Sequence[str]) -> bool:
    if not pats:
        return not parts
    head, rest = pats[0], pats[1:]
    if head == "**":
        # '**' consumes zero or more whole segments.
        return any(_match_segments(parts[i:], rest) for i in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatch.fnmatchcase(parts[0], head) and _match_segments(parts[1:], rest)


def glob_match(path: str, pattern: str) -> bool:
    """Match *path* against a glob *pattern* one directory segment at a time.

    ``*``, ``?`` and ``[...]`` never cross a ``/``. A ``**`` segment matches
    zero or more directories, so ``**/*.js`` matches both ``app.js`` and
    ``lib/app.js`` while ``*.js`` matches only the former.
    """
    pats: list[str] = []
    for seg in _segments(pattern):
        if seg == "**" and pats and pats[-1] == "**":
            continue
        pats.append(seg)
    return _match_segments(_segments(path), pats)


def matches_any(path: str, patterns: Sequence[str]) -> bool:
    """Return *True* if *path* matches at least one of *patterns*."""
    return any(glob_match(path, pattern) for pattern in patterns)


class PatternSet:
    """Include/exclude pattern pair evaluated against an asset's paths."""

    def __init__(
        self,
        include: str | Iterable[str] | None = None,
        exclude: str | Iterable[str] | None = None,
        matcher: PathMatcher | None = None,
    ) -> None:
        self.include: list[str] = split_patterns(include)
        self.exclude: list[str] = split_patterns(exclude)
        self._matcher: PathMatcher = matcher if matcher is not None else matches_any

    def __bool__(self) -> bool:
        return bool(self.include)

    def is_included(self, paths: Iterable[str]) -> bool:
        """True if any path hits an include pattern and none hits an exclude pattern."""
        if not self.include:
            return False
        candidates = list(paths)
        if not any(self._matcher(p, self.include) for p in candidates):
            return False
        if self.exclude and any(self._matcher(p, self.exclude) for p in candidates):
            return False
        return True
