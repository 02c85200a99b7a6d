"""File eligibility predicates.

A file that fails the predicate is invisible to reconciliation: no store
lookup, no review request, no provider call.
"""

from __future__ import annotations

import fnmatch
from typing import Callable, Iterable

NON_CODE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".ogg",
    ".zip",
    ".tar",
    ".gz",
    ".rar",
    ".7z",
    ".lock",  # e.g. package-lock.json, Pipfile.lock
}

FileFilter = Callable[[str], bool]


def is_code_file(file_name: str) -> bool:
    return not any(file_name.lower().endswith(ext) for ext in NON_CODE_EXTENSIONS)


def is_excluded(filename: str, patterns: Iterable[str]) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.lock", "*.min.js"
    - Directory names/prefixes: "migrations/", "tests" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False


def has_allowed_suffix(filename: str, suffixes: Iterable[str]) -> bool:
    """Suffix allow-list match; an empty allow-list admits every file."""
    suffixes = [s.lower() for s in suffixes]
    if not suffixes:
        return True
    return filename.lower().endswith(tuple(suffixes))


def build_file_filter(config: dict) -> FileFilter:
    """Combine the configured allow-list, exclude patterns and the binary check."""
    include = list(config.get("include") or [])
    exclude = list(config.get("exclude") or [])

    def _eligible(filename: str) -> bool:
        return (
            is_code_file(filename)
            and has_allowed_suffix(filename, include)
            and not is_excluded(filename, exclude)
        )

    return _eligible
