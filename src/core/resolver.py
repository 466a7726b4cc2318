"""Specifier -> repository path resolution.

Resolution is relative to the importing file's directory, except for
specifiers that already start with a project-root marker. Candidates are
tried in a fixed order and the first one present in the discovered file set
wins, so `./b` prefers `b.js` over `b/index.js`. Bare package names normally
match nothing and are dropped.
"""

from __future__ import annotations

import posixpath
from typing import AbstractSet

from core.records import ResolvedEdge


ROOT_MARKERS: tuple[str, ...] = ("src/",)

SOURCE_SUFFIXES: tuple[str, ...] = (
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".mjs",
    ".cjs",
    ".py",
    ".ipynb",
)

INDEX_FILES: tuple[str, ...] = (
    "index.js",
    "index.jsx",
    "index.ts",
    "index.tsx",
    "index.ipynb",
    "index.py",
)

PACKAGE_INIT = "__init__.py"


def base_path(importer_path: str, specifier: str) -> str:
    """Repo-relative POSIX base path a specifier points at."""

    if specifier.startswith(ROOT_MARKERS):
        return specifier
    directory = posixpath.dirname(importer_path)
    spec = specifier.replace("\\", "/").lstrip("/")
    return posixpath.normpath(posixpath.join(directory, spec)) if directory else posixpath.normpath(spec)


def build_candidates(importer_path: str, specifier: str) -> list[str]:
    base = base_path(importer_path, specifier)
    candidates = [base]
    candidates.extend(base + suffix for suffix in SOURCE_SUFFIXES)
    candidates.extend(f"{base}/{index}" for index in INDEX_FILES)
    candidates.append(f"{base}/{PACKAGE_INIT}")
    return candidates


def resolve_specifier(importer_path: str, specifier: str, known_paths: AbstractSet[str]) -> str | None:
    """First candidate present in `known_paths`, or None."""

    for candidate in build_candidates(importer_path, specifier):
        if candidate in known_paths:
            return candidate
    return None


def resolve_edge(importer_path: str, specifier: str, known_paths: AbstractSet[str]) -> ResolvedEdge | None:
    target = resolve_specifier(importer_path, specifier, known_paths)
    if target is None:
        return None
    return ResolvedEdge(from_path=importer_path, to_path=target)
