"""Eligible source file discovery.

Produces the ordered list of files an ingestion run works on. The list is
also the ground truth for module resolution: a specifier only resolves to a
path that appears here.
"""

from __future__ import annotations

from pathlib import Path

from core.errors import DiscoveryFailure, DiscoveryLimitExceeded
from core.ignore_rules import IgnoreRules, build_ignore_rules
from core.records import DiscoveredFile


DEFAULT_MAX_FILES = 500

SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".mjs",
    ".cjs",
    ".py",
    ".ipynb",
)


def is_eligible(name: str) -> bool:
    return name.endswith(SOURCE_EXTENSIONS)


def _walk(repo_root: Path, directory: Path, ignore: IgnoreRules) -> list[DiscoveredFile]:
    found: list[DiscoveredFile] = []
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.is_symlink():
            continue
        rel = entry.relative_to(repo_root).as_posix()
        if entry.is_dir():
            if ignore.is_ignored_dir(rel):
                continue
            found.extend(_walk(repo_root, entry, ignore))
        elif entry.is_file() and is_eligible(entry.name) and not ignore.is_ignored_file(rel):
            found.append(DiscoveredFile(path=rel, abs_path=entry))
    return found


def discover_files(
    repo_root: Path,
    *,
    max_files: int = DEFAULT_MAX_FILES,
    ignore: IgnoreRules | None = None,
) -> list[DiscoveredFile]:
    """Return eligible files under `repo_root` in depth-first, name-sorted order.

    Raises DiscoveryLimitExceeded when more than `max_files` files qualify and
    DiscoveryFailure when the tree cannot be read.
    """

    ignore = ignore or build_ignore_rules()
    try:
        files = _walk(repo_root, repo_root, ignore)
    except (OSError, RecursionError) as e:
        raise DiscoveryFailure(repo_root, f"{type(e).__name__}: {e}") from e
    if len(files) > max_files:
        raise DiscoveryLimitExceeded(count=len(files), limit=max_files)
    return files


def path_set(files: list[DiscoveredFile]) -> frozenset[str]:
    return frozenset(f.path for f in files)
