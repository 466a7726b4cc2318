"""Directory exclusion rules for file discovery.

Uses gitignore-compatible matching via `pathspec`.
"""

from __future__ import annotations

from dataclasses import dataclass

import pathspec


# Directories pruned from every walk: VCS metadata and dependency caches.
DEFAULT_EXCLUDED_DIRS: tuple[str, ...] = (
    ".git/",
    "node_modules/",
)


@dataclass(frozen=True)
class IgnoreRules:
    spec: pathspec.PathSpec

    def is_ignored_dir(self, repo_rel_posix_dir: str) -> bool:
        # Trailing slash so directory-only patterns ("name/") apply.
        return self.spec.match_file(repo_rel_posix_dir.rstrip("/") + "/")

    def is_ignored_file(self, repo_rel_posix_path: str) -> bool:
        return self.spec.match_file(repo_rel_posix_path)


def build_ignore_rules(extra_patterns: list[str] | None = None) -> IgnoreRules:
    """Build rules from the fixed exclusion list plus optional operator patterns."""

    patterns: list[str] = list(DEFAULT_EXCLUDED_DIRS)
    if extra_patterns:
        patterns.extend(extra_patterns)
    spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)
    return IgnoreRules(spec=spec)
