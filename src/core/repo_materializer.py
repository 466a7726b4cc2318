"""Repository acquisition: a dulwich clone into the run directory."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path

from dulwich import porcelain
from dulwich.repo import Repo

from core.errors import AcquisitionFailure


@dataclass(frozen=True)
class GitMaterializationResult:
    repo_root: Path
    head_commit: str | None


def read_head_commit(repo_root: Path) -> str | None:
    """Hex sha of HEAD, or None for a repository without commits."""

    try:
        with Repo(str(repo_root)) as repo:
            return repo.head().decode("ascii")
    except KeyError:
        return None


def materialize_git(*, git_url: str, dest_dir: Path, depth: int | None = 1) -> GitMaterializationResult:
    """Clone `git_url` into `dest_dir` with a working tree checked out.

    `depth=None` clones full history. Raises AcquisitionFailure when the clone
    fails or leaves no directory behind.
    """

    dest_dir.parent.mkdir(parents=True, exist_ok=True)

    # dulwich writes pack progress to errstream; keep it out of the service logs.
    progress = io.BytesIO()
    try:
        porcelain.clone(git_url, target=str(dest_dir), checkout=True, depth=depth, errstream=progress)
    except Exception as e:
        raise AcquisitionFailure(git_url, str(e) or type(e).__name__) from e

    if not dest_dir.is_dir():
        raise AcquisitionFailure(git_url, f"clone left no directory at {dest_dir}")

    return GitMaterializationResult(repo_root=dest_dir, head_commit=read_head_commit(dest_dir))
