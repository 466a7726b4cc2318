"""Per-run workspace layout.

Every ingestion clones into a fresh directory named after the run's start
time. Run directories are never removed so a run can be inspected afterwards.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Workspace:
    """Workspace layout rooted at a base directory."""

    root: Path

    def run_dir(self, timestamp_ms: int) -> Path:
        return self.root / str(timestamp_ms)

    def new_run_dir(self) -> Path:
        """Return an unused run directory path; the base directory is created if absent."""

        self.root.mkdir(parents=True, exist_ok=True)
        stamp = time.time_ns() // 1_000_000
        path = self.run_dir(stamp)
        while path.exists():
            stamp += 1
            path = self.run_dir(stamp)
        return path
