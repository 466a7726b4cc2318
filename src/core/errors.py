"""Fatal ingestion failures.

Recoverable per-file problems (parse failures, malformed notebooks, query
mismatches, unresolved specifiers) are reported as events and never raised.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for failures that abort an ingestion run."""


class AcquisitionFailure(IngestionError):
    """The repository could not be cloned, or the clone directory is missing afterwards."""

    def __init__(self, repo_url: str, reason: str):
        super().__init__(f"Failed to acquire repository {repo_url!r}: {reason}")
        self.repo_url = repo_url
        self.reason = reason


class DiscoveryLimitExceeded(IngestionError):
    """The repository holds more eligible files than the ingestion ceiling."""

    def __init__(self, count: int, limit: int):
        super().__init__(f"Repository too large to ingest: {count} files found, limit is {limit}")
        self.count = count
        self.limit = limit


class DiscoveryFailure(IngestionError):
    """The checkout could not be walked (unreadable directory, runaway nesting)."""

    def __init__(self, repo_root, reason: str):
        super().__init__(f"Failed to walk checkout {str(repo_root)!r}: {reason}")
        self.repo_root = repo_root
        self.reason = reason


class TransactionFailure(IngestionError):
    """The rebuild transaction was rolled back; the previous graph is unchanged."""


class StoreConnectivityFailure(IngestionError):
    """The graph store could not be reached at process start."""
