"""In-memory dedup cache for automatic reports."""

from __future__ import annotations

from reporter.schemas import ReportSubmission


def dedup_key(submission: ReportSubmission) -> str:
    """Composite key of extension version and message."""
    return f"{submission.ext_version} - {submission.message}"


class DedupCache:
    """Remembers every automatic report key seen since startup.

    Entries are never evicted. The cache does no locking of its own: callers
    must hold their lock across ``contains`` and ``insert`` to make the
    check-and-insert indivisible.
    """

    def __init__(self) -> None:
        self._seen: dict[str, bool] = {}

    def contains(self, key: str) -> bool:
        """Return True when the key was inserted before."""
        return key in self._seen

    def insert(self, key: str) -> None:
        """Mark key as seen."""
        self._seen[key] = True

    def __len__(self) -> int:
        return len(self._seen)
