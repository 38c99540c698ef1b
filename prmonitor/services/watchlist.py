"""Watched PRs: remember the last status and report builds that just completed."""

import logging
import threading
import time
from typing import Callable, Iterable

from prmonitor.models import BuildStatus, PullRequest
from prmonitor.store import WatchlistBackend, WatchRecord, WatchState

LOG = logging.getLogger("prmonitor.services.watchlist")


def is_completion(previous: BuildStatus, current: BuildStatus) -> bool:
    """Pending (or unknown) to success, failure or error.

    Conflict and inactive are still unsettled for the user and never count.
    """
    return previous.is_unsettled and current.is_settled


class WatchStore:
    """Per-PR watch records keyed by PR id, persisted through a backend."""

    def __init__(self, backend: WatchlistBackend, clock: Callable[[], float] = time.time) -> None:
        self._backend = backend
        self._clock = clock
        self._lock = threading.Lock()
        self._records: WatchState = backend.load()
        LOG.debug("Loaded %d watched PRs", len(self._records))

    def _now(self) -> int:
        return int(self._clock())

    def watch(self, pr_id: str, status: BuildStatus = BuildStatus.UNKNOWN) -> None:
        """Start watching pr_id with its currently known status."""
        with self._lock:
            self._records[pr_id] = WatchRecord(status=status, timestamp=self._now())
            self._backend.save(self._records)
        LOG.info("Watching %s (%s)", pr_id, status.value)

    def unwatch(self, pr_id: str) -> None:
        with self._lock:
            if self._records.pop(pr_id, None) is None:
                return
            self._backend.save(self._records)
        LOG.info("Stopped watching %s", pr_id)

    def is_watched(self, pr_id: str) -> bool:
        return pr_id in self._records

    def get(self, pr_id: str) -> WatchRecord | None:
        return self._records.get(pr_id)

    def watched_ids(self) -> list[str]:
        return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._backend.save(self._records)
        LOG.info("Cleared all watched PRs")

    def reconcile(self, current: Iterable[PullRequest]) -> list[PullRequest]:
        """Compare freshly classified PRs with the stored statuses.

        Returns watched PRs whose build completed since the previous call. The
        stored status is overwritten for every watched PR, so each change is
        reported at most once. Watched PRs missing from current (merged or
        closed) are dropped.
        """
        current = list(current)
        completed = []
        with self._lock:
            previous = dict(self._records)
            now = self._now()
            for pr in current:
                record = previous.get(pr.id)
                if record is None:
                    continue
                if is_completion(record.status, pr.status):
                    completed.append(pr)
                if record.status != pr.status:
                    self._records[pr.id] = WatchRecord(status=pr.status, timestamp=now)

            open_ids = {pr.id for pr in current}
            for pr_id in set(previous) - open_ids:
                del self._records[pr_id]
                LOG.info("Watched PR %s is no longer open, removed", pr_id)

            try:
                self._backend.save(self._records)
            except OSError as e:
                # Completions are still reported; the file catches up on the next save
                LOG.warning("Failed to save watchlist: %s", e)
        for pr in completed:
            LOG.info("Build completed for watched PR %s: %s", pr.id, pr.status.value)
        return completed
