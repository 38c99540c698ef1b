"""Poll controller: refresh PRs on a timer, notify on watched completions, publish the list.

One refresh cycle runs at a time. A timer tick that fires while a cycle is in
flight is skipped, so two cycles never touch the watch store together.
"""

import logging
import threading
from datetime import UTC, datetime
from enum import Enum
from typing import Callable, Iterable

from pydantic import BaseModel, Field

from prmonitor.config import InactivityConfig
from prmonitor.errors import PRMonitorError
from prmonitor.models import BuildStatus, PRCategory, PullRequest
from prmonitor.services.github import GitHubService
from prmonitor.services.notifier import Notifier
from prmonitor.services.watchlist import WatchStore

LOG = logging.getLogger("prmonitor.poller")

# Statuses moved ahead of success (and unknown) when sorting non-success first
NON_SUCCESS_STATUSES = frozenset(
    {
        BuildStatus.FAILURE,
        BuildStatus.ERROR,
        BuildStatus.CONFLICT,
        BuildStatus.CHANGES_REQUESTED,
        BuildStatus.PENDING,
        BuildStatus.INACTIVE,
    }
)


class PollState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PUBLISHING = "publishing"
    FAILED = "failed"


class Snapshot(BaseModel):
    """What the presentation layer renders after each publish."""

    pull_requests: list[PullRequest] = Field(default_factory=list)
    last_refresh_time: datetime | None = None
    available: bool = True
    error_message: str | None = None
    has_failing_builds: bool = False


def _partition_non_success_first(prs: list[PullRequest]) -> list[PullRequest]:
    """Stable partition: non-success PRs first, original order kept within each part."""
    return [pr for pr in prs if pr.status in NON_SUCCESS_STATUSES] + [
        pr for pr in prs if pr.status not in NON_SUCCESS_STATUSES
    ]


def order_pull_requests(prs: Iterable[PullRequest], non_success_first: bool = False) -> list[PullRequest]:
    """Review requests before authored PRs; optionally non-success first within each group."""
    prs = list(prs)
    review = [pr for pr in prs if pr.category is PRCategory.REVIEW_REQUESTED]
    authored = [pr for pr in prs if pr.category is PRCategory.AUTHORED]
    if non_success_first:
        review = _partition_non_success_first(review)
        authored = _partition_non_success_first(authored)
    return review + authored


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PollController:
    """Owns the refresh timer, the watch store and the published PR list."""

    def __init__(
        self,
        service: GitHubService,
        watch_store: WatchStore,
        notifier: Notifier,
        inactivity: InactivityConfig | None = None,
        sort_non_success_first: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.service = service
        self.watch_store = watch_store
        self.notifier = notifier
        self.inactivity = inactivity or InactivityConfig()
        self.sort_non_success_first = sort_non_success_first
        self._clock = clock

        self.state = PollState.IDLE
        self.available = True
        self.error_message: str | None = None
        self.last_refresh_time: datetime | None = None
        self.interval_seconds: int | None = None
        self.selected_repository: str | None = None

        self._unsorted: list[PullRequest] = []
        self._published: list[PullRequest] = []
        self._cycle_lock = threading.Lock()
        self._timer_lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._subscribers: list[Callable[[Snapshot], None]] = []

    # Timer

    def start(self, interval_seconds: int) -> None:
        """Replace the timer with a new one and refresh right away.

        The next automatic tick is interval_seconds from now. Availability of
        gh is checked here, not on every tick.
        """
        with self._timer_lock:
            self._cancel_timer()
            self.interval_seconds = interval_seconds
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._timer_loop,
                args=(stop_event, interval_seconds),
                name="prmonitor-poller",
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread
            thread.start()
        LOG.info("Polling every %ss", interval_seconds)

        self.check_availability()
        if self.available:
            # Waits for a tick already in flight instead of skipping
            self.run_cycle(wait=True)

    def stop(self) -> None:
        """Cancel the timer. An in-flight cycle finishes; the last list stays published."""
        with self._timer_lock:
            self._cancel_timer()
        LOG.info("Polling stopped")

    def update_interval(self, interval_seconds: int) -> None:
        """Restart polling with a new interval."""
        self.start(interval_seconds)

    @property
    def is_running(self) -> bool:
        return self._stop_event is not None and not self._stop_event.is_set()

    def _cancel_timer(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        self._stop_event = None
        self._thread = None

    def _timer_loop(self, stop_event: threading.Event, interval_seconds: int) -> None:
        while not stop_event.wait(interval_seconds):
            if not self.available:
                # Install/auth problems wait for an explicit start()
                continue
            try:
                self.run_cycle()
            except Exception as e:
                LOG.exception("Poll tick error: %s", e)

    # Cycle

    def check_availability(self) -> bool:
        try:
            self.service.check_available()
        except PRMonitorError as e:
            LOG.warning("gh availability check failed: %s", e)
            self.error_message = e.user_message
            if e.makes_unavailable:
                self.available = False
            self._publish()
            return self.available
        self.available = True
        self.error_message = None
        return True

    def run_cycle(self, wait: bool = False) -> bool:
        """Fetch, reconcile watched PRs, notify and publish.

        Returns False without doing anything when another cycle is in flight,
        unless wait is set, in which case it runs once that cycle finishes.
        """
        if not self._cycle_lock.acquire(blocking=wait):
            LOG.debug("Refresh already in progress, skipping")
            return False
        try:
            self._run_cycle()
        finally:
            self.state = PollState.IDLE
            self._cycle_lock.release()
        return True

    def _run_cycle(self) -> None:
        self.state = PollState.FETCHING
        self.error_message = None
        try:
            fetched = self.service.fetch_all(self.inactivity.enabled, self.inactivity.threshold_days)
        except PRMonitorError as e:
            self.state = PollState.FAILED
            LOG.warning("Refresh failed: %s", e)
            self.error_message = e.user_message
            if e.makes_unavailable:
                self.available = False
            self._publish()
            return
        except Exception as e:
            self.state = PollState.FAILED
            LOG.exception("Unexpected refresh error: %s", e)
            self.error_message = f"An unexpected error occurred: {e}"
            self._publish()
            return

        self.state = PollState.PUBLISHING
        completed = self.watch_store.reconcile(fetched)
        for pr in completed:
            try:
                self.notifier.notify(pr, pr.status)
            except Exception as e:
                LOG.exception("Failed to notify for %s: %s", pr.id, e)

        self._unsorted = [pr.model_copy(update={"watched": self.watch_store.is_watched(pr.id)}) for pr in fetched]
        if self.selected_repository and self.selected_repository not in self.available_repositories:
            self.selected_repository = None
        self.last_refresh_time = self._clock()
        self.available = True
        LOG.info("Refreshed %d PRs (%d watched builds completed)", len(fetched), len(completed))
        self.apply_sorting()

    # Ordering and publishing

    def apply_sorting(self) -> None:
        """Re-order the last fetched PRs with the current sort preference and publish.

        Callers hold the cycle lock.
        """
        self._published = order_pull_requests(self._unsorted, self.sort_non_success_first)
        self._publish()

    def on_settings_changed(self, sort_non_success_first: bool | None = None) -> None:
        """Called when preferences change; re-sorts immediately."""
        with self._cycle_lock:
            if sort_non_success_first is not None:
                self.sort_non_success_first = sort_non_success_first
            self.apply_sorting()

    def subscribe(self, callback: Callable[[Snapshot], None]) -> None:
        """Register a callback invoked with a Snapshot after every publish.

        Callbacks run under the cycle lock and must not call toggle_watch,
        clear_all_watched or on_settings_changed.
        """
        self._subscribers.append(callback)

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception as e:
                LOG.exception("Subscriber failed: %s", e)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            pull_requests=self.pull_requests,
            last_refresh_time=self.last_refresh_time,
            available=self.available,
            error_message=self.error_message,
            has_failing_builds=self.has_failing_builds,
        )

    @property
    def pull_requests(self) -> list[PullRequest]:
        """Published PRs, restricted to selected_repository when set."""
        if not self.selected_repository:
            return list(self._published)
        return [pr for pr in self._published if pr.repository.name_with_owner == self.selected_repository]

    @property
    def review_prs(self) -> list[PullRequest]:
        return [pr for pr in self.pull_requests if pr.category is PRCategory.REVIEW_REQUESTED]

    @property
    def authored_prs(self) -> list[PullRequest]:
        return [pr for pr in self.pull_requests if pr.category is PRCategory.AUTHORED]

    @property
    def available_repositories(self) -> list[str]:
        return sorted({pr.repository.name_with_owner for pr in self._unsorted})

    @property
    def has_failing_builds(self) -> bool:
        return any(pr.status.is_failing for pr in self._published)

    # Watching

    def toggle_watch(self, pr_id: str) -> bool:
        """Watch or unwatch pr_id; returns the new watched flag.

        Blocks while a refresh cycle is in flight.
        """
        with self._cycle_lock:
            if self.watch_store.is_watched(pr_id):
                self.watch_store.unwatch(pr_id)
                watched = False
            else:
                current = next((pr for pr in self._unsorted if pr.id == pr_id), None)
                self.watch_store.watch(pr_id, current.status if current else BuildStatus.UNKNOWN)
                watched = True
            self._unsorted = [
                pr.model_copy(update={"watched": watched}) if pr.id == pr_id else pr for pr in self._unsorted
            ]
            self.apply_sorting()
        return watched

    def clear_all_watched(self) -> None:
        with self._cycle_lock:
            self.watch_store.clear()
            self._unsorted = [pr.model_copy(update={"watched": False}) for pr in self._unsorted]
            self.apply_sorting()
