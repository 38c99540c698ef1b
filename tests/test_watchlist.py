"""Tests for WatchStore: watch/unwatch, completion detection, pruning."""

from typing import Callable

import pytest

from prmonitor.models import BuildStatus, PullRequest
from prmonitor.services.watchlist import WatchStore, is_completion
from prmonitor.store import MemoryWatchlistBackend, WatchRecord


@pytest.fixture
def backend() -> MemoryWatchlistBackend:
    return MemoryWatchlistBackend()


@pytest.fixture
def store(backend: MemoryWatchlistBackend) -> WatchStore:
    return WatchStore(backend, clock=lambda: 1_700_000_000)


class TestIsCompletion:
    @pytest.mark.parametrize("previous", [BuildStatus.PENDING, BuildStatus.UNKNOWN])
    @pytest.mark.parametrize("current", [BuildStatus.SUCCESS, BuildStatus.FAILURE, BuildStatus.ERROR])
    def test_unsettled_to_settled(self, previous: BuildStatus, current: BuildStatus) -> None:
        assert is_completion(previous, current)

    @pytest.mark.parametrize("current", [BuildStatus.CONFLICT, BuildStatus.INACTIVE, BuildStatus.PENDING])
    def test_unsettled_targets_do_not_count(self, current: BuildStatus) -> None:
        """Conflict and inactive are not completions."""
        assert not is_completion(BuildStatus.PENDING, current)

    def test_settled_to_settled_does_not_count(self) -> None:
        assert not is_completion(BuildStatus.FAILURE, BuildStatus.SUCCESS)


class TestMembership:
    def test_watch_and_unwatch(self, store: WatchStore, backend: MemoryWatchlistBackend) -> None:
        """watch stores status and saves; unwatch removes the record."""
        store.watch("repo/x#42", BuildStatus.PENDING)
        assert store.is_watched("repo/x#42")
        assert backend.state["repo/x#42"].status == BuildStatus.PENDING
        assert backend.state["repo/x#42"].timestamp == 1_700_000_000
        store.unwatch("repo/x#42")
        assert not store.is_watched("repo/x#42")
        assert "repo/x#42" not in backend.state

    def test_unwatch_unknown_id_is_noop(self, store: WatchStore, backend: MemoryWatchlistBackend) -> None:
        store.unwatch("repo/x#1")
        assert backend.save_count == 0

    def test_state_loaded_from_backend(self) -> None:
        backend = MemoryWatchlistBackend({"repo/x#7": WatchRecord(status=BuildStatus.PENDING, timestamp=1)})
        store = WatchStore(backend)
        assert store.is_watched("repo/x#7")
        assert store.get("repo/x#7").status == BuildStatus.PENDING

    def test_clear(self, store: WatchStore, backend: MemoryWatchlistBackend) -> None:
        store.watch("repo/x#1")
        store.watch("repo/x#2")
        store.clear()
        assert store.watched_ids() == []
        assert backend.state == {}


class TestReconcile:
    def test_pending_to_success_completes_once(self, store: WatchStore, make_pr: Callable[..., PullRequest]) -> None:
        """Pending then success is reported once; a further success is not."""
        store.watch("repo/x#42", BuildStatus.PENDING)
        pr = make_pr(42, "repo/x", BuildStatus.SUCCESS)

        assert store.reconcile([pr]) == [pr]
        assert store.get("repo/x#42").status == BuildStatus.SUCCESS
        assert store.reconcile([pr]) == []

    def test_idempotent_for_same_input(self, store: WatchStore, make_pr: Callable[..., PullRequest]) -> None:
        store.watch("repo/x#1", BuildStatus.PENDING)
        store.watch("repo/x#2", BuildStatus.UNKNOWN)
        prs = [make_pr(1, "repo/x", BuildStatus.FAILURE), make_pr(2, "repo/x", BuildStatus.ERROR)]
        assert len(store.reconcile(prs)) == 2
        assert store.reconcile(prs) == []

    def test_status_overwritten_without_completion(
        self, store: WatchStore, make_pr: Callable[..., PullRequest]
    ) -> None:
        """Pending to conflict updates the record but is not a completion."""
        store.watch("repo/x#1", BuildStatus.PENDING)
        assert store.reconcile([make_pr(1, "repo/x", BuildStatus.CONFLICT)]) == []
        assert store.get("repo/x#1").status == BuildStatus.CONFLICT
        # Conflict to success is not a completion either
        assert store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)]) == []

    def test_pending_again_then_success_completes_again(
        self, store: WatchStore, make_pr: Callable[..., PullRequest]
    ) -> None:
        """A new build after completion is reported again."""
        store.watch("repo/x#1", BuildStatus.PENDING)
        store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)])
        store.reconcile([make_pr(1, "repo/x", BuildStatus.PENDING)])
        assert len(store.reconcile([make_pr(1, "repo/x", BuildStatus.FAILURE)])) == 1

    def test_unwatched_prs_are_ignored(self, store: WatchStore, make_pr: Callable[..., PullRequest]) -> None:
        assert store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)]) == []
        assert not store.is_watched("repo/x#1")

    def test_closed_prs_are_pruned(
        self, store: WatchStore, backend: MemoryWatchlistBackend, make_pr: Callable[..., PullRequest]
    ) -> None:
        """A watched PR missing from the open set is dropped and never completes."""
        store.watch("repo/x#1", BuildStatus.PENDING)
        store.watch("repo/x#2", BuildStatus.PENDING)
        store.reconcile([make_pr(2, "repo/x", BuildStatus.PENDING)])
        assert not store.is_watched("repo/x#1")
        assert "repo/x#1" not in backend.state
        assert store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)]) == []

    def test_unwatched_pr_never_completes(self, store: WatchStore, make_pr: Callable[..., PullRequest]) -> None:
        store.watch("repo/x#1", BuildStatus.PENDING)
        store.unwatch("repo/x#1")
        assert store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)]) == []

    def test_timestamp_only_changes_with_status(
        self, backend: MemoryWatchlistBackend, make_pr: Callable[..., PullRequest]
    ) -> None:
        ticks = iter([100, 200, 300])
        store = WatchStore(backend, clock=lambda: next(ticks))
        store.watch("repo/x#1", BuildStatus.PENDING)
        store.reconcile([make_pr(1, "repo/x", BuildStatus.PENDING)])
        assert store.get("repo/x#1").timestamp == 100
        store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)])
        assert store.get("repo/x#1").timestamp == 300

    def test_reconcile_saves(
        self, store: WatchStore, backend: MemoryWatchlistBackend, make_pr: Callable[..., PullRequest]
    ) -> None:
        store.watch("repo/x#1", BuildStatus.PENDING)
        saves = backend.save_count
        store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)])
        assert backend.save_count == saves + 1
        assert backend.state["repo/x#1"].status == BuildStatus.SUCCESS


class FailingSaveBackend(MemoryWatchlistBackend):
    """Memory backend whose save raises OSError while fail is set."""

    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def save(self, state) -> None:
        if self.fail:
            raise OSError("disk full")
        super().save(state)


class TestReconcileSaveFailure:
    def test_completion_reported_when_save_fails(self, make_pr: Callable[..., PullRequest]) -> None:
        backend = FailingSaveBackend()
        store = WatchStore(backend)
        store.watch("repo/x#1", BuildStatus.PENDING)
        backend.fail = True

        completed = store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)])

        assert [pr.id for pr in completed] == ["repo/x#1"]
        assert store.get("repo/x#1").status == BuildStatus.SUCCESS

    def test_next_save_persists_state(self, make_pr: Callable[..., PullRequest]) -> None:
        backend = FailingSaveBackend()
        store = WatchStore(backend)
        store.watch("repo/x#1", BuildStatus.PENDING)
        backend.fail = True
        store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)])

        backend.fail = False
        assert store.reconcile([make_pr(1, "repo/x", BuildStatus.SUCCESS)]) == []
        assert backend.state["repo/x#1"].status == BuildStatus.SUCCESS
