"""Fetch open pull requests through the gh CLI and classify them.

## Error handling

Two pipelines run side by side: PRs authored by the user and PRs where the
user's review is requested. Each pipeline catches its own failure, logs it and
contributes an empty list, so one failing search never hides the other.
Only when both fail is an error raised (the authored pipeline's, as the more
representative cause, e.g. gh missing or the network down).

gh auth status can report a misleading "token is invalid" when offline, so a
failure whose message looks like a connectivity error is raised as
NetworkUnreachable and the monitor stays available.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Callable

from prmonitor.config import GhConfig
from prmonitor.errors import ExecutionFailed, NetworkUnreachable, ParseError, PRMonitorError, ToolNotAuthenticated
from prmonitor.models import BuildStatus, ItemDetail, PRCategory, PullRequest
from prmonitor.services.classifier import classify, summarize_checks
from prmonitor.services.parser import parse_detail, parse_items
from prmonitor.services.shell import CommandRunner, is_network_error

LOG = logging.getLogger("prmonitor.services.github")

SEARCH_FIELDS = "number,title,repository,url,author,updatedAt,labels,isDraft"
DETAIL_FIELDS = "headRefName,statusCheckRollup,mergeable,mergeStateStatus,reviewDecision"

_SEARCH_FILTERS = {
    PRCategory.AUTHORED: "--author=@me",
    PRCategory.REVIEW_REQUESTED: "--review-requested=@me",
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class GitHubService:
    """Orchestrates gh search and gh pr view calls for both PR categories."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        config: GhConfig | None = None,
        empty_checks_status: BuildStatus = BuildStatus.SUCCESS,
        demo_mode: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config or GhConfig()
        self.runner = runner or CommandRunner(self.config.extra_paths, self.config.timeout)
        self.empty_checks_status = empty_checks_status
        self.demo_mode = demo_mode
        self._clock = clock

    def _gh(self, *args: str) -> str:
        return self.runner.run(self.config.command, list(args), timeout=self.config.timeout)

    def check_available(self) -> None:
        """Verify gh is installed and logged in.

        Raises:
            ToolNotFound: gh is not installed.
            ToolNotAuthenticated: gh auth status does not report a login.
            NetworkUnreachable: auth could not be verified because GitHub is unreachable.
        """
        if self.demo_mode:
            return
        self._gh("--version")
        try:
            output = self._gh("auth", "status")
        except ExecutionFailed as e:
            if is_network_error(str(e)):
                raise NetworkUnreachable(str(e)) from e
            raise ToolNotAuthenticated(str(e)) from e
        if "Logged in" not in output:
            raise ToolNotAuthenticated("gh auth status did not report a logged in account")

    def fetch_all(self, inactivity_enabled: bool = False, inactivity_threshold_days: int = 3) -> list[PullRequest]:
        """Return open review-requested PRs followed by authored PRs.

        Raises:
            PRMonitorError: Both pipelines failed.
        """
        if self.demo_mode:
            from prmonitor.demo import sample_pull_requests

            return sample_pull_requests(self._clock())

        now = self._clock()
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="prmonitor-pipeline") as pool:
            authored_future = pool.submit(
                self._fetch_safely, PRCategory.AUTHORED, now, inactivity_enabled, inactivity_threshold_days
            )
            review_future = pool.submit(
                self._fetch_safely, PRCategory.REVIEW_REQUESTED, now, inactivity_enabled, inactivity_threshold_days
            )
            authored, authored_error = authored_future.result()
            review, review_error = review_future.result()

        if authored_error is not None and review_error is not None:
            LOG.error("Both PR fetches failed - authored: %s, review: %s", authored_error, review_error)
            raise authored_error

        # Review requests first to prioritize unblocking teammates
        return review + authored

    def _fetch_safely(
        self,
        category: PRCategory,
        now: datetime,
        inactivity_enabled: bool,
        inactivity_threshold_days: int,
    ) -> tuple[list[PullRequest], PRMonitorError | None]:
        try:
            return self.fetch_category(category, now, inactivity_enabled, inactivity_threshold_days), None
        except PRMonitorError as e:
            LOG.warning("Error fetching %s PRs: %s", category.value, e)
            return [], e

    def search(self, category: PRCategory) -> list[PullRequest]:
        """List open PRs of one category (without status)."""
        raw = self._gh(
            "search",
            "prs",
            _SEARCH_FILTERS[category],
            "--state=open",
            "--archived=false",
            "--json",
            SEARCH_FIELDS,
            "--limit",
            str(self.config.search_limit),
        )
        return parse_items(raw, category)

    def fetch_detail(self, pr: PullRequest) -> ItemDetail:
        """Checks, merge state and review decision of one PR."""
        raw = self._gh(
            "pr",
            "view",
            str(pr.number),
            "--repo",
            pr.repository.name_with_owner,
            "--json",
            DETAIL_FIELDS,
        )
        return parse_detail(raw)

    def fetch_category(
        self,
        category: PRCategory,
        now: datetime,
        inactivity_enabled: bool = False,
        inactivity_threshold_days: int = 3,
    ) -> list[PullRequest]:
        """Search one category, fetch every PR's detail and classify it.

        A PR whose detail cannot be parsed is skipped; any other detail
        failure fails the whole category.
        """
        prs = self.search(category)
        if not prs:
            return []

        def build(pr: PullRequest) -> PullRequest | None:
            try:
                detail = self.fetch_detail(pr)
            except ParseError as e:
                LOG.warning("Skipping %s: %s", pr.id, e)
                return None
            status = classify(
                detail.checks,
                detail.mergeable,
                detail.merge_state_status,
                detail.review_decision,
                updated_at=pr.updated_at,
                now=now,
                inactivity_enabled=inactivity_enabled,
                inactivity_threshold_days=inactivity_threshold_days,
                empty_checks_status=self.empty_checks_status,
            )
            return pr.model_copy(
                update={
                    "head_ref_name": detail.head_ref_name,
                    "status": status,
                    "checks": summarize_checks(detail.checks),
                }
            )

        workers = min(self.config.detail_concurrency, len(prs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="prmonitor-detail") as pool:
            results = list(pool.map(build, prs))
        return [pr for pr in results if pr is not None]
