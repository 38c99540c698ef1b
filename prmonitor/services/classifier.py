"""Reduce a PR's checks, merge state and review decision to one BuildStatus.

Priority, first match wins:
conflict > failure > error > changes requested > pending > inactive > success.

Inactivity is only considered once every hard signal is exhausted, so a broken
or blocked PR is never reported as merely inactive. Passing checks never mask
a failing one.
"""

from datetime import datetime, timedelta
from typing import Iterable

from prmonitor.models import BuildStatus, CheckSignal, CheckStatus, StatusCheck

FAILURE_CONCLUSIONS = frozenset({"FAILURE", "CANCELLED", "TIMED_OUT"})
ERROR_CONCLUSIONS = frozenset({"ACTION_REQUIRED", "STALE", "STARTUP_FAILURE"})
SKIPPED_CONCLUSIONS = frozenset({"SKIPPED", "NEUTRAL"})
FAILURE_STATES = frozenset({"FAILURE", "ERROR"})
PENDING_STATES = frozenset({"PENDING", "EXPECTED"})
PENDING_PROGRESS = frozenset({"IN_PROGRESS", "QUEUED", "WAITING", "PENDING"})


def _upper(value: str | None) -> str | None:
    return value.strip().upper() if isinstance(value, str) else None


def classify(
    checks: Iterable[CheckSignal] | None,
    mergeable: str | None,
    merge_state_status: str | None,
    review_decision: str | None,
    updated_at: datetime,
    now: datetime,
    inactivity_enabled: bool = False,
    inactivity_threshold_days: int = 3,
    empty_checks_status: BuildStatus = BuildStatus.SUCCESS,
) -> BuildStatus:
    """Return the overall status of one PR.

    Pure: the same arguments (including now) always give the same result.
    empty_checks_status is what a PR without any checks resolves to when no
    other signal applies.
    """
    if _upper(mergeable) == "CONFLICTING" or _upper(merge_state_status) == "DIRTY":
        return BuildStatus.CONFLICT

    checks = list(checks or [])
    has_failure = has_error = has_pending = has_success = False
    for check in checks:
        conclusion = _upper(check.conclusion)
        state = _upper(check.state)
        progress = _upper(check.status)

        # A check may carry several fields; each one is evaluated on its own
        if conclusion in FAILURE_CONCLUSIONS:
            has_failure = True
        elif conclusion in ERROR_CONCLUSIONS:
            has_error = True
        elif conclusion == "SUCCESS":
            has_success = True

        if state in FAILURE_STATES:
            has_failure = True
        elif state in PENDING_STATES:
            has_pending = True
        elif state == "SUCCESS":
            has_success = True

        if progress in PENDING_PROGRESS:
            has_pending = True

    if has_failure:
        return BuildStatus.FAILURE
    if has_error:
        return BuildStatus.ERROR
    if _upper(review_decision) == "CHANGES_REQUESTED":
        return BuildStatus.CHANGES_REQUESTED
    if has_pending:
        return BuildStatus.PENDING
    if inactivity_enabled and now - updated_at >= timedelta(days=inactivity_threshold_days):
        return BuildStatus.INACTIVE
    if has_success:
        return BuildStatus.SUCCESS
    if not checks:
        return empty_checks_status
    return BuildStatus.SUCCESS


def check_status(check: CheckSignal) -> CheckStatus:
    """Status of a single check: conclusion, then state, then progress."""
    conclusion = _upper(check.conclusion)
    if conclusion:
        if conclusion in FAILURE_CONCLUSIONS:
            return CheckStatus.FAILURE
        if conclusion in ERROR_CONCLUSIONS:
            return CheckStatus.ERROR
        if conclusion == "SUCCESS":
            return CheckStatus.SUCCESS
        if conclusion in SKIPPED_CONCLUSIONS:
            return CheckStatus.SKIPPED
        return CheckStatus.PENDING

    state = _upper(check.state)
    if state:
        if state in FAILURE_STATES:
            return CheckStatus.FAILURE
        if state == "SUCCESS":
            return CheckStatus.SUCCESS
        return CheckStatus.PENDING

    progress = _upper(check.status)
    if progress == "COMPLETED":
        # Completed without a conclusion
        return CheckStatus.SUCCESS
    return CheckStatus.PENDING


def summarize_checks(checks: Iterable[CheckSignal] | None) -> list[StatusCheck]:
    """Per-check summaries for display; entries without a name or context are dropped."""
    summaries = []
    for check in checks or []:
        name = check.display_name
        if not name:
            continue
        summaries.append(
            StatusCheck(
                id=check.check_id,
                name=name,
                status=check_status(check),
                details_url=check.details_url or check.target_url,
            )
        )
    return summaries
