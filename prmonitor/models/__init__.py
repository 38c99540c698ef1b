"""Data models for pull requests, checks and statuses (Pydantic)."""

from prmonitor.models.build_status import SETTLED_STATUSES, BuildStatus, CheckStatus
from prmonitor.models.check import CheckSignal, ItemDetail, StatusCheck
from prmonitor.models.pull_request import Label, PRCategory, PullRequest, RepositoryInfo, make_pr_id

__all__ = [
    "SETTLED_STATUSES",
    "BuildStatus",
    "CheckSignal",
    "CheckStatus",
    "ItemDetail",
    "Label",
    "PRCategory",
    "PullRequest",
    "RepositoryInfo",
    "StatusCheck",
    "make_pr_id",
]
