"""Shared fixtures: pull request factory."""

from datetime import UTC, datetime
from typing import Callable

import pytest

from prmonitor.models import BuildStatus, PRCategory, PullRequest, RepositoryInfo

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _make_pr(
    number: int = 1,
    repo: str = "owner/repo",
    status: BuildStatus = BuildStatus.SUCCESS,
    category: PRCategory = PRCategory.AUTHORED,
    title: str | None = None,
    **kwargs,
) -> PullRequest:
    return PullRequest(
        number=number,
        title=title or f"PR {number}",
        repository=RepositoryInfo(name=repo.split("/")[-1], name_with_owner=repo),
        url=f"https://github.com/{repo}/pull/{number}",
        author="octocat",
        updated_at=kwargs.pop("updated_at", NOW),
        category=category,
        status=status,
        **kwargs,
    )


@pytest.fixture
def make_pr() -> Callable[..., PullRequest]:
    return _make_pr
