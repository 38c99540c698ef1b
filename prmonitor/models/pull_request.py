"""Pull request as shown in the monitor."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from prmonitor.models.build_status import BuildStatus
from prmonitor.models.check import StatusCheck


def make_pr_id(repo_full_name: str, number: int) -> str:
    """Key used everywhere for a PR, e.g. owner/repo#42."""
    return f"{repo_full_name}#{number}"


class PRCategory(str, Enum):
    """Why the PR is listed."""

    AUTHORED = "authored"
    REVIEW_REQUESTED = "review_requested"


class Label(BaseModel):
    id: str
    name: str
    color: str = ""


class RepositoryInfo(BaseModel):
    name: str
    name_with_owner: str = Field(alias="nameWithOwner")

    model_config = {"populate_by_name": True}

    @property
    def owner(self) -> str:
        return self.name_with_owner.split("/")[0]


class PullRequest(BaseModel):
    """Open pull request with its classified status.

    Rebuilt from gh output on every refresh; only status and watched are
    overlaid before publishing.
    """

    number: int
    title: str
    repository: RepositoryInfo
    url: str
    author: str
    head_ref_name: str = ""
    updated_at: datetime
    labels: list[Label] = Field(default_factory=list)
    category: PRCategory
    is_draft: bool = False
    status: BuildStatus = BuildStatus.UNKNOWN
    watched: bool = False
    checks: list[StatusCheck] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return make_pr_id(self.repository.name_with_owner, self.number)
