"""Raw check rollup entries and the per-PR detail returned by gh pr view."""

from pydantic import BaseModel, Field, field_validator

from prmonitor.models.build_status import CheckStatus


class CheckSignal(BaseModel):
    """One statusCheckRollup entry: a CheckRun (name) or a StatusContext (context)."""

    name: str | None = None
    context: str | None = None
    status: str | None = None
    state: str | None = None
    conclusion: str | None = None
    kind: str = Field(default="", alias="__typename")
    details_url: str | None = Field(default=None, alias="detailsUrl")
    target_url: str | None = Field(default=None, alias="targetUrl")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def display_name(self) -> str | None:
        return self.name or self.context

    @property
    def check_id(self) -> str:
        """Stable id: the kind disambiguates a run and a context sharing a name."""
        return f"{self.kind}-{self.display_name}"


class StatusCheck(BaseModel):
    """Summarized check kept on a pull request for display."""

    id: str
    name: str
    status: CheckStatus
    details_url: str | None = None


class ItemDetail(BaseModel):
    """Fields of gh pr view --json headRefName,statusCheckRollup,mergeable,mergeStateStatus,reviewDecision."""

    head_ref_name: str = Field(alias="headRefName")
    checks: list[CheckSignal] = Field(default_factory=list, alias="statusCheckRollup")
    mergeable: str | None = None
    merge_state_status: str | None = Field(default=None, alias="mergeStateStatus")
    review_decision: str | None = Field(default=None, alias="reviewDecision")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("checks", mode="before")
    @classmethod
    def _null_rollup(cls, value: object) -> object:
        return [] if value is None else value
