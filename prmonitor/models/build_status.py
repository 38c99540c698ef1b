"""Overall build status of a pull request and per-check status."""

from enum import Enum


class BuildStatus(str, Enum):
    """Overall PR status, declared from highest to lowest priority."""

    CONFLICT = "conflict"
    FAILURE = "failure"
    ERROR = "error"
    CHANGES_REQUESTED = "changes_requested"
    PENDING = "pending"
    INACTIVE = "inactive"
    SUCCESS = "success"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def icon(self) -> str:
        return _ICONS[self]

    @property
    def priority(self) -> int:
        """0 is most urgent; unknown shares the rank of success."""
        if self is BuildStatus.UNKNOWN:
            return _ORDER.index(BuildStatus.SUCCESS)
        return _ORDER.index(self)

    @property
    def is_settled(self) -> bool:
        """Success, failure and error mean the checks have concluded."""
        return self in SETTLED_STATUSES

    @property
    def is_unsettled(self) -> bool:
        return self in (BuildStatus.PENDING, BuildStatus.UNKNOWN)

    @property
    def is_failing(self) -> bool:
        return self in (BuildStatus.FAILURE, BuildStatus.ERROR)


_ORDER = list(BuildStatus)

SETTLED_STATUSES = frozenset({BuildStatus.SUCCESS, BuildStatus.FAILURE, BuildStatus.ERROR})

_DISPLAY_NAMES = {
    BuildStatus.CONFLICT: "Merge Conflict",
    BuildStatus.FAILURE: "Failed",
    BuildStatus.ERROR: "Error",
    BuildStatus.CHANGES_REQUESTED: "Changes Requested",
    BuildStatus.PENDING: "Pending",
    BuildStatus.INACTIVE: "Inactive",
    BuildStatus.SUCCESS: "Success",
    BuildStatus.UNKNOWN: "Unknown",
}

_ICONS = {
    BuildStatus.CONFLICT: "❗",
    BuildStatus.FAILURE: "❌",
    BuildStatus.ERROR: "⚠️",
    BuildStatus.CHANGES_REQUESTED: "📝",
    BuildStatus.PENDING: "🔄",
    BuildStatus.INACTIVE: "⏳",
    BuildStatus.SUCCESS: "✅",
    BuildStatus.UNKNOWN: "❓",
}


class CheckStatus(str, Enum):
    """Status of a single check in the rollup."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    SKIPPED = "skipped"
