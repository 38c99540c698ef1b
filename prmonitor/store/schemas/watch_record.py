"""Watched PR entry as stored in the watchlist file."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field

from prmonitor.models import BuildStatus


def _ensure_unix_ts(value: int | float | str | None) -> int | None:
    """Coerce ISO date string or number to Unix timestamp (int)."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


class WatchRecord(BaseModel):
    """Last observed status of a watched PR."""

    status: BuildStatus = Field(..., description="Status seen on the last refresh")
    timestamp: Annotated[int, BeforeValidator(_ensure_unix_ts)] = Field(
        ...,
        description="Unix timestamp when that status was first observed",
    )

    model_config = {"extra": "ignore"}
