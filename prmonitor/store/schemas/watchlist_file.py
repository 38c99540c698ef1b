"""Watchlist as stored in .prmonitor/watchlist.yaml."""

from pydantic import BaseModel, Field

from prmonitor.store.schemas.watch_record import WatchRecord

SCHEMA_VERSION = 1


class WatchlistFile(BaseModel):
    """Versioned mapping of PR id (owner/repo#42) to its watch record."""

    version: int = Field(default=SCHEMA_VERSION, description="Schema version")
    watched: dict[str, WatchRecord] = Field(default_factory=dict, description="Watched PRs by id")

    model_config = {"extra": "forbid"}
