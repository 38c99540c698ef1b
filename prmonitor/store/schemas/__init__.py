"""Schemas for the watchlist YAML file."""

from prmonitor.store.schemas.watch_record import WatchRecord
from prmonitor.store.schemas.watchlist_file import SCHEMA_VERSION, WatchlistFile

__all__ = ["SCHEMA_VERSION", "WatchRecord", "WatchlistFile"]
