"""Watchlist persistence (.prmonitor/watchlist.yaml)."""

from prmonitor.store.schemas import SCHEMA_VERSION, WatchlistFile, WatchRecord
from prmonitor.store.watchlist_store import (
    MemoryWatchlistBackend,
    WatchlistBackend,
    WatchState,
    YamlWatchlistBackend,
    load_watchlist,
    save_watchlist,
)

__all__ = [
    "SCHEMA_VERSION",
    "MemoryWatchlistBackend",
    "WatchRecord",
    "WatchState",
    "WatchlistBackend",
    "WatchlistFile",
    "YamlWatchlistBackend",
    "load_watchlist",
    "save_watchlist",
]
