"""Watchlist storage as a single YAML file.

The file holds {version, watched: {pr_id: {status, timestamp}}}. Entries that
no longer validate (e.g. a status that was renamed) are skipped on load.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import yaml
from pydantic import ValidationError

from prmonitor.store.schemas import SCHEMA_VERSION, WatchlistFile, WatchRecord

LOG = logging.getLogger("prmonitor.store.watchlist_store")

WatchState = dict[str, WatchRecord]


def load_watchlist(path: Path) -> WatchState:
    """Load watched PRs from path.

    Returns an empty state if the file is missing or unreadable.
    """
    path = Path(path)
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        LOG.warning("Failed to load watchlist %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    version = data.get("version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        LOG.warning("Watchlist %s has schema version %s, expected %s", path, version, SCHEMA_VERSION)
    state: WatchState = {}
    for pr_id, raw in (data.get("watched") or {}).items():
        try:
            state[str(pr_id)] = WatchRecord.model_validate(raw)
        except ValidationError as e:
            LOG.warning("Skipping invalid watchlist entry %s: %s", pr_id, e)
    return state


def save_watchlist(path: Path, state: WatchState) -> Path:
    """Write watched PRs to path. Creates parent dir if needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = WatchlistFile(watched=state).model_dump(mode="json")
    raw = yaml.dump(
        payload,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=1000,
    )
    path.write_text(raw, encoding="utf-8")
    LOG.debug("Saved %d watched PRs to %s", len(state), path)
    return path


class WatchlistBackend(ABC):
    """Persistence used by the watch store."""

    @abstractmethod
    def load(self) -> WatchState: ...

    @abstractmethod
    def save(self, state: WatchState) -> None: ...


class YamlWatchlistBackend(WatchlistBackend):
    """Watchlist kept in a YAML file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> WatchState:
        return load_watchlist(self.path)

    def save(self, state: WatchState) -> None:
        save_watchlist(self.path, state)


class MemoryWatchlistBackend(WatchlistBackend):
    """Watchlist kept in memory (demo mode and tests)."""

    def __init__(self, state: WatchState | None = None) -> None:
        self.state: WatchState = dict(state or {})
        self.save_count = 0

    def load(self) -> WatchState:
        return dict(self.state)

    def save(self, state: WatchState) -> None:
        self.state = dict(state)
        self.save_count += 1
