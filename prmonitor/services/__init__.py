"""Services: gh runner, parsing, classification, fetching, watchlist, notifications."""

from prmonitor.services.classifier import check_status, classify, summarize_checks
from prmonitor.services.github import GitHubService
from prmonitor.services.notifier import Notifier, build_notifier
from prmonitor.services.parser import parse_detail, parse_items, parse_timestamp
from prmonitor.services.shell import CommandRunner, is_network_error
from prmonitor.services.watchlist import WatchStore, is_completion

__all__ = [
    "CommandRunner",
    "GitHubService",
    "Notifier",
    "WatchStore",
    "build_notifier",
    "check_status",
    "classify",
    "is_completion",
    "is_network_error",
    "parse_detail",
    "parse_items",
    "parse_timestamp",
    "summarize_checks",
]
