"""prmonitor entry point.

Usage:
    prmonitor run                 poll and print the PR list on every refresh
    prmonitor once                refresh once, print, exit (1 on error)
    prmonitor watch OWNER/REPO#N  notify when that PR's build completes
    prmonitor unwatch OWNER/REPO#N
    prmonitor clear               stop watching everything
"""

import argparse
import logging
import sys
import threading
from pathlib import Path

from prmonitor.config import AppConfig, load_config
from prmonitor.logging import PRMonitorLogging
from prmonitor.models import BuildStatus, PullRequest
from prmonitor.poller import PollController, Snapshot
from prmonitor.services.github import GitHubService
from prmonitor.services.notifier import build_notifier
from prmonitor.services.shell import CommandRunner
from prmonitor.services.watchlist import WatchStore
from prmonitor.store import MemoryWatchlistBackend, WatchlistBackend, YamlWatchlistBackend

LOG = logging.getLogger("prmonitor.main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI with optional subcommand (run by default)."""
    parser = argparse.ArgumentParser(
        prog="prmonitor",
        description="Monitor build status of your GitHub pull requests via the gh CLI",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    parser.add_argument("--demo", action="store_true", help="Use sample data instead of calling gh")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="subcommand")
    run = sub.add_parser("run", help="Poll until interrupted")
    run.add_argument("--interval", type=int, default=None, help="Override polling.interval_seconds")
    sub.add_parser("once", help="Refresh once and print")
    watch = sub.add_parser("watch", help="Watch a PR (owner/repo#number)")
    watch.add_argument("pr_id")
    unwatch = sub.add_parser("unwatch", help="Stop watching a PR (owner/repo#number)")
    unwatch.add_argument("pr_id")
    sub.add_parser("clear", help="Stop watching all PRs")
    args = parser.parse_args(argv)
    args.subcommand = args.subcommand or "run"
    return args


def _backend(config: AppConfig) -> WatchlistBackend:
    if config.display.demo_mode:
        return MemoryWatchlistBackend()
    return YamlWatchlistBackend(Path(config.watchlist.path))


def build_controller(config: AppConfig) -> PollController:
    """Wire service, watch store and notifier from config."""
    runner = CommandRunner(config.gh.extra_paths, config.gh.timeout)
    service = GitHubService(
        runner=runner,
        config=config.gh,
        empty_checks_status=BuildStatus(config.display.empty_checks_status),
        demo_mode=config.display.demo_mode,
    )
    return PollController(
        service=service,
        watch_store=WatchStore(_backend(config)),
        notifier=build_notifier(config.notifications),
        inactivity=config.inactivity,
        sort_non_success_first=config.display.sort_non_success_first,
    )


def format_pull_request(pr: PullRequest) -> str:
    flags = []
    if pr.watched:
        flags.append("watched")
    if pr.is_draft:
        flags.append("draft")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    return f"{pr.status.icon} {pr.status.display_name:<17} {pr.id}  {pr.title}{suffix}"


def print_snapshot(snapshot: Snapshot) -> None:
    if snapshot.error_message:
        print(f"! {snapshot.error_message}")
    if not snapshot.available:
        return
    print(f"--- {len(snapshot.pull_requests)} open PRs ---")
    for pr in snapshot.pull_requests:
        print(format_pull_request(pr))


def _valid_pr_id(pr_id: str) -> bool:
    repo, sep, number = pr_id.rpartition("#")
    return bool(sep) and repo.count("/") == 1 and number.isdigit()


def run_once(controller: PollController) -> int:
    if not controller.check_availability():
        print_snapshot(controller.snapshot())
        return 1
    controller.run_cycle()
    snapshot = controller.snapshot()
    print_snapshot(snapshot)
    return 1 if snapshot.error_message else 0


def run_forever(controller: PollController, interval: int) -> None:
    controller.subscribe(print_snapshot)
    controller.start(interval)
    try:
        threading.Event().wait()
    finally:
        controller.stop()


def main(argv: list[str] | None = None) -> int:
    """Entry point: dispatch to subcommand."""
    args = parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            LOG.warning("config.yaml not found, using config.example.yaml")

    config = load_config(config_path)
    if args.demo:
        config.display.demo_mode = True

    if args.check:
        print("Config OK:", config.gh.command, f"interval={config.polling.interval_seconds}s")
        return 0

    PRMonitorLogging(config.logging, verbose=args.verbose).setup()

    if args.subcommand in ("watch", "unwatch"):
        if not _valid_pr_id(args.pr_id):
            print(f"Invalid PR id {args.pr_id!r}, expected owner/repo#number", file=sys.stderr)
            return 2
        store = WatchStore(_backend(config))
        if args.subcommand == "watch":
            store.watch(args.pr_id)
        else:
            store.unwatch(args.pr_id)
        return 0
    if args.subcommand == "clear":
        WatchStore(_backend(config)).clear()
        return 0

    controller = build_controller(config)
    if args.subcommand == "once":
        return run_once(controller)

    try:
        run_forever(controller, args.interval or config.polling.interval_seconds)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        LOG.exception("Fatal error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
