"""Tests for CommandRunner (subprocess mapping to typed errors)."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from prmonitor.errors import CommandTimeout, ExecutionFailed, NetworkUnreachable, ToolNotFound
from prmonitor.services.shell import CommandRunner, is_network_error


@pytest.mark.parametrize(
    "message",
    [
        "error connecting to api.github.com",
        "Could not resolve host: github.com",
        "dial tcp 140.82.112.6:443: connect: network is unreachable",
        "lookup api.github.com: no such host",
        "Post https://api.github.com/graphql: i/o timeout",
        "Failed to connect to github.com port 443",
    ],
)
def test_is_network_error_matches_known_messages(message: str) -> None:
    assert is_network_error(message)


def test_is_network_error_ignores_other_failures() -> None:
    assert not is_network_error("GraphQL: Could not resolve to a PullRequest with the number of 5")
    assert not is_network_error("")


def test_run_returns_trimmed_stdout() -> None:
    """Stdout is returned without surrounding whitespace; PATH gets extra dirs."""
    result = MagicMock(stdout="  [1, 2]\n", stderr="")
    runner = CommandRunner(extra_paths=["/opt/homebrew/bin"])
    with patch("prmonitor.services.shell.subprocess.run", return_value=result) as run:
        assert runner.run("gh", ["search", "prs"], timeout=5) == "[1, 2]"
    cmd = run.call_args[0][0]
    kwargs = run.call_args[1]
    assert cmd == ["gh", "search", "prs"]
    assert kwargs["timeout"] == 5
    assert kwargs["env"]["PATH"].startswith("/opt/homebrew/bin")


def test_run_uses_default_timeout() -> None:
    result = MagicMock(stdout="ok", stderr="")
    runner = CommandRunner(default_timeout=12)
    with patch("prmonitor.services.shell.subprocess.run", return_value=result) as run:
        runner.run("gh", ["--version"])
    assert run.call_args[1]["timeout"] == 12


def test_missing_executable_raises_tool_not_found() -> None:
    with patch("prmonitor.services.shell.subprocess.run", side_effect=FileNotFoundError("gh")):
        with pytest.raises(ToolNotFound):
            CommandRunner().run("gh", ["--version"])


def test_timeout_raises_command_timeout() -> None:
    """A timeout is its own error kind, not a generic failure."""
    with patch(
        "prmonitor.services.shell.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd=["gh"], timeout=30),
    ):
        with pytest.raises(CommandTimeout, match="timed out"):
            CommandRunner().run("gh", ["search", "prs"], timeout=30)


def test_network_failure_is_reclassified() -> None:
    err = subprocess.CalledProcessError(1, ["gh"], output="", stderr="error connecting to api.github.com\n")
    with patch("prmonitor.services.shell.subprocess.run", side_effect=err):
        with pytest.raises(NetworkUnreachable, match="error connecting"):
            CommandRunner().run("gh", ["search", "prs"])


def test_other_failure_raises_execution_failed() -> None:
    err = subprocess.CalledProcessError(1, ["gh"], output="", stderr="HTTP 422: Validation Failed")
    with patch("prmonitor.services.shell.subprocess.run", side_effect=err):
        with pytest.raises(ExecutionFailed, match="422"):
            CommandRunner().run("gh", ["search", "prs"])
