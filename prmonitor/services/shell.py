"""Run external commands (gh) and map failures to typed errors.

The runner holds no mutable state, so both fetch pipelines may call it from
different threads at the same time.
"""

import logging
import os
import subprocess
from typing import Sequence

from prmonitor.errors import CommandTimeout, ExecutionFailed, NetworkUnreachable, ToolNotFound

LOG = logging.getLogger("prmonitor.services.shell")

DEFAULT_TIMEOUT = 30

# Substrings gh (and Go's net package) print when GitHub cannot be reached
NETWORK_ERROR_PATTERNS = (
    "error connecting",
    "could not resolve host",
    "network is unreachable",
    "dial tcp",
    "no such host",
    "connection refused",
    "i/o timeout",
    "unable to connect",
    "failed to connect",
)


def is_network_error(message: str) -> bool:
    """Return True when a failure message looks like a connectivity problem."""
    lowered = (message or "").lower()
    return any(pattern in lowered for pattern in NETWORK_ERROR_PATTERNS)


def _build_env(extra_paths: Sequence[str]) -> dict[str, str]:
    env = os.environ.copy()
    existing = env.get("PATH") or "/usr/bin:/bin:/usr/sbin:/sbin"
    env["PATH"] = os.pathsep.join([*extra_paths, existing])
    return env


class CommandRunner:
    """Run a command and return its trimmed stdout."""

    def __init__(self, extra_paths: Sequence[str] = (), default_timeout: float = DEFAULT_TIMEOUT) -> None:
        self.extra_paths = list(extra_paths)
        self.default_timeout = default_timeout

    def run(self, command: str, args: Sequence[str] = (), timeout: float | None = None) -> str:
        """Run command with args.

        Raises:
            ToolNotFound: The executable could not be started.
            CommandTimeout: The command ran longer than timeout seconds.
            NetworkUnreachable: Non-zero exit with a connectivity error message.
            ExecutionFailed: Any other non-zero exit.
        """
        timeout = timeout if timeout is not None else self.default_timeout
        cmd = [command, *args]
        LOG.debug("Running %s (timeout=%ss)", " ".join(cmd), timeout)
        try:
            result = subprocess.run(
                cmd,
                env=_build_env(self.extra_paths),
                timeout=timeout,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise ToolNotFound(f"{command} not found") from e
        except subprocess.TimeoutExpired as e:
            raise CommandTimeout(f"{command} {' '.join(args)} timed out after {timeout} seconds") from e
        except subprocess.CalledProcessError as e:
            err = (e.stderr or e.stdout or "").strip() or f"exit status {e.returncode}"
            if is_network_error(err):
                LOG.warning("%s: network unreachable: %s", command, err)
                raise NetworkUnreachable(err) from e
            LOG.warning("%s %s failed: %s", command, args, err)
            raise ExecutionFailed(err) from e
        return (result.stdout or "").strip()
