"""Error taxonomy for gh invocation, parsing and fetching.

ToolNotFound and ToolNotAuthenticated make the monitor unavailable until it is
restarted; everything else is transient and retried on the next tick.
"""


class PRMonitorError(Exception):
    """Base for every failure raised while fetching pull requests."""

    makes_unavailable = False

    @property
    def user_message(self) -> str:
        return str(self) or self.__class__.__name__


class ToolNotFound(PRMonitorError):
    """Raised when the gh executable cannot be started."""

    makes_unavailable = True

    @property
    def user_message(self) -> str:
        return "GitHub CLI (gh) is not installed. Please install it from https://cli.github.com"


class ToolNotAuthenticated(PRMonitorError):
    """Raised when gh is installed but not logged in."""

    makes_unavailable = True

    @property
    def user_message(self) -> str:
        return "GitHub CLI is not authenticated. Please run 'gh auth login' in a terminal."


class NetworkUnreachable(PRMonitorError):
    """Raised when a gh call failed because GitHub could not be reached."""

    @property
    def user_message(self) -> str:
        return "Network connection unavailable. Please check your internet connection."


class ExecutionFailed(PRMonitorError):
    """Raised when gh exits with a non-zero status."""

    @property
    def user_message(self) -> str:
        return f"Command failed: {self}"


class CommandTimeout(PRMonitorError):
    """Raised when a gh call exceeds its timeout."""

    @property
    def user_message(self) -> str:
        return f"Command timed out: {self}"


class ParseError(PRMonitorError):
    """Raised when gh output is not the expected JSON shape."""

    @property
    def user_message(self) -> str:
        return "Failed to parse GitHub data. Please try again."
