"""prmonitor: watch GitHub pull requests and their build status via the gh CLI."""

__version__ = "0.1.0"
