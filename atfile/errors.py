"""Error types raised while reading paths from the workspace.

Every resolver failure derives from WorkspaceReadError so that callers
can absorb them at a single boundary. The message is the user-facing
text; the offending path is kept alongside it for diagnostics.
"""

from __future__ import annotations


class WorkspaceReadError(Exception):
    """Base error for a path that could not be turned into content."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        return self.message


class OutOfBoundsError(WorkspaceReadError):
    """An absolute path lies outside every workspace directory."""


class NotFoundError(WorkspaceReadError):
    """The path does not exist under any workspace directory."""


class IOFailure(WorkspaceReadError):
    """The filesystem refused a stat, listing, or read."""


class ConfigError(ValueError):
    """The configuration file is malformed or holds invalid values."""
