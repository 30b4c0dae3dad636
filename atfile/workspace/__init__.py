"""Workspace roots and the path reader that is confined to them."""

from atfile.workspace.context import WorkspaceContext, WorkspaceProvider
from atfile.workspace.reader import read_path_from_workspace

__all__ = [
    "WorkspaceContext",
    "WorkspaceProvider",
    "read_path_from_workspace",
]
