"""Read a file or directory listing from inside the workspace.

Absolute paths must already lie inside one of the workspace directories.
Relative paths are searched across the directories in priority order and
the first directory that contains the path wins. Directories produce a
one-level listing; anything else is read as UTF-8 text.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from atfile.errors import IOFailure, NotFoundError, OutOfBoundsError
from atfile.workspace.context import WorkspaceProvider

logger = logging.getLogger(__name__)


async def read_path_from_workspace(path_str: str, workspace: WorkspaceProvider) -> str:
    """Resolve ``path_str`` against the workspace and return its content.

    Args:
        path_str: Absolute or relative path as written by the user.
        workspace: Provider of the ordered workspace directories.

    Returns:
        The file's text, or ``Directory listing for <path_str>:`` followed
        by one ``- <entry>`` line per immediate child.

    Raises:
        OutOfBoundsError: An absolute path is outside every directory.
        NotFoundError: The path does not exist in the workspace.
        IOFailure: The filesystem refused the stat, listing, or read.
    """
    if os.path.isabs(path_str):
        if not workspace.is_path_within_workspace(path_str):
            raise OutOfBoundsError(
                f"Absolute path is outside of the allowed workspace: {path_str}",
                path=path_str,
            )
        absolute_path = Path(path_str)
        await asyncio.to_thread(_stat_absolute, absolute_path, path_str)
    else:
        absolute_path = await _search_directories(path_str, workspace)

    return await asyncio.to_thread(_read_target, absolute_path, path_str)


async def _search_directories(path_str: str, workspace: WorkspaceProvider) -> Path:
    """Return the first existing candidate for a relative path."""
    escaped: list[str] = []

    for directory in workspace.get_directories():
        candidate = Path(os.path.normpath(os.path.join(directory, path_str)))
        if not await asyncio.to_thread(_exists, candidate):
            continue
        if not workspace.is_path_within_workspace(str(candidate)):
            escaped.append(str(candidate))
            continue
        return candidate

    if escaped:
        raise OutOfBoundsError(
            f"Path resolves outside of the allowed workspace: {path_str}",
            path=path_str,
        )
    raise NotFoundError(f"Path not found in workspace: {path_str}", path=path_str)


def _stat_absolute(absolute_path: Path, path_str: str) -> None:
    try:
        absolute_path.stat()
    except (FileNotFoundError, NotADirectoryError) as e:
        raise NotFoundError(f"Path not found in workspace: {path_str}", path=path_str) from e
    except (OSError, ValueError) as e:
        raise IOFailure(str(e), path=path_str) from e


def _exists(path: Path) -> bool:
    # Any failure here means "not found at this directory", including
    # permission errors and paths the OS rejects outright.
    try:
        path.stat()
    except (OSError, ValueError) as e:
        logger.debug("Existence check failed for %s: %s", path, e)
        return False
    return True


def _read_target(absolute_path: Path, path_str: str) -> str:
    try:
        if absolute_path.is_dir():
            entries = os.listdir(absolute_path)
            return f"Directory listing for {path_str}:\n- " + "\n- ".join(entries)
        return absolute_path.read_text(encoding="utf-8")
    except (OSError, ValueError) as e:
        raise IOFailure(str(e), path=path_str) from e
