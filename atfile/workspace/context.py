"""Workspace directory set and containment checks.

A workspace is an ordered list of root directories. The first one is the
primary directory: relative paths are looked up there first, and relative
candidates passed to the containment check are interpreted against it.
Containment is checked against the whole set, after resolving symlinks,
so ``..`` segments and links that escape a root are rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class WorkspaceProvider(Protocol):
    """Read-only view of the workspace roots used by the path reader."""

    def get_directories(self) -> list[str]: ...

    def is_path_within_workspace(self, path: str) -> bool: ...


class WorkspaceContext:
    """Ordered, de-duplicated set of absolute workspace directories."""

    def __init__(
        self,
        directory: str | Path,
        additional_directories: Iterable[str | Path] = (),
    ) -> None:
        primary = Path(directory).expanduser().resolve()
        if not primary.is_dir():
            raise ValueError(f"Workspace directory does not exist: {primary}")

        self._directories: list[Path] = [primary]
        for extra in additional_directories:
            self.add_directory(extra)

    def add_directory(self, directory: str | Path) -> None:
        """Append a root directory, skipping missing or duplicate entries."""
        resolved = Path(directory).expanduser()
        if not resolved.is_absolute():
            resolved = self._directories[0] / resolved
        resolved = resolved.resolve()

        if not resolved.is_dir():
            logger.warning("Skipping workspace directory that does not exist: %s", resolved)
            return
        if resolved in self._directories:
            return
        self._directories.append(resolved)

    @property
    def primary_directory(self) -> str:
        return str(self._directories[0])

    def get_directories(self) -> list[str]:
        """Return the roots in priority order (primary first)."""
        return [str(d) for d in self._directories]

    def is_path_within_workspace(self, path: str | Path) -> bool:
        """Check whether ``path`` resolves inside any workspace directory.

        Comparison is by path segments, so ``/work/app-other`` is not inside
        ``/work/app``. Never raises; unresolvable paths are reported as
        outside the workspace.
        """
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self._directories[0] / candidate

        try:
            resolved = candidate.resolve()
        except (OSError, RuntimeError, ValueError) as e:
            logger.debug("Could not resolve %s: %s", candidate, e)
            return False

        return any(resolved.is_relative_to(root) for root in self._directories)

    def __repr__(self) -> str:
        return f"WorkspaceContext(directories={self.get_directories()!r})"
