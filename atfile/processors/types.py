"""Shared types for prompt processors.

A processor receives the prompt text plus a CommandContext holding the
services it may need: the config service (which knows the workspace) and
the UI sink used to report problems back to the user.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Protocol

from atfile.events import HistoryItem, UIMessageHistory
from atfile.workspace.context import WorkspaceProvider

# Opens a file injection; a balanced '}' closes it.
AT_FILE_INJECTION_TRIGGER = "@{"


class WorkspaceConfig(Protocol):
    """Config service that knows the current workspace."""

    def get_workspace_context(self) -> WorkspaceProvider: ...


class UISink(Protocol):
    """Receives user-facing messages with an ordering token."""

    def add_item(self, item: HistoryItem, timestamp: int) -> None: ...


@dataclass
class CommandServices:
    config: WorkspaceConfig | None = None


@dataclass
class CommandContext:
    """Everything a processor may consult while rewriting a prompt."""

    services: CommandServices = field(default_factory=CommandServices)
    ui: UISink = field(default_factory=UIMessageHistory)


class PromptProcessor(ABC):
    """Rewrites a prompt before it is sent to the model."""

    @abstractmethod
    async def process(self, prompt: str, context: CommandContext) -> str:
        """Return the processed prompt."""
