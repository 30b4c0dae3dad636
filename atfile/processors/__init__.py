"""Prompt processors.

Rewrite prompt text before it is sent to a model. The @{path} processor
injects file contents and directory listings from the workspace.
"""

from atfile.processors.at_file import AtFileProcessor
from atfile.processors.scanner import extract_injections
from atfile.processors.types import (
    AT_FILE_INJECTION_TRIGGER,
    CommandContext,
    CommandServices,
    PromptProcessor,
    UISink,
    WorkspaceConfig,
)

__all__ = [
    "AT_FILE_INJECTION_TRIGGER",
    "AtFileProcessor",
    "CommandContext",
    "CommandServices",
    "PromptProcessor",
    "UISink",
    "WorkspaceConfig",
    "extract_injections",
]
