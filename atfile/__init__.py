"""atfile — workspace-constrained @{path} injection for prompts."""

__version__ = "0.1.0"
