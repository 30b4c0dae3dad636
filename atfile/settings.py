"""Settings model and TOML configuration loader.

Loads workspace settings from the ``[workspace]`` table of a TOML file
(``atfile/config/defaults.toml`` unless another file is given) and applies
environment overrides. Settings double as the config service handed to
prompt processors: they know how to build the WorkspaceContext.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from atfile.errors import ConfigError
from atfile.workspace.context import WorkspaceContext

logger = logging.getLogger(__name__)

# Default config directory relative to the atfile package
_CONFIG_DIR = Path(__file__).parent / "config"

ENV_DIRECTORIES = "ATFILE_DIRECTORIES"
ENV_LOG_LEVEL = "ATFILE_LOG_LEVEL"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseModel):
    """Effective configuration for prompt expansion."""

    directories: list[str] = Field(
        default_factory=lambda: ["."],
        min_length=1,
        description="Workspace roots in priority order; the first is primary",
    )
    concurrent: bool = Field(
        default=False, description="Resolve placeholders concurrently"
    )
    log_level: LogLevel = Field(
        default="WARNING", description="Log level used by the CLI"
    )
    base_dir: str = Field(
        default_factory=os.getcwd,
        description="Directory that relative workspace roots are resolved against",
    )

    def get_workspace_context(self) -> WorkspaceContext:
        """Build the workspace from the configured directories.

        Raises:
            ValueError: If the primary directory does not exist.
        """
        base = Path(self.base_dir)
        roots = [base / Path(d).expanduser() for d in self.directories]
        return WorkspaceContext(roots[0], roots[1:])


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from a TOML file and the environment.

    Args:
        config_path: Path to a TOML file. Defaults to atfile/config/defaults.toml,
            whose relative directories resolve against the current directory.

    Returns:
        Validated Settings.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigError: If the TOML is malformed or holds invalid values.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    section = raw.get("workspace", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[workspace] in {path} must be a table")

    values = dict(section)
    values["base_dir"] = (
        str(Path(path).resolve().parent) if config_path else os.getcwd()
    )

    env_dirs = os.environ.get(ENV_DIRECTORIES)
    if env_dirs:
        values["directories"] = [d for d in env_dirs.split(os.pathsep) if d]
        values["base_dir"] = os.getcwd()
    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        values["log_level"] = env_level.upper()

    try:
        settings = Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.debug("Loaded settings from %s: %s", path, settings)
    return settings
