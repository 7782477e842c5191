"""Tool settings loaded from .hexo-buddy.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.

These settings describe how hexo-buddy runs (which project, which command).
The site's own configuration lives in ``_config.yml``; see
:mod:`hexo_buddy.site_config`.
"""

from __future__ import annotations

import logging
import os
import shlex
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".hexo-buddy.toml"
GLOBAL_CONFIG = Path.home() / ".config" / "hexo-buddy" / "config.toml"


class ProjectSection(BaseModel):
    """[project] section."""

    root: str = "."


class HexoSection(BaseModel):
    """[hexo] section."""

    command: list[str] = Field(default_factory=lambda: ["npx", "hexo"])


class DeploySection(BaseModel):
    """[deploy] section."""

    save_report: bool = True


class HexoBuddyConfig(BaseModel):
    """Top-level tool configuration."""

    project: ProjectSection = Field(default_factory=ProjectSection)
    hexo: HexoSection = Field(default_factory=HexoSection)
    deploy: DeploySection = Field(default_factory=DeploySection)

    @property
    def root_path(self) -> Path:
        return Path(self.project.root).expanduser().resolve()


def load_config(path: str | Path | None = None) -> HexoBuddyConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .hexo-buddy.toml in CWD
    3. ~/.config/hexo-buddy/config.toml

    Then overlay environment variables.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for candidate in (Path(".") / CONFIG_FILENAME, GLOBAL_CONFIG):
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break

    config = HexoBuddyConfig.model_validate(data) if data else HexoBuddyConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: HexoBuddyConfig, **cli_kwargs: object) -> HexoBuddyConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only values that are not None are applied.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "root": ("project", "root"),
        "command": ("hexo", "command"),
        "save_report": ("deploy", "save_report"),
    }

    for key, value in cli_kwargs.items():
        if value is None or key not in mapping:
            continue
        section, field = mapping[key]
        if key == "root":
            value = str(value)
        elif key == "command" and isinstance(value, str):
            value = shlex.split(value)
        data[section][field] = value

    return HexoBuddyConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: HexoBuddyConfig) -> HexoBuddyConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    root = os.environ.get("HEXO_BUDDY_ROOT")
    if root is not None:
        data["project"]["root"] = root

    command = os.environ.get("HEXO_BUDDY_COMMAND")
    if command is not None:
        data["hexo"]["command"] = shlex.split(command)

    save_raw = os.environ.get("HEXO_BUDDY_SAVE_REPORT")
    if save_raw is not None:
        data["deploy"]["save_report"] = save_raw.lower() in ("true", "1", "yes")

    return HexoBuddyConfig.model_validate(data)
