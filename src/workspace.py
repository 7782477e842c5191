"""Project-root discovery and per-process service wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from hexo_buddy.config import HexoBuddyConfig
from hexo_buddy.deploy import DeployPipeline
from hexo_buddy.logbook import LogBook
from hexo_buddy.posts import PostIndex
from hexo_buddy.progress import ProgressChannel
from hexo_buddy.runner import CommandRunner
from hexo_buddy.site_config import CONFIG_FILENAME, SiteConfigStore
from hexo_buddy.themes import ThemeRegistry

logger = logging.getLogger(__name__)


def find_project_root(start: Path) -> Path | None:
    """Return the nearest directory at or above ``start`` holding ``_config.yml``.

    Falls back to ``start`` itself when no ancestor has a site config, and
    returns None when ``start`` is not an existing directory.
    """
    start = Path(start).expanduser().resolve()
    if not start.is_dir():
        return None
    for candidate in (start, *start.parents):
        if (candidate / CONFIG_FILENAME).is_file():
            return candidate
    return start


@dataclass
class Workspace:
    """The services of one Hexo project, sharing a single log book."""

    root: Path | None
    command: tuple[str, ...] = ("npx", "hexo")
    log: LogBook = field(default_factory=LogBook)
    channel: ProgressChannel = field(default_factory=ProgressChannel)

    def __post_init__(self) -> None:
        base = self.root if self.root is not None else Path(".")
        self.config = SiteConfigStore(base)
        self.posts = PostIndex(base)
        self.themes = ThemeRegistry(base, self.config)
        self.runner = CommandRunner(self.root, self.command)
        self.pipeline = DeployPipeline(self.runner, self.log, self.channel)

    @classmethod
    def from_config(cls, config: HexoBuddyConfig) -> Workspace:
        root = find_project_root(config.root_path)
        if root is None:
            logger.warning("Project root %s does not exist", config.root_path)
        return cls(root=root, command=tuple(config.hexo.command))
