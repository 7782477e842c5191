"""Installed themes and the active theme of a Hexo project."""

from __future__ import annotations

import logging
from pathlib import Path

from hexo_buddy.site_config import SiteConfigStore

logger = logging.getLogger(__name__)

THEMES_DIR = "themes"
DEFAULT_THEME = "landscape"
NO_CONFIG_THEME = "unknown"


class ThemeRegistry:
    """Reads the ``theme`` key of the site config and the ``themes/`` folder."""

    def __init__(self, root: Path, store: SiteConfigStore | None = None) -> None:
        self._root = Path(root)
        self._store = store or SiteConfigStore(self._root)

    @property
    def themes_dir(self) -> Path:
        return self._root / THEMES_DIR

    def current_theme(self) -> str:
        """Return the configured theme.

        ``"unknown"`` when there is no site config at all, ``"landscape"``
        (Hexo's default) when the config sets no theme.
        """
        config = self._store.read()
        if config is None:
            return NO_CONFIG_THEME
        return str(config.get("theme") or DEFAULT_THEME)

    def installed_themes(self) -> list[str]:
        """Return the names of the subdirectories under ``themes/``, sorted."""
        folder = self.themes_dir
        if not folder.is_dir():
            return []
        return sorted(p.name for p in folder.iterdir() if p.is_dir())

    def switch_theme(self, name: str) -> bool:
        """Make ``name`` the active theme in the site config.

        The switch is written even when no such theme is installed.

        Returns:
            True if ``name`` is one of the installed themes.
        """
        installed = name in self.installed_themes()
        if not installed:
            logger.debug("Theme %r is not installed under %s", name, self.themes_dir)
        self._store.write({"theme": name})
        return installed
