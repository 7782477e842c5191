"""Read and merge-write the Hexo site configuration (``_config.yml``)."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import JsonValue, TypeAdapter, ValidationError

from hexo_buddy.errors import ConfigReadError, ConfigValueError, ConfigWriteError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "_config.yml"
LANGUAGE_KEY = "pluginLanguage"
SUPPORTED_LANGUAGES = ("zh-CN", "en-US")

# Values written through the store: str, int, float, bool, None, and lists or
# string-keyed mappings of those.
ConfigValue = JsonValue
_partial_adapter: TypeAdapter[dict[str, JsonValue]] = TypeAdapter(dict[str, JsonValue])


def _atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` via a temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class SiteConfigStore:
    """Owns ``<root>/_config.yml``.

    Writes are shallow merges: keys in the update overwrite, every other key
    keeps its value, and nothing is ever deleted. There is no locking, so
    concurrent writers race and the last one wins.
    """

    def __init__(
        self,
        root: Path,
        on_saved: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self._root = Path(root)
        self._on_saved = on_saved

    @property
    def path(self) -> Path:
        return self._root / CONFIG_FILENAME

    def read(self) -> dict[str, Any] | None:
        """Return the configuration document, or None if the file is absent.

        Raises:
            ConfigReadError: The file exists but is unreadable, is not valid
                YAML, or does not hold a mapping.
        """
        path = self.path
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigReadError(f"Cannot read {path}: {exc}") from exc
        try:
            data = yaml.safe_load(text)
        except (yaml.YAMLError, ValueError) as exc:
            raise ConfigReadError(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigReadError(
                f"{path} must contain a mapping, got {type(data).__name__}"
            )
        return data

    def get(self, key: str, default: Any = None) -> Any:
        data = self.read()
        if not data:
            return default
        return data.get(key, default)

    def write(self, partial: Mapping[str, ConfigValue]) -> dict[str, Any]:
        """Merge ``partial`` over the current document and persist it.

        Returns:
            The merged document as written.

        Raises:
            ConfigValueError: ``partial`` holds a value that is not a plain
                scalar, list, or string-keyed mapping.
            ConfigReadError: The existing document cannot be read.
            ConfigWriteError: The file could not be written.
        """
        try:
            update = _partial_adapter.validate_python(dict(partial))
        except ValidationError as exc:
            raise ConfigValueError(f"Unsupported configuration value: {exc}") from exc

        current = self.read() or {}
        merged = {**current, **update}
        content = yaml.safe_dump(
            merged,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )
        try:
            _atomic_write(self.path, content)
        except OSError as exc:
            raise ConfigWriteError(f"Cannot write {self.path}: {exc}") from exc

        logger.info("Saved %s (%s)", self.path, ", ".join(update) or "no changes")
        if self._on_saved is not None:
            self._on_saved(merged)
        return merged

    def set_language(self, language: str) -> dict[str, Any]:
        """Persist the dashboard language under ``pluginLanguage``."""
        if language not in SUPPORTED_LANGUAGES:
            raise ConfigValueError(
                f"Unsupported language {language!r}; "
                f"choose one of: {', '.join(SUPPORTED_LANGUAGES)}"
            )
        return self.write({LANGUAGE_KEY: language})
