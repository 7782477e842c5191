"""Post index for ``source/_posts``.

Reads each Markdown file's YAML front-matter and resolves a display date
through a fallback chain:

1. the front-matter ``date`` field,
2. a ``YYYY-MM-DD`` prefix on the filename,
3. the file's modification time,
4. otherwise ``"Unknown"`` with a sort key of 0.

Posts are returned newest first. Equal sort keys keep filename order.
"""

from __future__ import annotations

import contextlib
import logging
import re
from datetime import date, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from hexo_buddy.errors import PostExistsError, PostNotFoundError

logger = logging.getLogger(__name__)

POSTS_DIR = Path("source") / "_posts"
MARKDOWN_SUFFIXES = frozenset({".md", ".markdown"})
UNKNOWN_DATE = "Unknown"
DISPLAY_FORMAT = "%Y-%m-%d"

_FILENAME_DATE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})")
_SLUG_RE = re.compile(r"[^a-z0-9\-]")


class DateSource(StrEnum):
    """Which fallback tier produced a post's date."""

    FRONT_MATTER = "front_matter"
    FILENAME = "filename"
    MTIME = "mtime"
    UNKNOWN = "unknown"


class Post(BaseModel):
    """A post as listed by the index. Recomputed on every listing."""

    title: str
    date: str
    file_path: Path
    is_draft: bool = False
    sort_key: int = 0
    date_source: DateSource = DateSource.UNKNOWN


def parse_front_matter(text: str) -> dict[str, Any]:
    """Extract the YAML front-matter block from the top of a Markdown file.

    Returns an empty dict when there is no block or it is not a valid YAML
    mapping.
    """
    if not text.startswith("---"):
        return {}

    lines = text.splitlines()
    end = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            end = i
            break
    if end is None:
        return {}

    try:
        data = yaml.safe_load("\n".join(lines[1:end]))
    except (yaml.YAMLError, ValueError):
        # PyYAML raises a bare ValueError for impossible dates such as 2024-02-30.
        logger.debug("Malformed front-matter ignored")
        return {}
    return data if isinstance(data, dict) else {}


def _to_datetime(value: Any) -> datetime | None:
    """Coerce a front-matter date value into a datetime."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        with contextlib.suppress(ValueError):
            return datetime.fromisoformat(value.strip())
    return None


def _epoch_ms(moment: datetime) -> int:
    # Naive datetimes are taken as local time.
    return int(moment.timestamp() * 1000)


def resolve_date(
    front_matter: dict[str, Any], path: Path
) -> tuple[int, str, DateSource]:
    """Return ``(sort_key_ms, display, source)`` for a post file."""
    moment = _to_datetime(front_matter.get("date"))
    if moment is not None:
        with contextlib.suppress(OverflowError, OSError, ValueError):
            return _epoch_ms(moment), moment.strftime(DISPLAY_FORMAT), DateSource.FRONT_MATTER

    match = _FILENAME_DATE_RE.match(path.name)
    if match:
        with contextlib.suppress(ValueError, OverflowError, OSError):
            moment = datetime.strptime(match.group(1), DISPLAY_FORMAT)
            return _epoch_ms(moment), moment.strftime(DISPLAY_FORMAT), DateSource.FILENAME

    try:
        mtime = path.stat().st_mtime
    except OSError:
        return 0, UNKNOWN_DATE, DateSource.UNKNOWN
    moment = datetime.fromtimestamp(mtime)
    return int(mtime * 1000), moment.strftime(DISPLAY_FORMAT), DateSource.MTIME


def slugify(title: str) -> str:
    """Turn a post title into a filename stem."""
    return _SLUG_RE.sub("-", title.lower())


class PostIndex:
    """Lists and manages the Markdown posts of one Hexo project."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def posts_dir(self) -> Path:
        return self._root / POSTS_DIR

    def list_posts(self) -> list[Post]:
        """Return every readable post, newest first.

        A missing posts directory yields an empty list. Files that cannot be
        read are skipped with a warning.
        """
        folder = self.posts_dir
        if not folder.is_dir():
            return []

        posts: list[Post] = []
        for path in sorted(folder.iterdir()):
            if path.suffix.lower() not in MARKDOWN_SUFFIXES or not path.is_file():
                continue
            post = self._read_post(path)
            if post is not None:
                posts.append(post)

        return sorted(posts, key=lambda p: p.sort_key, reverse=True)

    def _read_post(self, path: Path) -> Post | None:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable post %s: %s", path, exc)
            return None

        fm = parse_front_matter(text)
        sort_key, display, source = resolve_date(fm, path)

        title = fm.get("title")
        if title is None or not str(title).strip():
            title = path.stem

        return Post(
            title=str(title),
            date=display,
            file_path=path.resolve(),
            is_draft=bool(fm.get("draft")),
            sort_key=sort_key,
            date_source=source,
        )

    def create_post(self, title: str, *, now: datetime | None = None) -> Path:
        """Write a new post with title and date front-matter.

        Raises:
            PostExistsError: A post with the same slug already exists.
        """
        now = now or datetime.now()
        folder = self.posts_dir
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / f"{slugify(title)}.md"

        front_matter = yaml.safe_dump(
            {"title": title, "date": now.isoformat(timespec="seconds")},
            sort_keys=False,
            allow_unicode=True,
        )
        try:
            with path.open("x", encoding="utf-8") as f:
                f.write(f"---\n{front_matter}---\n\n")
        except FileExistsError as exc:
            raise PostExistsError(f"Post already exists: {path}") from exc

        logger.info("Created post %s", path)
        return path

    def delete_post(self, path: Path | str) -> None:
        """Remove a post file from the posts directory.

        A relative path is looked up under the project root first, then
        under the current directory.

        Raises:
            PostNotFoundError: The file does not exist or is not inside the
                posts directory.
        """
        target = Path(path)
        if not target.is_absolute() and (self._root / target).is_file():
            target = self._root / target
        target = target.resolve()
        folder = self.posts_dir.resolve()
        if not target.is_relative_to(folder) or not target.is_file():
            raise PostNotFoundError(f"No such post: {path}")
        target.unlink()
        logger.info("Deleted post %s", target)
