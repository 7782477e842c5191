"""Async wrappers around the Hexo command line.

Each call spawns ``<command> <subcommand>`` in the project root, waits for it
to exit, and returns the captured output. There is no timeout, no
cancellation, and no streaming.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from hexo_buddy.errors import CommandError, WorkspaceNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_COMMAND: tuple[str, ...] = ("npx", "hexo")


@dataclass(frozen=True)
class CommandResult:
    """Output of a command that exited with status 0."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner:
    """Runs Hexo subcommands for one project root."""

    def __init__(
        self,
        root: Path | None,
        command: Sequence[str] = DEFAULT_COMMAND,
    ) -> None:
        self._root = Path(root) if root is not None else None
        self._command = tuple(command)

    @property
    def root(self) -> Path | None:
        return self._root

    async def generate(self) -> CommandResult:
        return await self._exec("generate")

    async def deploy(self) -> CommandResult:
        return await self._exec("deploy")

    async def new_post(self, title: str, layout: str | None = None) -> CommandResult:
        """Scaffold a post with ``hexo new [layout] <title>``."""
        args = [layout, title] if layout else [title]
        return await self._exec("new", *args)

    async def _exec(self, *args: str) -> CommandResult:
        """Run the command and collect its output.

        Raises:
            WorkspaceNotFoundError: No project root, or it is not a directory.
            CommandError: The process could not be spawned or exited non-zero.
        """
        if self._root is None or not self._root.is_dir():
            raise WorkspaceNotFoundError(f"workspace not found: {self._root}")

        cmd = (*self._command, *args)
        display = shlex.join(cmd)
        logger.debug("Running %s in %s", display, self._root)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(self._root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CommandError(f"Failed to run {display}: {exc}") from exc

        raw_out, raw_err = await process.communicate()
        stdout = raw_out.decode("utf-8", errors="replace") if raw_out else ""
        stderr = raw_err.decode("utf-8", errors="replace") if raw_err else ""
        returncode = process.returncode if process.returncode is not None else -1

        if returncode != 0:
            detail = stderr.strip() or f"{display} exited with code {returncode}"
            raise CommandError(detail, returncode=returncode)

        return CommandResult(args=cmd, returncode=returncode, stdout=stdout, stderr=stderr)
