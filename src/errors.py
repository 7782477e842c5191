"""Exception hierarchy and the persisted deployment report."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from hexo_buddy.models import DeployState

logger = logging.getLogger(__name__)

REPORT_FILENAME = ".hexo-buddy-last-deploy.json"


class HexoBuddyError(Exception):
    """Base class for errors surfaced to the caller."""


class CommandError(HexoBuddyError):
    """Raised when a build-tool command cannot be spawned or exits non-zero.

    ``detail`` carries the captured error text: stderr when the process
    wrote any, otherwise the spawn error or exit status.
    """

    def __init__(self, detail: str, *, returncode: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.returncode = returncode


class WorkspaceNotFoundError(CommandError):
    """Raised when no usable project root is available."""


class ConfigError(HexoBuddyError):
    """Base class for site configuration failures."""


class ConfigReadError(ConfigError):
    """The configuration file exists but could not be read or parsed."""


class ConfigWriteError(ConfigError):
    """The merged configuration could not be written."""


class ConfigValueError(ConfigError, ValueError):
    """A value handed to the configuration store is not representable."""


class PostError(HexoBuddyError):
    """Base class for post file operations."""


class PostExistsError(PostError):
    """A post with the same filename already exists."""


class PostNotFoundError(PostError):
    """The post does not exist or lies outside the posts directory."""


class DeployReport(BaseModel):
    """Summary of one deployment run."""

    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None
    state: DeployState = DeployState.IDLE
    stages_completed: list[str] = Field(default_factory=list)
    failed_stage: str | None = None
    error: str | None = None
    messages: list[str] = Field(default_factory=list)

    def mark_stage_complete(self, stage: str) -> None:
        """Record that a pipeline stage completed."""
        if stage not in self.stages_completed:
            self.stages_completed.append(stage)

    def fail(self, stage: str, error: str) -> None:
        self.state = DeployState.FAILED
        self.failed_stage = stage
        self.error = error

    def finish(self) -> None:
        """Mark the report as finished."""
        self.finished_at = datetime.now()

    @property
    def success(self) -> bool:
        return self.state == DeployState.SUCCEEDED

    def summary_text(self) -> str:
        """Human-readable summary of the run."""
        duration = ""
        if self.finished_at and self.started_at:
            secs = (self.finished_at - self.started_at).total_seconds()
            duration = f" in {secs:.0f}s" if secs < 60 else f" in {secs / 60:.1f}m"

        status = "succeeded" if self.success else "failed"
        lines = [f"Deployment {status}{duration}"]

        if self.stages_completed:
            lines.append(f"Stages: {', '.join(self.stages_completed)}")

        if self.error:
            lines.append(f"Error ({self.failed_stage}): {self.error}")

        return "\n".join(lines)


def save_report(report: DeployReport, root: Path) -> Path:
    """Save the deployment report into the project root."""
    report_path = root / REPORT_FILENAME
    report_path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    return report_path


def load_report(root: Path) -> DeployReport | None:
    """Load the last deployment report, or None if there is none."""
    report_path = root / REPORT_FILENAME
    if not report_path.exists():
        return None
    try:
        data = json.loads(report_path.read_text(encoding="utf-8"))
        return DeployReport.model_validate(data)
    except (json.JSONDecodeError, ValueError):
        logger.warning("Corrupt deploy report at %s", report_path)
        return None
