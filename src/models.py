"""Shared value types."""

from __future__ import annotations

from enum import StrEnum


class DeployState(StrEnum):
    """Deployment pipeline states."""

    IDLE = "idle"
    GENERATING = "generating"
    PUBLISHING = "publishing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
