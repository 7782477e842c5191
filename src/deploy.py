"""Generate-then-publish deployment pipeline.

``idle -> generating -> publishing -> succeeded | failed``

Every status message is appended to the log sink and published on the
progress channel. A failing step ends the run; the failure is reported, not
raised, and the publish step never runs after a failed generate.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from hexo_buddy.errors import CommandError, DeployReport
from hexo_buddy.logbook import LogSink
from hexo_buddy.models import DeployState
from hexo_buddy.progress import ProgressChannel, ProgressEvent
from hexo_buddy.runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

MSG_GENERATING = "Generating static files..."
MSG_PUBLISHING = "Pushing to remote repository..."
MSG_SUCCEEDED = "Deployment succeeded"
MSG_FAILED = "Deployment failed: {error}"


class DeployPipeline:
    """Runs ``generate`` then ``deploy`` and reports progress.

    Runs are not serialized: calling ``run`` while another run is in flight
    starts a second pair of processes against the same output directory.
    """

    def __init__(
        self,
        runner: CommandRunner,
        log: LogSink,
        channel: ProgressChannel | None = None,
    ) -> None:
        self._runner = runner
        self._log = log
        self.channel = channel or ProgressChannel()
        self._state = DeployState.IDLE

    @property
    def state(self) -> DeployState:
        return self._state

    async def run(
        self, on_progress: Callable[[str], None] | None = None
    ) -> DeployReport:
        """Deploy the site.

        Args:
            on_progress: Receives each status message of this run.

        Returns:
            The report of the run. ``report.success`` tells the outcome.
        """
        unsubscribe = None
        if on_progress is not None:
            unsubscribe = self.channel.subscribe(lambda event: on_progress(event.message))

        report = DeployReport()
        try:
            steps: list[tuple[DeployState, str, Callable[[], Awaitable[CommandResult]]]] = [
                (DeployState.GENERATING, MSG_GENERATING, self._runner.generate),
                (DeployState.PUBLISHING, MSG_PUBLISHING, self._runner.deploy),
            ]
            for state, message, step in steps:
                self._state = report.state = state
                self._emit(message, report)
                try:
                    await step()
                except CommandError as exc:
                    self._fail(report, state.value, exc.detail)
                    return report
                report.mark_stage_complete(state.value)

            self._state = report.state = DeployState.SUCCEEDED
            self._emit(MSG_SUCCEEDED, report)
            return report
        finally:
            report.finish()
            if unsubscribe is not None:
                unsubscribe()

    def _fail(self, report: DeployReport, stage: str, error: str) -> None:
        logger.debug("Deployment stage %s failed: %s", stage, error)
        self._log.append(f"[ERROR] {error}")
        self._state = DeployState.FAILED
        report.fail(stage, error)
        self._emit(MSG_FAILED.format(error=error), report)

    def _emit(self, message: str, report: DeployReport) -> None:
        entry = self._log.append(message)
        report.messages.append(message)
        self.channel.publish(
            ProgressEvent(
                message=message,
                state=self._state,
                entry=entry,
                history=tuple(self._log.entries()),
            )
        )
