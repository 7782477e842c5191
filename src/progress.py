"""Ordered fan-out of deployment progress to subscribers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from hexo_buddy.models import DeployState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """One status update from a deployment run."""

    message: str
    state: DeployState
    entry: str
    history: tuple[str, ...] = field(default_factory=tuple)


ProgressHandler = Callable[[ProgressEvent], None]


class ProgressChannel:
    """Delivers each event to every subscriber, in subscription order.

    A subscriber that raises is logged and skipped; delivery to the others
    and the publishing pipeline carry on.
    """

    def __init__(self) -> None:
        self._handlers: list[ProgressHandler] = []

    def subscribe(self, handler: ProgressHandler) -> Callable[[], None]:
        """Add a handler and return a callable that removes it again."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def publish(self, event: ProgressEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Progress handler %s failed on %r",
                    getattr(handler, "__name__", handler),
                    event.message,
                )
