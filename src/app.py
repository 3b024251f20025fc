"""Application composition root.

This module wires together configuration, the action executor, the reservation workflow and the
browser session opener for a booking run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from src.browser.actions import ActionExecutor, create_executor
from src.browser.session import BrowserSession, open_session
from src.config.settings import Settings
from src.intent.parser import parse_booking_request
from src.intent.schema import BookingIntent
from src.workflow.reservation import ReservationWorkflow, WorkflowConfig
from src.workflow.result import WorkflowReport

logger = logging.getLogger(__name__)

SessionOpener = Callable[[], AbstractAsyncContextManager[BrowserSession]]


@dataclass(frozen=True)
class App:
    """Shared dependencies for a booking run."""

    settings: Settings
    workflow: ReservationWorkflow
    open_session: SessionOpener

    def parse(self, message: str) -> BookingIntent:
        """Parse a request in the configured time zone (blank input uses the default request)."""

        return parse_booking_request(
            message.strip() or self.settings.default_request,
            tz=self.settings.timezone,
        )

    async def book(self, intent: BookingIntent) -> WorkflowReport:
        """Acquire a session, run the workflow, and always release the session."""

        async with self.open_session() as session:
            return await self.workflow.run(session, intent)


def create_app(settings: Settings, *, executor: ActionExecutor | None = None) -> App:
    """Create the application container.

    Note:
        No browser is launched here; `App.book` opens one per run.
    """

    workflow = ReservationWorkflow(
        executor or create_executor(settings),
        WorkflowConfig.from_settings(settings),
    )
    return App(
        settings=settings,
        workflow=workflow,
        open_session=lambda: open_session(settings),
    )
