"""Step-wise reservation workflow.

The workflow walks a fixed sequence of booking steps, each delegated to a semantic action
executor as a plain-English instruction:

    navigate_home -> search_restaurant -> set_reservation_parameters -> select_time_slot
        -> select_seating -> fill_guest_info -> fill_phone -> complete_reservation

Every step is best-effort: an `ActionError` is logged, recorded as a failed `StepResult`, and the
run moves on. The one exception is `select_time_slot`. If no slot can be selected, the booking
steps after it are never attempted.

Nothing is retried. Errors other than `ActionError` (for example, the browser failing to load the
landing page) propagate to the caller, which owns the session and must close it.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable

from src.browser.actions import ActionError
from src.workflow.result import Step, StepResult, WorkflowReport

if TYPE_CHECKING:
    from src.browser.actions import ActionExecutor
    from src.browser.session import BrowserSession
    from src.config.settings import Settings
    from src.intent.schema import BookingIntent

logger = logging.getLogger(__name__)

SEARCH_INSTRUCTION = (
    'Find the main search input on this page and search for "{name}". If suggestions appear, '
    "click the matching restaurant, otherwise submit the search."
)
SUBMIT_SEARCH_INSTRUCTION = (
    'Click the search button or press Enter to submit the search for "{name}"'
)
OPEN_RESULT_INSTRUCTION = 'Click on the restaurant card or link for "{name}"'
SET_PARAMETERS_INSTRUCTION = (
    'On this restaurant page, set party size to {party}, set date to "{date}", '
    'set time to "{time}", then refresh availability.'
)
SELECT_SLOT_INSTRUCTION = (
    'Scroll to the "Select a time" section, then click the visible reservation time closest '
    "to {time}."
)
SELECT_SEATING_INSTRUCTION = "Select the 'Standard' seating option and proceed to the next step"
GUEST_INFO_INSTRUCTION = (
    'Fill in the guest details form with name "{name}" and email "{email}". '
    "Do not create an account."
)
PHONE_INSTRUCTION = (
    'If a phone number field is visible, enter "{phone}" (US format). Do not attempt to log in.'
)
ACCEPT_TERMS_INSTRUCTION = (
    "If there is a terms and conditions checkbox, check it to agree to the terms"
)
CONFIRM_INSTRUCTION = (
    "Complete the reservation by clicking the final confirmation or 'Complete Reservation' button"
)


@dataclass(frozen=True)
class GuestInfo:
    """Identity entered on the guest details form."""

    name: str
    email: str


@dataclass(frozen=True)
class WorkflowConfig:
    """Site, guest identity and timing for a reservation run.

    The `*_delay` values are fixed settle times (seconds) that give client-side rendering a chance
    to finish after a navigation-like action. They are not waits for a specific condition.
    """

    site_url: str
    guest: GuestInfo
    phone: str | None = None
    search_results_pattern: str = r"/s\?"
    post_navigation_settle_delay: float = 0.0
    post_search_settle_delay: float = 3.0
    post_submit_settle_delay: float = 3.0
    post_results_click_settle_delay: float = 2.0
    post_terms_settle_delay: float = 1.0
    final_linger_delay: float = 10.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> WorkflowConfig:
        return cls(
            site_url=settings.site_url,
            guest=GuestInfo(name=settings.guest_name, email=settings.guest_email),
            phone=settings.phone,
            final_linger_delay=settings.final_linger_s,
        )


def _same_page(a: str, b: str) -> bool:
    return a.rstrip("/") == b.rstrip("/")


class ReservationWorkflow:
    """Drives one reservation attempt against the configured site."""

    def __init__(self, executor: ActionExecutor, config: WorkflowConfig) -> None:
        self._executor = executor
        self._config = config
        self._results_re = re.compile(config.search_results_pattern)

    async def run(self, session: BrowserSession, intent: BookingIntent) -> WorkflowReport:
        """Run every applicable step for `intent` and report what happened.

        Running twice books twice; there is no de-duplication.
        """

        results: list[StepResult] = [
            await self.navigate_home(session),
            await self.search_restaurant(session, intent.restaurant),
        ]
        logger.info("restaurant page location=%s", session.current_location())
        results.append(await self.set_reservation_parameters(session, intent))

        slot = await self.select_time_slot(session, intent)
        results.append(slot)

        if slot.ok:
            logger.info("time slot selected, proceeding with booking")
            results.append(await self.select_seating(session))
            results.append(await self.fill_guest_info(session))
            results.append(await self.fill_phone(session))
            results.append(await self.complete_reservation(session))
            logger.info("reservation steps finished")
        else:
            logger.info("could not select a time slot; no further steps will run")

        final_location = session.current_location()
        logger.info("final location=%s", final_location)

        if self._config.final_linger_delay > 0:
            logger.info("keeping browser open for %.0fs", self._config.final_linger_delay)
            await self._settle(self._config.final_linger_delay)

        return WorkflowReport(
            results=tuple(results),
            time_slot_selected=slot.ok,
            final_location=final_location,
        )

    async def navigate_home(self, session: BrowserSession) -> StepResult:
        logger.info("navigating to %s", self._config.site_url)
        await session.navigate(self._config.site_url)
        await self._settle(self._config.post_navigation_settle_delay)
        return StepResult.succeeded(Step.navigate_home)

    async def search_restaurant(self, session: BrowserSession, name: str) -> StepResult:
        """Search for the restaurant and open its page.

        The three sub-steps share one failure boundary: if any of them fails the rest are skipped
        and the run continues from whatever page the browser is on.
        """

        logger.info("searching for restaurant %r", name)
        try:
            await self._executor.act(session, SEARCH_INSTRUCTION.format(name=name))
            await self._settle(self._config.post_search_settle_delay)

            if _same_page(session.current_location(), self._config.site_url):
                logger.info("still on the landing page; submitting search")
                await self._executor.act(session, SUBMIT_SEARCH_INSTRUCTION.format(name=name))
                await self._settle(self._config.post_submit_settle_delay)

            if self._results_re.search(session.current_location()):
                logger.info("opening restaurant from search results")
                await self._executor.act(session, OPEN_RESULT_INSTRUCTION.format(name=name))
                await self._settle(self._config.post_results_click_settle_delay)
        except ActionError as exc:
            logger.warning("step=%s failed reason=%s", Step.search_restaurant, exc)
            logger.info("continuing with the current page")
            return StepResult.failed(Step.search_restaurant, str(exc))

        return StepResult.succeeded(Step.search_restaurant)

    async def set_reservation_parameters(
            self,
            session: BrowserSession,
            intent: BookingIntent,
    ) -> StepResult:
        logger.info(
            "setting reservation details party=%d date=%s time=%s",
            intent.party,
            intent.human_date,
            intent.human_time,
        )
        instruction = SET_PARAMETERS_INSTRUCTION.format(
            party=intent.party,
            date=intent.human_date,
            time=intent.human_time,
        )
        return await self._attempt(Step.set_reservation_parameters, session, instruction)

    async def select_time_slot(self, session: BrowserSession, intent: BookingIntent) -> StepResult:
        """Pick the slot closest to the requested time. The caller gates on the result."""

        logger.info("looking for time slot near %s", intent.human_time)
        instruction = SELECT_SLOT_INSTRUCTION.format(time=intent.human_time)
        return await self._attempt(Step.select_time_slot, session, instruction)

    async def select_seating(self, session: BrowserSession) -> StepResult:
        logger.info("selecting seating option")
        return await self._attempt(Step.select_seating, session, SELECT_SEATING_INSTRUCTION)

    async def fill_guest_info(self, session: BrowserSession) -> StepResult:
        logger.info("filling guest details")
        instruction = GUEST_INFO_INSTRUCTION.format(
            name=self._config.guest.name,
            email=self._config.guest.email,
        )
        return await self._attempt(Step.fill_guest_info, session, instruction)

    async def fill_phone(self, session: BrowserSession) -> StepResult:
        if not self._config.phone:
            return StepResult.skipped_step(Step.fill_phone, "no phone number configured")

        logger.info("filling phone number")
        instruction = PHONE_INSTRUCTION.format(phone=self._config.phone)
        return await self._attempt(Step.fill_phone, session, instruction)

    async def complete_reservation(self, session: BrowserSession) -> StepResult:
        logger.info("completing reservation")
        try:
            logger.info("checking for terms and conditions")
            await self._executor.act(session, ACCEPT_TERMS_INSTRUCTION)
            await self._settle(self._config.post_terms_settle_delay)
            await self._executor.act(session, CONFIRM_INSTRUCTION)
        except ActionError as exc:
            logger.warning("step=%s failed reason=%s", Step.complete_reservation, exc)
            return StepResult.failed(Step.complete_reservation, str(exc))

        logger.info("step=%s succeeded", Step.complete_reservation)
        return StepResult.succeeded(Step.complete_reservation)

    async def _attempt(self, step: Step, session: BrowserSession, instruction: str) -> StepResult:
        try:
            await self._executor.act(session, instruction)
        except ActionError as exc:
            logger.warning("step=%s failed reason=%s", step, exc)
            return StepResult.failed(step, str(exc))

        logger.info("step=%s succeeded", step)
        return StepResult.succeeded(step)

    async def _settle(self, delay: float) -> None:
        if delay > 0:
            await self._config.sleep(delay)
