"""Tests for the step-wise reservation workflow and its gating step.

The executor and session are in-memory fakes that record every instruction, so the tests can
assert exactly which steps were attempted.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, time

import pytest

from src.browser.actions import ActionError
from src.intent.schema import BookingIntent
from src.workflow.reservation import (
    CONFIRM_INSTRUCTION,
    SELECT_SEATING_INSTRUCTION,
    GuestInfo,
    ReservationWorkflow,
    WorkflowConfig,
)
from src.workflow.result import BOOKING_STEPS, Step

HOME = "https://www.opentable.com/"


class _FakeSession:
    def __init__(self) -> None:
        self.location = "about:blank"
        self.navigations: list[str] = []
        self.close_calls = 0

    async def navigate(self, url: str) -> None:
        self.navigations.append(url)
        self.location = url

    def current_location(self) -> str:
        return self.location

    async def close(self) -> None:
        self.close_calls += 1


class _RecordingExecutor:
    """Records instructions; fails those containing any of `fail_on`."""

    def __init__(
            self,
            *,
            fail_on: tuple[str, ...] = (),
            on_act: Callable[[_FakeSession, str], None] | None = None,
    ) -> None:
        self.instructions: list[str] = []
        self._fail_on = fail_on
        self._on_act = on_act

    async def act(self, session: _FakeSession, instruction: str) -> None:
        self.instructions.append(instruction)
        if any(marker in instruction for marker in self._fail_on):
            raise ActionError(f"could not do: {instruction[:20]}")
        if self._on_act is not None:
            self._on_act(session, instruction)

    def count(self, marker: str) -> int:
        return sum(1 for i in self.instructions if marker in i)


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _config(**overrides: object) -> WorkflowConfig:
    fields: dict[str, object] = {
        "site_url": HOME,
        "guest": GuestInfo(name="Ada Lovelace", email="ada@example.com"),
        "phone": None,
        "post_search_settle_delay": 0.0,
        "post_submit_settle_delay": 0.0,
        "post_results_click_settle_delay": 0.0,
        "post_terms_settle_delay": 0.0,
        "final_linger_delay": 0.0,
    }
    fields.update(overrides)
    return WorkflowConfig(**fields)  # type: ignore[arg-type]


def _intent() -> BookingIntent:
    return BookingIntent(
        restaurant="Terra E Mare",
        party=2,
        date=date(2026, 10, 20),
        time=time(19, 0),
    )


def _go_to_restaurant_page(session: _FakeSession, instruction: str) -> None:
    if instruction.startswith("Find the main search input"):
        session.location = "https://www.opentable.com/r/terra-e-mare"


@pytest.mark.asyncio
async def test_happy_path_runs_every_step_once() -> None:
    session = _FakeSession()
    executor = _RecordingExecutor(on_act=_go_to_restaurant_page)
    workflow = ReservationWorkflow(executor, _config())

    report = await workflow.run(session, _intent())

    assert session.navigations == [HOME]
    assert report.time_slot_selected
    assert report.completed
    assert report.failed_steps == ()
    assert report.final_location == "https://www.opentable.com/r/terra-e-mare"
    assert [r.step for r in report.results] == list(Step)
    assert executor.count('search for "Terra E Mare"') == 1
    assert executor.count('set date to "Oct 20, 2026", set time to "7:00 PM"') == 1
    assert executor.count("closest to 7:00 PM") == 1
    assert executor.count('name "Ada Lovelace" and email "ada@example.com"') == 1
    assert executor.instructions[-1] == CONFIRM_INSTRUCTION
    # The phone step is skipped without an executor call when no phone is configured.
    assert executor.count("phone number") == 0
    phone_result = next(r for r in report.results if r.step == Step.fill_phone)
    assert phone_result.ok and phone_result.skipped


@pytest.mark.asyncio
async def test_gating_failure_skips_booking_steps() -> None:
    session = _FakeSession()
    executor = _RecordingExecutor(fail_on=("Select a time",), on_act=_go_to_restaurant_page)
    workflow = ReservationWorkflow(executor, _config(phone="415-555-0100"))

    report = await workflow.run(session, _intent())

    assert not report.time_slot_selected
    assert not report.completed
    assert report.failed_steps == (Step.select_time_slot,)
    assert not set(BOOKING_STEPS) & set(report.attempted_steps)
    assert executor.count(SELECT_SEATING_INSTRUCTION) == 0
    assert executor.count("guest details") == 0
    assert executor.count("415-555-0100") == 0
    assert executor.count("terms and conditions") == 0
    assert executor.count(CONFIRM_INSTRUCTION) == 0
    assert session.close_calls == 0


@pytest.mark.asyncio
async def test_non_gating_failures_do_not_stop_the_run() -> None:
    session = _FakeSession()
    executor = _RecordingExecutor(
        fail_on=("set party size", "Standard", "guest details"),
        on_act=_go_to_restaurant_page,
    )
    workflow = ReservationWorkflow(executor, _config(phone="415-555-0100"))

    report = await workflow.run(session, _intent())

    assert report.time_slot_selected
    assert report.completed
    assert report.failed_steps == (
        Step.set_reservation_parameters,
        Step.select_seating,
        Step.fill_guest_info,
    )
    assert executor.count('enter "415-555-0100"') == 1
    assert executor.count(CONFIRM_INSTRUCTION) == 1


@pytest.mark.asyncio
async def test_search_submits_when_still_on_landing_page() -> None:
    session = _FakeSession()
    executor = _RecordingExecutor()
    workflow = ReservationWorkflow(executor, _config())

    result = await workflow.search_restaurant(session, "Nopa")
    assert result.ok
    assert executor.instructions == [
        'Find the main search input on this page and search for "Nopa". If suggestions appear, '
        "click the matching restaurant, otherwise submit the search."
    ]

    session.location = HOME.rstrip("/")
    executor.instructions.clear()
    await workflow.search_restaurant(session, "Nopa")
    assert executor.count("Click the search button") == 1
    assert executor.count("restaurant card") == 0


@pytest.mark.asyncio
async def test_search_opens_restaurant_from_results_page() -> None:
    session = _FakeSession()
    session.location = HOME

    def _to_results(s: _FakeSession, instruction: str) -> None:
        if "Click the search button" in instruction:
            s.location = "https://www.opentable.com/s?term=Nopa"

    executor = _RecordingExecutor(on_act=_to_results)
    workflow = ReservationWorkflow(executor, _config())

    result = await workflow.search_restaurant(session, "Nopa")

    assert result.ok
    assert len(executor.instructions) == 3
    assert executor.instructions[2] == 'Click on the restaurant card or link for "Nopa"'


@pytest.mark.asyncio
async def test_search_failure_abandons_remaining_search_substeps() -> None:
    session = _FakeSession()
    session.location = HOME
    executor = _RecordingExecutor(fail_on=("Find the main search input",))
    workflow = ReservationWorkflow(executor, _config())

    result = await workflow.search_restaurant(session, "Nopa")

    assert not result.ok
    assert result.reason
    # Still on the landing page, but the submit sub-step shares the failed boundary.
    assert executor.count("Click the search button") == 0


@pytest.mark.asyncio
async def test_settle_delays_are_named_and_applied() -> None:
    session = _FakeSession()
    sleep = _RecordingSleep()
    executor = _RecordingExecutor()
    config = _config(
        post_search_settle_delay=3.0,
        post_submit_settle_delay=2.5,
        post_terms_settle_delay=1.0,
        final_linger_delay=10.0,
        sleep=sleep,
    )
    workflow = ReservationWorkflow(executor, config)

    await workflow.run(session, _intent())

    # search, submit (still on the landing page), terms checkbox, final linger
    assert sleep.delays == [3.0, 2.5, 1.0, 10.0]


@pytest.mark.asyncio
async def test_unexpected_errors_propagate() -> None:
    class _BrokenSession(_FakeSession):
        async def navigate(self, url: str) -> None:
            raise RuntimeError("browser crashed")

    executor = _RecordingExecutor()
    workflow = ReservationWorkflow(executor, _config())

    with pytest.raises(RuntimeError, match="browser crashed"):
        await workflow.run(_BrokenSession(), _intent())
    assert executor.instructions == []


@pytest.mark.asyncio
async def test_two_runs_make_two_independent_attempts() -> None:
    session = _FakeSession()
    executor = _RecordingExecutor(on_act=_go_to_restaurant_page)
    workflow = ReservationWorkflow(executor, _config())

    await workflow.run(session, _intent())
    first = len(executor.instructions)
    await workflow.run(session, _intent())

    assert len(executor.instructions) == 2 * first
    assert executor.count(CONFIRM_INSTRUCTION) == 2
