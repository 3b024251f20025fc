"""Step outcomes and the per-run report.

Steps never let action failures escape as exceptions; each returns a `StepResult` and the
workflow decides what to do next from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Step(StrEnum):
    """Reservation workflow states, in execution order."""

    navigate_home = "navigate_home"
    search_restaurant = "search_restaurant"
    set_reservation_parameters = "set_reservation_parameters"
    select_time_slot = "select_time_slot"
    select_seating = "select_seating"
    fill_guest_info = "fill_guest_info"
    fill_phone = "fill_phone"
    complete_reservation = "complete_reservation"


# Steps that only run after a time slot has been selected.
BOOKING_STEPS: tuple[Step, ...] = (
    Step.select_seating,
    Step.fill_guest_info,
    Step.fill_phone,
    Step.complete_reservation,
)


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single workflow step."""

    step: Step
    ok: bool
    reason: str | None = None
    skipped: bool = False

    @classmethod
    def succeeded(cls, step: Step) -> StepResult:
        return cls(step=step, ok=True)

    @classmethod
    def failed(cls, step: Step, reason: str) -> StepResult:
        return cls(step=step, ok=False, reason=reason)

    @classmethod
    def skipped_step(cls, step: Step, reason: str) -> StepResult:
        """A step that was deliberately not attempted (for example, no phone configured)."""

        return cls(step=step, ok=True, reason=reason, skipped=True)


@dataclass(frozen=True)
class WorkflowReport:
    """Everything a single reservation run did, in order."""

    results: tuple[StepResult, ...]
    time_slot_selected: bool
    final_location: str

    @property
    def attempted_steps(self) -> tuple[Step, ...]:
        return tuple(r.step for r in self.results if not r.skipped)

    @property
    def failed_steps(self) -> tuple[Step, ...]:
        return tuple(r.step for r in self.results if not r.ok)

    @property
    def completed(self) -> bool:
        """Whether the run got past the time slot and reached the confirmation step."""

        return self.time_slot_selected and Step.complete_reservation in self.attempted_steps
