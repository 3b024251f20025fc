"""Booking intent schema (Pydantic model).

This model is the contract between the free-text parser and the reservation workflow. It is built
once per run, right after parsing, and is read-only afterwards.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.intent import formatting


class BookingIntent(BaseModel):
    """A structured reservation request: where, how many, and when.

    `date` and `time` are wall-clock values in the parser's reference time zone. The model does not
    require the date to be in the future; that policy belongs to the parser.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    restaurant: str = Field(min_length=1)
    party: int = Field(ge=1)
    date: dt.date
    time: dt.time

    @field_validator("time")
    @classmethod
    def truncate_seconds(cls, value: dt.time) -> dt.time:
        """Keep only hour and minute; booking widgets have no finer resolution."""

        return value.replace(second=0, microsecond=0, tzinfo=None)

    @property
    def date_iso(self) -> str:
        return self.date.isoformat()

    @property
    def time_24(self) -> str:
        return self.time.strftime("%H:%M")

    @property
    def human_date(self) -> str:
        return formatting.human_date(self.date)

    @property
    def human_time(self) -> str:
        return formatting.to_12hr(self.time)
