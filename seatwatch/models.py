"""Pydantic data models for scraped sections and stored documents."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from seatwatch.common.data_models import StoredData


class Section(StoredData):
    """One course offering scraped from the registration portal.

    Seat counts are kept as the strings the portal printed. Dumping with
    ``by_alias=True`` produces the camelCase keys used in stored documents.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    dept_abbr: str = Field(..., description="Department abbreviation, e.g. CSCI")
    course_number: str = Field(..., description="Course number, e.g. 132")
    section_number: str = Field(..., description="Section number, e.g. 001")
    course_name: str = Field(..., description="Course title")
    crn: str = Field(..., description="Course reference number")
    total_seats: str = Field(..., description="Seat capacity")
    taken_seats: str = Field(..., description="Seats already taken")
    available_seats: str = Field(..., description="Seats still open")
    instructor: str = Field(..., description="Instructor name")
    dept_name: str = Field(..., description="Department full name")
    course_type: str = Field(..., description="Lecture, lab, recitation...")
    time: str = Field(..., description="Meeting days and times")
    location: str = Field(..., description="Building and room")
    credits: str = Field(..., description="Credit hours, '0' for recitations")

    @property
    def has_open_seats(self) -> bool:
        """Whether the portal reports a positive number of open seats."""
        try:
            return Decimal(self.available_seats) > 0
        except InvalidOperation:
            return False


class Subscription(StoredData):
    """Users waiting on one section in one term.

    Only users is checked when decoding; a merge needs nothing else from the
    tracked side. term and crn are taken as stored, whatever their type, and
    any other fields are kept as they were.
    """

    model_config = ConfigDict(extra="allow")

    users: list[Any]
    term: Any = None
    crn: Any = None


class TrackedSubscription(Subscription):
    """A live subscription in ``sections_tracked``, keyed by user/session id."""


class ArchivedSubscription(Subscription):
    """The consolidated subscription for a term and crn in ``sections_archive``."""


class User(StoredData):
    """A subscriber in the ``users`` collection."""

    model_config = ConfigDict(extra="allow")

    number: str = Field(..., description="Phone number in +E.164 form")
