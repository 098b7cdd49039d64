"""Tests for the data models and deferred validation."""

import pytest
from pydantic import ValidationError

from seatwatch.common.deferred_validation import DeferredValidation
from seatwatch.common.exceptions import DataShapeError
from seatwatch.models import (
    ArchivedSubscription,
    Section,
    TrackedSubscription,
    User,
)

SECTION_FIELDS = {
    "dept_abbr": "CSCI",
    "course_number": "132",
    "section_number": "R01",
    "course_name": "Basic Data Structures Recitation",
    "crn": "31246",
    "total_seats": "30",
    "taken_seats": "28",
    "available_seats": "2",
    "instructor": "Staff",
    "dept_name": "Computer Science",
    "course_type": "Recitation",
    "time": "T 14:00 - 14:50",
    "location": "Barnard 108",
    "credits": "0",
}


class TestSection:
    """Tests for the Section model."""

    def test_dump_uses_camel_case_keys(self):
        """Dumping by alias shall produce the stored document keys."""
        dumped = Section(**SECTION_FIELDS).model_dump(by_alias=True)

        assert dumped["deptAbbr"] == "CSCI"
        assert dumped["courseNumber"] == "132"
        assert dumped["availableSeats"] == "2"
        assert dumped["crn"] == "31246"
        assert "dept_abbr" not in dumped

    def test_validates_from_camel_case_keys(self):
        """A stored camelCase document shall validate into a Section."""
        stored = Section(**SECTION_FIELDS).model_dump(by_alias=True)

        assert Section.model_validate(stored) == Section(**SECTION_FIELDS)

    def test_is_frozen(self):
        """Sections shall be immutable once built."""
        section = Section(**SECTION_FIELDS)

        with pytest.raises(ValidationError):
            section.crn = "99999"

    @pytest.mark.parametrize(
        "available,expected",
        [("2", True), ("0", False), ("-1", False), ("", False), ("n/a", False)],
    )
    def test_has_open_seats(self, available, expected):
        """has_open_seats shall be true only for a positive seat count."""
        section = Section(**{**SECTION_FIELDS, "available_seats": available})

        assert section.has_open_seats is expected


class TestSubscription:
    """Tests for the subscription models."""

    def test_requires_users_list(self):
        """users shall be required and must be a list."""
        with pytest.raises(ValidationError):
            TrackedSubscription.model_validate({"term": "F24", "crn": "222"})
        with pytest.raises(ValidationError):
            ArchivedSubscription.model_validate({"users": "uid-ada"})

    def test_term_and_crn_keep_their_stored_type(self):
        """A numeric crn shall decode as stored rather than fail."""
        tracked = TrackedSubscription.model_validate(
            {"term": "F24", "crn": 222, "users": []}
        )

        assert tracked.crn == 222

    def test_users_are_opaque(self):
        """Per-user records shall be kept exactly as stored."""
        users = [{"uid": "uid-ada", "notified": True}, "legacy-entry", 7]

        archived = ArchivedSubscription.model_validate({"users": users})

        assert archived.users == users
        assert archived.term is None


class TestDeferredValidation:
    """Tests for DeferredValidation and the raw() constructor."""

    def test_raw_returns_deferred_wrapper(self):
        """raw() shall wrap the data without validating it."""
        deferred = User.raw(source="users/u1", number=5)

        assert isinstance(deferred, DeferredValidation)
        assert deferred.model_name == "User"
        with pytest.raises(DataShapeError):
            deferred.confirm()

    def test_confirm_returns_model(self):
        """confirm() shall return a validated model instance."""
        user = User.raw(number="+14065550100").confirm()

        assert isinstance(user, User)
        assert user.number == "+14065550100"

    def test_confirm_raises_data_shape_error(self):
        """Invalid data shall raise DataShapeError with the failing field."""
        deferred = TrackedSubscription.raw(
            source="sections_tracked/t1", users={"uid-ada": True}
        )

        with pytest.raises(DataShapeError) as exc_info:
            deferred.confirm()

        exc = exc_info.value
        assert exc.model_name == "TrackedSubscription"
        assert exc.source == "sections_tracked/t1"
        assert exc.errors[0]["loc"] == ("users",)
        assert exc.failed_doc == {"users": {"uid-ada": True}}
        assert isinstance(exc.__cause__, ValidationError)

    def test_later_changes_to_caller_dict_are_ignored(self):
        """confirm() shall validate the fields as they were when wrapped."""
        fields = {"number": "+1"}
        deferred = User.raw(**fields)
        fields["number"] = 5

        assert deferred.confirm().number == "+1"
