"""Tests for subscriber lookups."""

import logging

import pytest

from seatwatch.common.exceptions import (
    DocumentNotFoundError,
    DocumentReadError,
)
from seatwatch.models import User
from seatwatch.store.memory import MemoryRecordStore
from seatwatch.users import (
    find_user_by_number,
    lookup_user_number,
    normalize_number,
)


class FailingQueryStore(MemoryRecordStore):
    """A store whose queries always fail."""

    def find_by_equality(self, collection, field, value, *more):
        raise DocumentReadError("backend unavailable", "find_by_equality", collection)


@pytest.mark.parametrize(
    "number,expected",
    [
        ("14065550100", "+14065550100"),
        ("+14065550100", "+14065550100"),
        ("  14065550100 ", "+14065550100"),
        (" +14065550100", "+14065550100"),
    ],
)
def test_normalize_number(number, expected):
    """normalize_number shall strip spaces and add exactly one '+'."""
    assert normalize_number(number) == expected


class TestFindUserByNumber:
    """Tests for finding a user by phone number."""

    def test_finds_user_without_plus_prefix(self, store):
        """A number given without '+' shall still match the stored user."""
        found = find_user_by_number(store, "14065550100")

        assert found is not None
        user, uid = found
        assert isinstance(user, User)
        assert uid == "uid-ada"
        assert user.number == "+14065550100"

    def test_finds_user_with_plus_prefix(self, store):
        """A number given with '+' shall match as well."""
        found = find_user_by_number(store, "+14065550111")

        assert found is not None
        assert found[1] == "uid-bo"

    def test_unknown_number_returns_none(self, store):
        """An unregistered number shall return None."""
        assert find_user_by_number(store, "15555550199") is None

    def test_query_failure_is_logged_and_raised(self, caplog):
        """A failed query shall be logged and propagated."""
        store = FailingQueryStore()

        with caplog.at_level(logging.ERROR, logger="seatwatch.users"):
            with pytest.raises(DocumentReadError):
                find_user_by_number(store, "14065550100")

        assert "User lookup by number failed" in caplog.text


class TestLookupUserNumber:
    """Tests for reading a user's number by uid."""

    def test_returns_number(self, store):
        """lookup_user_number shall return the stored number."""
        assert lookup_user_number(store, "uid-bo") == "+14065550111"

    def test_missing_user_is_logged_and_raised(self, store, caplog):
        """A uid that no longer exists shall be logged and raise."""
        with caplog.at_level(logging.ERROR, logger="seatwatch.users"):
            with pytest.raises(DocumentNotFoundError):
                lookup_user_number(store, "uid-gone")

        assert "Tracked user uid-gone not found" in caplog.text
