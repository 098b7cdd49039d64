"""Subscriber lookups in the ``users`` collection."""

from __future__ import annotations

import logging

from seatwatch.common.exceptions import (
    DocumentNotFoundError,
    DocumentReadError,
)
from seatwatch.models import User
from seatwatch.store.base import USERS, RecordStore

logger = logging.getLogger(__name__)


def normalize_number(number: str) -> str:
    """Return the number as stored: surrounding spaces removed, ``+`` prefixed."""
    return "+" + number.strip(" ").lstrip("+")


def find_user_by_number(
    store: RecordStore, number: str
) -> tuple[User, str] | None:
    """Find the user registered with a phone number.

    Args:
        store: Record store holding the users collection.
        number: Phone number, with or without the leading ``+``.

    Returns:
        (user, uid) for the first match, or None if nobody has that number.

    Raises:
        DocumentReadError: If the query fails.
        DataShapeError: If the matching document has no usable number.
    """
    checked = normalize_number(number)
    try:
        matches = store.find_by_equality(USERS, "number", checked)
    except DocumentReadError:
        logger.error(
            "User lookup by number failed", extra={"number": checked}
        )
        raise

    if not matches:
        return None
    return matches[0].decode(User), matches[0].id


def lookup_user_number(store: RecordStore, uid: str) -> str:
    """Return the phone number of the user with the given uid.

    Raises:
        DocumentNotFoundError: If the user no longer exists.
        DataShapeError: If the user's number isn't a string.
    """
    try:
        snapshot = store.get(USERS, uid)
    except DocumentNotFoundError:
        logger.error(
            f"Tracked user {uid} not found. This should've been cleaned up",
            extra={"uid": uid},
        )
        raise
    return snapshot.decode(User).number
