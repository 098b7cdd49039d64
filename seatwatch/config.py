"""Runtime settings shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Settings resolved from CLI options and their environment variables.

    Attributes:
        db_path: SQLite database holding users and subscriptions.
        portal_url: URL the portal's section search form posts to.
        portal_timeout: Portal request timeout in seconds.
        sms_auth_id: SMS gateway account id (``PLIVO_AUTH_ID``).
        sms_auth_token: SMS gateway token (``PLIVO_AUTH_TOKEN``).
        sms_source_number: Number texts are sent from (``PLIVO_SRC_NUMBER``).
    """

    db_path: Path = Path("seatwatch.db")
    portal_url: str | None = None
    portal_timeout: float = Field(default=30.0, gt=0)
    sms_auth_id: str | None = None
    sms_auth_token: str | None = Field(default=None, repr=False)
    sms_source_number: str | None = None
