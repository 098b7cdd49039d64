"""SMS notifications through a Plivo-style message API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from seatwatch.common.exceptions import (
    NotificationConfigError,
    NotificationError,
    RequestTimeoutException,
)
from seatwatch.models import Section

logger = logging.getLogger(__name__)

PLIVO_API_ENDPOINT = "https://api.plivo.com/v1/Account/{auth_id}/Message/"


def open_seat_message(section: Section) -> str:
    """Build the text sent when a tracked section has an open seat."""
    return (
        f"A seat opened in {section.dept_abbr} {section.course_number}-"
        f"{section.section_number} {section.course_name} (CRN {section.crn}): "
        f"{section.available_seats} of {section.total_seats} available."
    )


class SmsClient:
    """Sends text messages with basic-auth credentials.

    Attributes:
        source_number: Number messages are sent from.
        endpoint: Message API URL with an ``{auth_id}`` placeholder.
    """

    def __init__(
        self,
        auth_id: str | None,
        auth_token: str | None,
        source_number: str,
        endpoint: str = PLIVO_API_ENDPOINT,
        timeout: float | None = 30.0,
    ) -> None:
        """Initialize the client.

        Raises:
            NotificationConfigError: If auth_id or auth_token is missing.
        """
        if not auth_id or not auth_token:
            logger.error("SMS client is missing its auth id or auth token")
            raise NotificationConfigError(
                "SMS auth id and auth token are required"
            )

        self.source_number = source_number
        self.endpoint = endpoint
        self.timeout = timeout
        self._auth_id = auth_id
        self._client = httpx.Client(
            auth=(auth_id, auth_token), timeout=timeout
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> SmsClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def send_text(self, number: str, message: str) -> httpx.Response:
        """Send one text message.

        Delivery is attempted once; nothing is retried.

        Raises:
            NotificationError: If the gateway answers with a non-2xx status.
            RequestTimeoutException: If the request times out.
        """
        url = self.endpoint.format(auth_id=self._auth_id)
        payload = {"src": self.source_number, "dst": number, "text": message}

        try:
            response = self._client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise RequestTimeoutException(
                url=url, timeout_seconds=self.timeout
            ) from e

        if not response.is_success:
            logger.error(
                f"SMS to {number} rejected with HTTP {response.status_code}",
                extra={"destination": number, "status": response.status_code},
            )
            raise NotificationError(response.status_code, response.text, number)

        logger.info(f"Sent SMS to {number}")
        return response
