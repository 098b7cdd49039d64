"""HTTP client for the registration portal's section search.

The portal answers a form POST (term, department, course) with the two-row
section table handled by seatwatch.parser.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any

import httpx

from seatwatch.common.exceptions import (
    HTMLResponseAssumptionException,
    RequestTimeoutException,
)
from seatwatch.models import Section
from seatwatch.parser import SectionParser

logger = logging.getLogger(__name__)

DEFAULT_FORM_FIELDS = {"term": "term", "dept": "dept", "course": "course"}


class PortalClient:
    """Fetches section tables from the registration portal.

    Example::

        with PortalClient("https://atlas.example.edu/sections") as portal:
            sections = portal.fetch_sections("202470", "CSCI", "132")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float | None = 30.0,
        ssl_context: ssl.SSLContext | None = None,
        form_fields: dict[str, str] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: URL the section search form posts to.
            timeout: Request timeout in seconds. None means no timeout.
            ssl_context: Optional SSL context for HTTPS connections.
            form_fields: Portal form field names for the ``term``, ``dept``
                and ``course`` values, if they differ from those keys.
        """
        self.base_url = base_url
        self.timeout = timeout
        self.form_fields = {**DEFAULT_FORM_FIELDS, **(form_fields or {})}

        if ssl_context:
            self._client = httpx.Client(verify=ssl_context, timeout=timeout)
        else:
            self._client = httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> PortalClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request_sections(
        self, term: str, dept: str, course: str
    ) -> httpx.Response:
        """POST the section search form.

        Raises:
            HTMLResponseAssumptionException: If the portal returns a 5xx status.
            RequestTimeoutException: If the request times out.
        """
        form = {
            self.form_fields["term"]: term,
            self.form_fields["dept"]: dept,
            self.form_fields["course"]: course,
        }
        logger.debug(f"Requesting sections {term} {dept} {course}")

        try:
            response = self._client.post(self.base_url, data=form)
        except httpx.TimeoutException as e:
            raise RequestTimeoutException(
                url=self.base_url, timeout_seconds=self.timeout
            ) from e

        if response.status_code >= 500:
            raise HTMLResponseAssumptionException(
                status_code=response.status_code,
                expected_codes=[200],
                url=self.base_url,
            )

        return response

    def fetch_sections(
        self, term: str, dept: str, course: str, crn: str | None = None
    ) -> list[Section]:
        """Fetch and parse the sections of one course.

        Args:
            term: Term code.
            dept: Department abbreviation.
            course: Course number.
            crn: Optional crn; when given, at most one section is returned.

        Raises:
            StructuralParseError: If the portal's table layout changed.
            TransientException: If the request failed in a retryable way.
        """
        response = self.request_sections(term, dept, course)
        sections = SectionParser(source=str(response.url)).parse(
            response.content, crn
        )
        logger.info(
            f"Fetched {len(sections)} sections for {term} {dept} {course}"
        )
        return sections
