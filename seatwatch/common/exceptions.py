"""Exception types for seatwatch errors.

This module defines the exception hierarchy shared by the section parser,
the record stores, the archive migrator and the HTTP clients.

Assumption exceptions mean the scraped portal or a stored document no longer
has the shape the code expects. Store exceptions wrap failures of the
document store. Transient exceptions suggest the caller may retry.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Something the code relies on about its input no longer holds.

    The parser relies on the portal's table layout; the migrator relies on
    the shape of stored documents. A subclass names the broken assumption
    and carries the evidence in ``context``. These are not retryable: the
    input or the code has to change.
    """

    def __init__(
        self,
        message: str,
        source: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: What was expected and what was found.
            source: Where the offending data came from (URL, file or
                document path).
            context: Extra details such as cell text or token counts.
        """
        self.message = message
        self.source = source
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = [self.message, f"Source: {self.source}"]
        if self.context:
            lines.append("Context:")
            lines.extend(
                f"  {key}: {value}" for key, value in self.context.items()
            )
        return "\n".join(lines)


class StructuralParseError(ScraperAssumptionException):
    """Raised when a section's identifier cell doesn't split into three tokens.

    The compound identifier cell (e.g. ``"CSCI 132 001"``) must yield exactly
    a department abbreviation, a course number and a section number. Any other
    token count means the portal's markup changed and the parser needs
    maintenance.

    Attributes:
        cell_text: The raw text of the identifier cell.
        tokens: The alphanumeric tokens that were extracted.
        token_count: Number of tokens found.
        expected_count: Number of tokens the parser requires.
    """

    def __init__(
        self,
        cell_text: str,
        tokens: list[str],
        source: str,
        expected_count: int = 3,
    ) -> None:
        """Initialize the exception.

        Args:
            cell_text: The raw text of the identifier cell.
            tokens: The tokens extracted from the cell.
            source: Where the document came from.
            expected_count: Number of tokens the parser requires.
        """
        self.cell_text = cell_text
        self.tokens = tokens
        self.token_count = len(tokens)
        self.expected_count = expected_count

        message = (
            f"Section identifier mismatch: Expected exactly {expected_count} "
            f"tokens in {cell_text!r}, but found {self.token_count}. "
            "Did the data model change?"
        )

        context = {
            "cell_text": cell_text,
            "tokens": tokens,
            "token_count": self.token_count,
            "expected_count": expected_count,
        }

        super().__init__(message, source, context)


class DocumentParseError(ScraperAssumptionException):
    """Raised when a scraped document can't be parsed as HTML at all."""

    def __init__(self, reason: str, source: str) -> None:
        self.reason = reason
        super().__init__(
            f"Could not parse HTML document: {reason}",
            source,
            {"reason": reason},
        )


class DataShapeError(ScraperAssumptionException):
    """Raised when a stored document doesn't match its expected model.

    Documents pulled from the record store are schemaless. They are decoded
    through Pydantic models at the store boundary, and this exception reports
    the validation errors, e.g. a subscription whose ``users`` field is not a
    list.
    """

    def __init__(
        self,
        errors: list[dict[str, Any]],
        failed_doc: dict[str, Any],
        model_name: str,
        source: str,
    ) -> None:
        """Initialize the exception.

        Args:
            errors: List of Pydantic validation errors.
            failed_doc: The document that failed validation.
            model_name: Name of the Pydantic model that was being validated against.
            source: Path of the document that produced this data.
        """
        self.errors = errors
        self.failed_doc = failed_doc
        self.model_name = model_name

        error_summary = ", ".join(
            f"{err['loc'][0] if err.get('loc') else '<root>'}: {err['msg']}"
            for err in errors
        )

        message = (
            f"Data validation failed for model '{model_name}': {error_summary}"
        )

        context = {
            "model": model_name,
            "error_count": len(errors),
            "errors": errors,
            "failed_doc": failed_doc,
        }

        super().__init__(message, source, context)


# =============================================================================
# Record store errors
# =============================================================================


class StoreException(Exception):
    """Base class for record store failures.

    Attributes:
        operation: The store operation that failed (get, add, set_merge...).
        collection: The collection the operation targeted.
        document_id: The document id, when the operation targeted one.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        collection: str,
        document_id: str | None = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.collection = collection
        self.document_id = document_id

        target = (
            f"{collection}/{document_id}" if document_id else collection
        )
        super().__init__(f"{operation} {target}: {message}")


class DocumentReadError(StoreException):
    """Raised when reading or querying the store fails."""


class DocumentNotFoundError(DocumentReadError):
    """Raised when a document requested by id does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(
            "document does not exist", "get", collection, document_id
        )


class DocumentWriteError(StoreException):
    """Raised when creating, merging or deleting a document fails."""


class DuplicateArchiveWarning(UserWarning):
    """More than one archive document exists for the same term and crn."""


# =============================================================================
# Transient exceptions
# =============================================================================


class TransientException(Exception):
    """A portal or gateway request failed in a way that may not recur.

    Covers 5xx answers and timeouts. Nothing in seatwatch retries; the
    scheduler that invoked the command decides whether to try again.
    """


class HTMLResponseAssumptionException(TransientException):
    """Raised when the portal answers with an unexpected status code.

    Attributes:
        status_code: Status the server answered with.
        expected_codes: Statuses that would have been accepted.
        url: The URL that was requested.
    """

    def __init__(
        self,
        status_code: int,
        expected_codes: list[int],
        url: str,
    ) -> None:
        self.status_code = status_code
        self.expected_codes = expected_codes
        self.url = url

        expected_str = ", ".join(str(code) for code in expected_codes)
        self.message = (
            f"HTTP {status_code} from {url} (expected one of: {expected_str})"
        )
        super().__init__(self.message)


class RequestTimeoutException(TransientException):
    """Raised when the portal or SMS gateway doesn't answer in time.

    Attributes:
        url: The URL that was requested.
        timeout_seconds: The client timeout that expired.
    """

    def __init__(self, url: str, timeout_seconds: float | None) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.message = f"Request to {url} timed out after {timeout_seconds}s"
        super().__init__(self.message)


# =============================================================================
# Notification errors
# =============================================================================


class NotificationError(Exception):
    """Raised when the SMS gateway rejects a message."""

    def __init__(self, status_code: int, body: str, destination: str) -> None:
        self.status_code = status_code
        self.body = body
        self.destination = destination
        super().__init__(
            f"SMS to {destination} failed with HTTP {status_code}: {body}"
        )


class NotificationConfigError(Exception):
    """Raised when the SMS client is missing credentials."""
