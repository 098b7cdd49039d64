"""Validation of schemaless store payloads at the point of use.

Documents read from the record store are plain dicts. A DeferredValidation
pairs one of those dicts with the model it is supposed to fit and with the
document path it came from. Nothing is checked until confirm(), and every
caller that decodes a document gets the same DataShapeError on a mismatch.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from seatwatch.common.exceptions import DataShapeError

T = TypeVar("T", bound=BaseModel)


class DeferredValidation(Generic[T]):
    """A raw payload waiting to be validated against a model.

    Example:
        pending = TrackedSubscription.raw(source=ref.path, **snapshot.data)
        tracked = pending.confirm()  # DataShapeError if users isn't a list
    """

    def __init__(
        self,
        model_class: type[T],
        source: str = "",
        **data: Any,
    ) -> None:
        """Hold a payload for later validation.

        Args:
            model_class: Model the payload should fit.
            source: Document path reported if validation fails.
            **data: The payload's fields, as stored.
        """
        self._model_class = model_class
        self._source = source
        self._data = data

    @property
    def model_name(self) -> str:
        return self._model_class.__name__

    def confirm(self) -> T:
        """Validate the payload.

        Returns:
            The validated model instance.

        Raises:
            DataShapeError: If the payload doesn't fit the model. The
                original ValidationError is chained as the cause.
        """
        try:
            return self._model_class.model_validate(self._data)
        except ValidationError as e:
            raise DataShapeError(
                errors=[dict(error) for error in e.errors()],
                failed_doc=self._data,
                model_name=self.model_name,
                source=self._source,
            ) from e
