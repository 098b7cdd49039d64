"""Base model for sections and stored documents."""

from typing import Any, TypeVar

from sqlmodel import SQLModel

from seatwatch.common.deferred_validation import DeferredValidation

T = TypeVar("T", bound="StoredData")


class StoredData(SQLModel):
    """Model base that can also be built without validating.

    Constructing a subclass validates at once. ``raw()`` instead wraps the
    fields so the store boundary can decide when to check them::

        user = User(number="+14065550100")
        pending = User.raw(source="users/abc", number="+14065550100")
        user = pending.confirm()
    """

    @classmethod
    def raw(
        cls: type[T], source: str = "", **data: Any
    ) -> DeferredValidation[T]:
        """Wrap fields for deferred validation.

        Args:
            source: Document path or URL used if validation fails.
            **data: Field values, unvalidated.
        """
        return DeferredValidation(cls, source, **data)
