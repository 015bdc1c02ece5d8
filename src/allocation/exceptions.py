"""Allocation errors that protean does not already provide.

User-fixable input problems use ``protean.exceptions.ValidationError`` and
missing entities use ``protean.exceptions.ObjectNotFoundError``; both are
re-exported here so callers have a single import point. The classes below
carry a ``messages`` dict keyed by field, mirroring protean's errors.
"""

from protean.exceptions import ObjectNotFoundError as NotFound
from protean.exceptions import ValidationError

__all__ = [
    "AllocationError",
    "ConflictError",
    "HasDependents",
    "NotFound",
    "UnknownPincode",
    "ValidationError",
]


class AllocationError(Exception):
    def __init__(self, messages: dict[str, list[str]]):
        self.messages = messages
        super().__init__(messages)


class ConflictError(AllocationError):
    """Input collides with existing state (claimed pincode, taken zone name)."""


class HasDependents(AllocationError):
    """Deletion blocked because child records still reference the entity."""


class UnknownPincode(AllocationError):
    """The pincode has no record in the geography store."""

    def __init__(self, pincode: str):
        self.pincode = pincode
        super().__init__({"pincode": [f"Pincode {pincode} is not known"]})
