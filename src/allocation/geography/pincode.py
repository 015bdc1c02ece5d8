"""Pincode aggregate — a 6-digit delivery code and its zone membership.

A pincode belongs to at most one ordinary zone. Without a membership it is
still deliverable through the nationwide zone.
"""

import re
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from allocation.domain import allocation
from allocation.geography.events import PincodeAssigned, PincodeStatusChanged, PincodeUnassigned

_PINCODE_PATTERN = re.compile(r"^\d{6}$")


def normalize_pincode(value):
    """Return ``value`` as a 6-digit pincode string or raise ValidationError."""
    code = str(value).strip() if value is not None else ""
    if not _PINCODE_PATTERN.match(code):
        raise ValidationError({"pincode": [f"Invalid pincode {value!r}: expected 6 digits"]})
    return code


def normalize_pincodes(values):
    """Normalize a collection of pincodes, keeping first-seen order and dropping repeats."""
    seen = {}
    for value in values or []:
        seen.setdefault(normalize_pincode(value), None)
    return list(seen)


@allocation.aggregate
class Pincode:
    code = String(identifier=True, required=True, max_length=6)
    zone_id = Identifier()
    city = String(max_length=100)
    state = String(max_length=100)
    district = String(max_length=100)
    is_active = Boolean(default=True)
    updated_at = DateTime()

    @classmethod
    def register(cls, code, zone_id=None, city=None, state=None, district=None, is_active=True):
        pincode = cls(
            code=normalize_pincode(code),
            city=city,
            state=state,
            district=district,
            is_active=is_active,
            updated_at=datetime.now(UTC),
        )
        if zone_id is not None:
            pincode.assign_to(zone_id)
        return pincode

    def assign_to(self, zone_id):
        previous = self.zone_id
        self.zone_id = zone_id
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PincodeAssigned(
                pincode=self.code,
                zone_id=str(zone_id),
                previous_zone_id=str(previous) if previous else None,
                assigned_at=self.updated_at,
            )
        )

    def unassign(self):
        if self.zone_id is None:
            raise ValidationError({"pincode": [f"Pincode {self.code} does not belong to a zone"]})
        previous = self.zone_id
        self.zone_id = None
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PincodeUnassigned(
                pincode=self.code,
                zone_id=str(previous),
                unassigned_at=self.updated_at,
            )
        )

    def set_active(self, is_active):
        if bool(is_active) == self.is_active:
            return
        self.is_active = bool(is_active)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PincodeStatusChanged(
                pincode=self.code,
                is_active=self.is_active,
                changed_at=self.updated_at,
            )
        )
