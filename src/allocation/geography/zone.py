"""Zone aggregate — a named group of delivery pincodes.

One zone in the system is the nationwide zone. It is seeded once, covers
every pincode implicitly, and can neither be renamed nor deactivated.
Ordinary zones own their pincodes explicitly (see ``Pincode.zone_id``).
"""

import re
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from allocation.domain import allocation
from allocation.exceptions import ConflictError
from allocation.geography.events import ZoneActivated, ZoneCreated, ZoneDeactivated, ZoneUpdated

NATIONWIDE_ZONE_NAME = "nationwide"
RESERVED_ZONE_NAMES = frozenset({"nationwide", "all", "global", "admin", "system"})

_ZONE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-_]+$")


def clean_zone_name(name):
    """Strip and check a zone name for an ordinary (non-nationwide) zone."""
    name = (name or "").strip()
    if not name:
        raise ValidationError({"name": ["Zone name is required"]})
    if not _ZONE_NAME_PATTERN.match(name):
        raise ValidationError({"name": ["Zone name contains invalid characters"]})
    if name.lower() in RESERVED_ZONE_NAMES:
        raise ConflictError({"name": [f"Zone name '{name}' is reserved"]})
    return name


@allocation.aggregate
class Zone:
    """A geographic grouping of pincodes that zonal warehouses serve."""

    name = String(required=True, max_length=100)
    display_name = String(required=True, max_length=150)
    description = String(max_length=500)
    is_nationwide = Boolean(default=False)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, display_name, description=None):
        """Create an ordinary zone. Name uniqueness is checked by the caller."""
        name = clean_zone_name(name)
        if not (display_name or "").strip():
            raise ValidationError({"display_name": ["Display name is required"]})

        now = datetime.now(UTC)
        zone = cls(
            name=name,
            display_name=display_name.strip(),
            description=description,
            created_at=now,
            updated_at=now,
        )
        zone.raise_(
            ZoneCreated(
                zone_id=str(zone.id),
                name=zone.name,
                display_name=zone.display_name,
                is_nationwide=False,
                created_at=now,
            )
        )
        return zone

    @classmethod
    def seed_nationwide(cls):
        """Build the singleton nationwide zone."""
        now = datetime.now(UTC)
        zone = cls(
            name=NATIONWIDE_ZONE_NAME,
            display_name="Nationwide",
            description="Covers every pincode",
            is_nationwide=True,
            created_at=now,
            updated_at=now,
        )
        zone.raise_(
            ZoneCreated(
                zone_id=str(zone.id),
                name=zone.name,
                display_name=zone.display_name,
                is_nationwide=True,
                created_at=now,
            )
        )
        return zone

    def update_details(self, name=None, display_name=None, description=None):
        if name is not None and name != self.name:
            if self.is_nationwide:
                raise ConflictError({"name": ["The nationwide zone cannot be renamed"]})
            self.name = clean_zone_name(name)
        if display_name is not None:
            if not display_name.strip():
                raise ValidationError({"display_name": ["Display name is required"]})
            self.display_name = display_name.strip()
        if description is not None:
            self.description = description

        self.updated_at = datetime.now(UTC)
        self.raise_(
            ZoneUpdated(
                zone_id=str(self.id),
                name=self.name,
                display_name=self.display_name,
                description=self.description,
                updated_at=self.updated_at,
            )
        )

    def deactivate(self):
        if self.is_nationwide:
            raise ConflictError({"zone": ["The nationwide zone cannot be deactivated"]})
        if not self.is_active:
            raise ValidationError({"zone": ["Zone is already inactive"]})
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(ZoneDeactivated(zone_id=str(self.id), deactivated_at=self.updated_at))

    def activate(self):
        if self.is_active:
            raise ValidationError({"zone": ["Zone is already active"]})
        self.is_active = True
        self.updated_at = datetime.now(UTC)
        self.raise_(ZoneActivated(zone_id=str(self.id), activated_at=self.updated_at))
