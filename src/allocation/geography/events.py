"""Domain events for the Zone and Pincode aggregates."""

from protean.fields import Boolean, DateTime, Identifier, String

from allocation.domain import allocation


@allocation.event(part_of="Zone")
class ZoneCreated:
    """A delivery zone was created."""

    __version__ = 1

    zone_id = Identifier(required=True)
    name = String(required=True)
    display_name = String(required=True)
    is_nationwide = Boolean(default=False)
    created_at = DateTime(required=True)


@allocation.event(part_of="Zone")
class ZoneUpdated:
    """Zone naming or description changed."""

    __version__ = 1

    zone_id = Identifier(required=True)
    name = String(required=True)
    display_name = String(required=True)
    description = String()
    updated_at = DateTime(required=True)


@allocation.event(part_of="Zone")
class ZoneDeactivated:
    __version__ = 1

    zone_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@allocation.event(part_of="Zone")
class ZoneActivated:
    __version__ = 1

    zone_id = Identifier(required=True)
    activated_at = DateTime(required=True)


@allocation.event(part_of="Pincode")
class PincodeAssigned:
    """A pincode joined a zone (first registration or a move)."""

    __version__ = 1

    pincode = String(required=True)
    zone_id = Identifier(required=True)
    previous_zone_id = Identifier()
    assigned_at = DateTime(required=True)


@allocation.event(part_of="Pincode")
class PincodeUnassigned:
    """A pincode left its zone and is now covered by the nationwide zone only."""

    __version__ = 1

    pincode = String(required=True)
    zone_id = Identifier(required=True)
    unassigned_at = DateTime(required=True)


@allocation.event(part_of="Pincode")
class PincodeStatusChanged:
    __version__ = 1

    pincode = String(required=True)
    is_active = Boolean(default=True)
    changed_at = DateTime(required=True)
