"""Zone and pincode management — commands and handlers.

Every handler runs all of its checks before the first repository write, so
a rejected command leaves the geography untouched.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from allocation.domain import allocation
from allocation.exceptions import ConflictError, HasDependents
from allocation.geography.pincode import Pincode, normalize_pincode
from allocation.geography.store import GeographyStore
from allocation.geography.zone import Zone
from allocation.warehouse.warehouse import Warehouse

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Zone commands
# ---------------------------------------------------------------------------
@allocation.command(part_of="Zone")
class SeedNationwideZone:
    """Create the nationwide zone if it does not exist yet."""


@allocation.command(part_of="Zone")
class CreateZone:
    name = String(required=True, max_length=100)
    display_name = String(required=True, max_length=150)
    description = String(max_length=500)
    pincodes = Text(required=True)  # JSON list of codes or {pincode, city, state, district}


@allocation.command(part_of="Zone")
class UpdateZone:
    zone_id = Identifier(required=True)
    name = String(max_length=100)
    display_name = String(max_length=150)
    description = String(max_length=500)


@allocation.command(part_of="Zone")
class DeactivateZone:
    zone_id = Identifier(required=True)


@allocation.command(part_of="Zone")
class ActivateZone:
    zone_id = Identifier(required=True)


@allocation.command(part_of="Zone")
class DeleteZone:
    """Delete an ordinary zone; its pincodes fall back to the nationwide zone."""

    zone_id = Identifier(required=True)


# ---------------------------------------------------------------------------
# Pincode commands
# ---------------------------------------------------------------------------
@allocation.command(part_of="Pincode")
class RegisterPincode:
    """Record a pincode that belongs to no zone yet."""

    pincode = String(required=True, max_length=10)
    city = String(max_length=100)
    state = String(max_length=100)
    district = String(max_length=100)


@allocation.command(part_of="Pincode")
class AddPincode:
    zone_id = Identifier(required=True)
    pincode = String(required=True, max_length=10)
    city = String(max_length=100)
    state = String(max_length=100)
    district = String(max_length=100)


@allocation.command(part_of="Pincode")
class RemovePincode:
    zone_id = Identifier(required=True)
    pincode = String(required=True, max_length=10)


@allocation.command(part_of="Pincode")
class MovePincode:
    pincode = String(required=True, max_length=10)
    target_zone_id = Identifier(required=True)


@allocation.command(part_of="Pincode")
class SetPincodeStatus:
    pincode = String(required=True, max_length=10)
    is_active = Boolean(default=True)


def parse_pincode_entries(raw) -> list[dict]:
    """Decode a JSON pincode list into dicts keyed ``code``/``city``/``state``/``district``."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            raise ValidationError({"pincodes": ["Pincodes must be a JSON list"]})
    if not isinstance(raw, list):
        raise ValidationError({"pincodes": ["Pincodes must be a list"]})

    entries = {}
    for item in raw:
        if isinstance(item, dict):
            code = normalize_pincode(item.get("pincode") or item.get("code"))
            entry = {
                "code": code,
                "city": item.get("city"),
                "state": item.get("state"),
                "district": item.get("district"),
            }
        else:
            code = normalize_pincode(item)
            entry = {"code": code, "city": None, "state": None, "district": None}
        entries.setdefault(code, entry)
    return list(entries.values())


def _get_ordinary_zone(store: GeographyStore, zone_id, field_name="zone_id") -> Zone:
    zone = store.get_zone(zone_id)
    if zone.is_nationwide:
        raise ValidationError({field_name: ["The nationwide zone covers every pincode implicitly"]})
    return zone


def _divisions_stranded_by(pincode, covering_zone_ids) -> list[Warehouse]:
    """Divisions serving ``pincode`` whose parent would no longer cover it.

    ``covering_zone_ids`` are the zones that will still cover the pincode
    after the change.
    """
    repo = current_domain.repository_for(Warehouse)
    stranded = []
    for division in repo.list_all():
        if not division.is_division or not division.serves_pincode(pincode):
            continue
        parent = repo.get(division.parent_warehouse_id)
        if not (parent.zone_ids & covering_zone_ids):
            stranded.append(division)
    return stranded


def _check_membership_change(store: GeographyStore, pincode, target_zone_id=None):
    covering = {str(z.id) for z in [store.nationwide_zone()] if z is not None}
    if target_zone_id is not None:
        covering.add(str(target_zone_id))
    stranded = _divisions_stranded_by(pincode, covering)
    if stranded:
        raise HasDependents(
            {
                "pincode": [
                    f"Pincode {pincode} is served by division {d.name} ({d.id}) outside the new coverage"
                    for d in stranded
                ]
            }
        )


def _check_not_served(zone: Zone):
    """Raise HasDependents while any zonal warehouse serves ``zone``."""
    serving = [
        w
        for w in current_domain.repository_for(Warehouse).find_zonal()
        if str(zone.id) in w.zone_ids
    ]
    if serving:
        raise HasDependents(
            {"zone_id": [f"Zone {zone.name} is served by warehouse {w.name} ({w.id})" for w in serving]}
        )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------
@allocation.command_handler(part_of=Zone)
class ZoneManagementHandler:
    @handle(SeedNationwideZone)
    def seed_nationwide_zone(self, _: SeedNationwideZone):
        repo = current_domain.repository_for(Zone)
        existing = repo.find_nationwide()
        if existing is not None:
            return str(existing.id)

        zone = Zone.seed_nationwide()
        repo.add(zone)
        logger.info("Seeded nationwide zone", zone_id=str(zone.id))
        return str(zone.id)

    @handle(CreateZone)
    def create_zone(self, command: CreateZone):
        store = GeographyStore()
        zones = store.zones

        if zones.find_by_name(command.name) is not None:
            raise ConflictError({"name": [f"Zone name '{command.name.strip()}' is already taken"]})

        entries = parse_pincode_entries(command.pincodes)
        if not entries:
            raise ValidationError({"pincodes": ["A zone needs at least one pincode"]})

        zone = Zone.create(
            name=command.name,
            display_name=command.display_name,
            description=command.description,
        )

        records = []
        conflicts = []
        for entry in entries:
            record = store.find_pincode(entry["code"])
            if record is None:
                records.append(Pincode.register(**entry))
            elif record.zone_id:
                conflicts.append(f"Pincode {record.code} already belongs to zone {record.zone_id}")
            else:
                records.append(record)
        if conflicts:
            raise ConflictError({"pincodes": conflicts})

        zones.add(zone)
        for record in records:
            record.assign_to(zone.id)
            store.pincodes.add(record)

        logger.info("Created zone", zone_id=str(zone.id), name=zone.name, pincode_count=len(records))
        return str(zone.id)

    @handle(UpdateZone)
    def update_zone(self, command: UpdateZone):
        repo = current_domain.repository_for(Zone)
        zone = repo.get(command.zone_id)
        if command.name is not None:
            clash = repo.find_by_name(command.name)
            if clash is not None and clash.id != zone.id:
                raise ConflictError({"name": [f"Zone name '{command.name.strip()}' is already taken"]})
        zone.update_details(
            name=command.name,
            display_name=command.display_name,
            description=command.description,
        )
        repo.add(zone)

    @handle(DeactivateZone)
    def deactivate_zone(self, command: DeactivateZone):
        repo = current_domain.repository_for(Zone)
        zone = repo.get(command.zone_id)
        _check_not_served(zone)

        zone.deactivate()
        repo.add(zone)
        logger.info("Deactivated zone", zone_id=str(zone.id))

    @handle(DeleteZone)
    def delete_zone(self, command: DeleteZone):
        store = GeographyStore()
        zone = store.get_zone(command.zone_id)
        if zone.is_nationwide:
            raise ConflictError({"zone": ["The nationwide zone cannot be deleted"]})
        _check_not_served(zone)

        members = store.pincodes.find_by_zone(zone.id)
        for record in members:
            record.unassign()
            store.pincodes.add(record)
        store.zones._dao.delete(zone)
        logger.info("Deleted zone", zone_id=str(zone.id), released_pincodes=len(members))

    @handle(ActivateZone)
    def activate_zone(self, command: ActivateZone):
        repo = current_domain.repository_for(Zone)
        zone = repo.get(command.zone_id)
        zone.activate()
        repo.add(zone)
        logger.info("Activated zone", zone_id=str(zone.id))


@allocation.command_handler(part_of=Pincode)
class PincodeManagementHandler:
    @handle(RegisterPincode)
    def register_pincode(self, command: RegisterPincode):
        store = GeographyStore()
        code = normalize_pincode(command.pincode)
        if store.find_pincode(code) is not None:
            raise ConflictError({"pincode": [f"Pincode {code} is already registered"]})

        record = Pincode.register(
            code=code,
            city=command.city,
            state=command.state,
            district=command.district,
        )
        store.pincodes.add(record)
        return record.code

    @handle(AddPincode)
    def add_pincode(self, command: AddPincode):
        store = GeographyStore()
        zone = _get_ordinary_zone(store, command.zone_id)
        code = normalize_pincode(command.pincode)

        record = store.find_pincode(code)
        if record is None:
            record = Pincode.register(
                code=code,
                city=command.city,
                state=command.state,
                district=command.district,
            )
        elif str(record.zone_id or "") == str(zone.id):
            raise ConflictError({"pincode": [f"Pincode {code} is already in zone {zone.name}"]})
        elif record.zone_id:
            raise ConflictError({"pincode": [f"Pincode {code} already belongs to zone {record.zone_id}"]})

        record.assign_to(zone.id)
        store.pincodes.add(record)
        logger.info("Added pincode to zone", pincode=code, zone_id=str(zone.id))
        return code

    @handle(RemovePincode)
    def remove_pincode(self, command: RemovePincode):
        store = GeographyStore()
        zone = _get_ordinary_zone(store, command.zone_id)
        record = store.get_pincode(command.pincode)
        if str(record.zone_id or "") != str(zone.id):
            raise ValidationError({"pincode": [f"Pincode {record.code} is not in zone {zone.name}"]})

        _check_membership_change(store, record.code)

        record.unassign()
        store.pincodes.add(record)
        logger.info("Removed pincode from zone", pincode=record.code, zone_id=str(zone.id))

    @handle(MovePincode)
    def move_pincode(self, command: MovePincode):
        store = GeographyStore()
        target = _get_ordinary_zone(store, command.target_zone_id, field_name="target_zone_id")
        record = store.get_pincode(command.pincode)
        if str(record.zone_id or "") == str(target.id):
            raise ValidationError({"pincode": [f"Pincode {record.code} is already in zone {target.name}"]})

        _check_membership_change(store, record.code, target_zone_id=target.id)

        previous = record.zone_id
        record.assign_to(target.id)
        store.pincodes.add(record)
        logger.info(
            "Moved pincode",
            pincode=record.code,
            from_zone_id=str(previous) if previous else None,
            to_zone_id=str(target.id),
        )

    @handle(SetPincodeStatus)
    def set_pincode_status(self, command: SetPincodeStatus):
        store = GeographyStore()
        record = store.get_pincode(command.pincode)
        record.set_active(command.is_active)
        store.pincodes.add(record)
